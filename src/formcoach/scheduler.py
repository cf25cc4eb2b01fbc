import threading
from typing import Callable, Optional

from .exercise_analysis.config_utils import get_logger

logger = get_logger("formcoach.scheduler")


class SingleFlightPoller:
    """
    Fixed-interval poller that keeps at most one task in flight.

    Each tick starts the task on a worker thread unless the previous run is
    still going, in which case the tick is dropped rather than queued.
    """

    def __init__(self, interval: float, task: Callable[[], None]):
        """
        Args:
            interval: Seconds between ticks
            task: Callable run once per accepted tick
        """
        self.interval = interval
        self.task = task
        self.dropped_ticks = 0
        self.completed_runs = 0
        self._in_flight = threading.Lock()
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def tick(self) -> bool:
        """Start the task if idle. Returns False when the tick was dropped."""
        if not self._in_flight.acquire(blocking=False):
            self.dropped_ticks += 1
            logger.debug(f"Tick dropped; {self.dropped_ticks} dropped so far")
            return False
        self._worker = threading.Thread(target=self._run_task, daemon=True)
        self._worker.start()
        return True

    def _run_task(self) -> None:
        try:
            self.task()
            self.completed_runs += 1
        except Exception:
            logger.exception("Polled task failed")
        finally:
            self._in_flight.release()

    def _timer_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.tick()

    def start(self) -> None:
        if self._timer_thread is not None and self._timer_thread.is_alive():
            return
        self._stop_event.clear()
        self._timer_thread = threading.Thread(target=self._timer_loop, daemon=True)
        self._timer_thread.start()

    def stop(self, timeout: float = None) -> None:
        """Stop ticking and wait for the in-flight task, if any."""
        self._stop_event.set()
        if self._timer_thread is not None:
            self._timer_thread.join(timeout)
        self.wait_idle(timeout)

    def wait_idle(self, timeout: float = None) -> None:
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
