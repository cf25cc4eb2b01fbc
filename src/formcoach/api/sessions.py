import threading
from typing import Any, Callable, Dict, Optional, Tuple

from ..exercise_analysis.analyzer import FormAnalyzer, WorkoutSession
from ..exercise_analysis.config_utils import default_config, get_logger, load_exercise_config
from ..exercise_analysis.keypoints import ExerciseType
from ..exercise_analysis.session import SessionSummary

logger = get_logger("formcoach.sessions")

SummarySink = Callable[[str, str, SessionSummary], None]


def log_summary_sink(session_id: str, exercise: str, summary: SessionSummary) -> None:
    logger.info(f"Session {session_id} ({exercise}) summary: {summary.to_dict()}")


class SessionRegistry:
    """
    Server-side session state keyed by session id.

    Analyzers are shared per exercise; each session owns its own phase
    machine and accumulator. The registry lock only guards the maps.
    """

    def __init__(self, config: Dict[str, Any] = None, config_path: str = None, summary_sink: SummarySink = None):
        if config is None:
            config = load_exercise_config(config_path) if config_path else default_config()
        self.config = config
        self.summary_sink = summary_sink or log_summary_sink
        self._analyzers: Dict[str, FormAnalyzer] = {}
        self._sessions: Dict[str, Tuple[FormAnalyzer, WorkoutSession]] = {}
        self._lock = threading.Lock()

    def analyzer_for(self, exercise: str) -> FormAnalyzer:
        """Shared analyzer for a known exercise; names outside the closed set get an uncached one."""
        exercise_type = ExerciseType.parse(exercise)
        if exercise_type is None:
            return FormAnalyzer(exercise, config=self.config)
        key = exercise_type.value
        with self._lock:
            analyzer = self._analyzers.get(key)
            if analyzer is None:
                analyzer = FormAnalyzer(key, config=self.config)
                self._analyzers[key] = analyzer
        return analyzer

    def create(self, exercise: str) -> WorkoutSession:
        analyzer = self.analyzer_for(exercise)
        session = analyzer.new_session()
        with self._lock:
            self._sessions[session.session_id] = (analyzer, session)
        return session

    def get(self, session_id: str) -> Optional[Tuple[FormAnalyzer, WorkoutSession]]:
        with self._lock:
            return self._sessions.get(session_id)

    def end(self, session_id: str) -> Optional[SessionSummary]:
        """Finalize and discard a session; the summary goes to the sink."""
        with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is None:
            return None
        analyzer, session = entry
        summary = analyzer.end_session(session)
        self.summary_sink(session_id, session.exercise, summary)
        return summary

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
