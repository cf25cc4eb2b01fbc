import time
from collections import deque
from typing import Any, Callable, Dict, Optional

from .exercise_analysis.analyzer import FormAnalyzer, FrameAnalysis, FrameStatus
from .exercise_analysis.config_utils import get_logger
from .exercise_analysis.session import SessionSummary
from .pose_detection.base_detector import BasePoseDetector
from .scheduler import SingleFlightPoller

logger = get_logger("formcoach.trainer")


class VirtualTrainer:
    """
    Client-side loop: capture a frame, detect keypoints, analyze form.

    `capture` is anything with OpenCV's read() -> (ok, image) contract.
    """

    def __init__(
        self,
        analyzer: FormAnalyzer,
        detector: BasePoseDetector,
        capture: Any,
        on_result: Callable[[FrameAnalysis], None] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.analyzer = analyzer
        self.detector = detector
        self.capture = capture
        self.on_result = on_result
        self.clock = clock
        self.session = analyzer.new_session()
        self.frame_buffer = deque(maxlen=30)
        self.missing_pose_counter = 0
        self.missing_pose_threshold = 10
        self.last_summary: Optional[SessionSummary] = None
        self._poller: Optional[SingleFlightPoller] = None

    @classmethod
    def from_camera(cls, analyzer: FormAnalyzer, camera_id: int = 0, **kwargs) -> "VirtualTrainer":
        import cv2
        from .pose_detection.mediapipe_detector import MediaPipePoseDetector

        capture = cv2.VideoCapture(camera_id)
        if not capture.isOpened():
            raise RuntimeError("Failed to open camera")
        return cls(analyzer, MediaPipePoseDetector(), capture, **kwargs)

    @classmethod
    def from_video(cls, analyzer: FormAnalyzer, video_path: str, **kwargs) -> "VirtualTrainer":
        import cv2
        from .pose_detection.mediapipe_detector import MediaPipePoseDetector

        capture = cv2.VideoCapture(video_path)
        if not capture.isOpened():
            raise RuntimeError(f"Failed to open video: {video_path}")
        return cls(analyzer, MediaPipePoseDetector(), capture, **kwargs)

    def capture_fps(self, default: float = 30.0) -> float:
        get = getattr(self.capture, "get", None)
        if get is None:
            return default
        import cv2

        fps = get(cv2.CAP_PROP_FPS)
        return fps if fps and fps > 0 else default

    def process_next(self, timestamp: float = None) -> Optional[FrameAnalysis]:
        """
        Capture and analyze one frame.

        Returns:
            FrameAnalysis, or None when the capture failed or no pose was found
        """
        ok, image = self.capture.read()
        if not ok:
            return None
        if timestamp is None:
            timestamp = self.clock()
        keypoints = self.detector.detect(image, timestamp)
        if keypoints is None:
            self.missing_pose_counter += 1
            if self.missing_pose_counter == self.missing_pose_threshold:
                logger.warning("We can't see your full body. Please adjust your position or camera.")
            return None
        self.missing_pose_counter = 0

        result = self.analyzer.analyze_frame(keypoints, self.session)
        self.frame_buffer.append(result)
        self._report(result)
        return result

    def _report(self, result: FrameAnalysis) -> None:
        if result.status == FrameStatus.REJECTED:
            logger.debug(f"Frame skipped: {result.error_message}")
        elif result.status == FrameStatus.ANALYZED:
            if result.rep_completed:
                logger.info(f"Rep {result.rep_number} complete, form score {result.form_score}")
            for message in result.feedback:
                logger.info(f"Form: {message}")
        if self.on_result is not None:
            self.on_result(result)

    def run_polling(self, interval: float = 0.5, duration: float = None) -> SessionSummary:
        """Poll the camera every `interval` seconds until stopped or `duration` elapses."""
        self._poller = SingleFlightPoller(interval, self.process_next)
        self._poller.start()
        try:
            if duration is None:
                while True:
                    time.sleep(interval)
            else:
                time.sleep(duration)
        except KeyboardInterrupt:
            logger.info("KeyboardInterrupt received. Exiting gracefully...")
        finally:
            self._poller.stop()
            logger.info(f"Dropped {self._poller.dropped_ticks} ticks while analysis was busy")
        return self.stop()

    def run_sequential(self, fps: float = 30.0) -> SessionSummary:
        """Analyze every frame of a recorded capture, timestamped at the given frame rate."""
        index = 0
        while True:
            ok = self._process_indexed(index / fps)
            if not ok:
                break
            index += 1
        logger.info(f"Video analysis complete. Processed {index} frames.")
        return self.stop()

    def _process_indexed(self, timestamp: float) -> bool:
        ok, image = self.capture.read()
        if not ok:
            return False
        keypoints = self.detector.detect(image, timestamp)
        if keypoints is not None:
            result = self.analyzer.analyze_frame(keypoints, self.session)
            self.frame_buffer.append(result)
            self._report(result)
        return True

    def stop(self) -> SessionSummary:
        """Release resources and finalize the session."""
        if hasattr(self.capture, "release"):
            self.capture.release()
        self.detector.close()
        self.last_summary = self.analyzer.end_session(self.session)
        return self.last_summary

    def summary_dict(self) -> Dict[str, Any]:
        return self.last_summary.to_dict() if self.last_summary else {}
