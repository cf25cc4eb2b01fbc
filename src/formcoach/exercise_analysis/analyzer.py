import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config_utils import default_config, get_frame_interval, get_logger, load_exercise_config
from .form_rules import RuleEngine, Violation
from .guidelines import get_form_guidelines
from .keypoints import ExerciseType, KeypointFrame
from .phase_classifier import PhaseClassifier, RepPhase
from .pose_utils import AngleSet, extract_angles
from .pose_validator import PoseValidator, ValidationResult
from .session import SessionAccumulator, SessionSummary

logger = get_logger("formcoach.analyzer")

BUSY_MESSAGE = "Previous frame for this session is still being analyzed"


class FrameStatus(Enum):
    ANALYZED = "analyzed"
    REJECTED = "rejected"  # pose validator gate failed; not scored
    BUSY = "busy"  # another frame for the session was in flight; dropped


@dataclass
class FrameAnalysis:
    """Result of pushing one keypoint frame through the pipeline."""
    timestamp: Optional[float]
    rep_number: int
    phase: RepPhase
    angles: AngleSet = field(default_factory=AngleSet)
    violations: List[Violation] = field(default_factory=list)
    form_score: Optional[int] = None
    is_good_form: bool = False
    status: FrameStatus = FrameStatus.ANALYZED
    error_message: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    rep_completed: bool = False

    @property
    def analysis_reliable(self) -> bool:
        return self.status == FrameStatus.ANALYZED

    @property
    def feedback(self) -> List[str]:
        return [v.message for v in self.violations]

    @property
    def corrections(self) -> List[str]:
        return [v.correction for v in self.violations]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "repNumber": self.rep_number,
            "angles": self.angles.to_dict(),
            "phase": self.phase.value,
            "feedback": self.feedback,
            "corrections": self.corrections,
            "formScore": self.form_score,
            "isGoodForm": self.is_good_form,
            "status": self.status.value,
            "errorMessage": self.error_message,
            "warnings": list(self.warnings),
        }


class WorkoutSession:
    """
    State carried across frames for one workout: the phase state machine and
    the session accumulator. Never share a session between concurrent workouts.
    """

    def __init__(self, exercise: str, classifier: PhaseClassifier, session_id: str = None, frame_interval: float = 0.5):
        self.session_id = session_id or uuid.uuid4().hex
        self.exercise = exercise
        self.classifier = classifier
        self.accumulator = SessionAccumulator()
        self.frame_interval = frame_interval
        self._last_timestamp: Optional[float] = None
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    @property
    def phase(self) -> RepPhase:
        return self.classifier.phase

    @property
    def rep_count(self) -> int:
        return self.accumulator.rep_count

    def stamp(self, frame: KeypointFrame) -> KeypointFrame:
        """Give an untimestamped frame the time one frame_interval after the previous frame."""
        if frame.timestamp is None:
            timestamp = 0.0 if self._last_timestamp is None else self._last_timestamp + self.frame_interval
            frame = replace(frame, timestamp=timestamp)
        self._last_timestamp = frame.timestamp
        return frame


class FormAnalyzer:
    """
    Exercise form analysis engine for one exercise type.

    The analyzer itself holds only immutable configuration (validator, rules,
    phase thresholds) and can be shared; all per-workout state lives in the
    WorkoutSession passed to analyze_frame.
    """

    def __init__(self, exercise: str, config: Dict[str, Any] = None, config_path: str = None, min_phase_frames: int = None):
        if config is None:
            config = load_exercise_config(config_path) if config_path else default_config()
        self.config = config
        exercise_type = ExerciseType.parse(exercise)
        self.exercise = exercise_type.value if exercise_type else str(exercise)
        self.min_phase_frames = min_phase_frames
        self.validator = PoseValidator(self.exercise, config)
        self.rule_engine = RuleEngine(self.exercise, config)
        self._warnings = []
        if not self.rule_engine.supported:
            self._warnings.append(f"Unsupported exercise type '{self.exercise}': no form rules applied")

    def get_exercise_name(self) -> str:
        return self.exercise

    def get_required_landmarks(self) -> List[str]:
        return list(self.validator.required_landmarks)

    def get_guidelines(self) -> Dict[str, List[str]]:
        return get_form_guidelines(self.exercise)

    def new_session(self, session_id: str = None, log_level: int = logging.INFO) -> WorkoutSession:
        classifier = PhaseClassifier.for_exercise(self.exercise, self.config, self.min_phase_frames)
        session = WorkoutSession(self.exercise, classifier, session_id, get_frame_interval(self.config))
        logger.log(log_level, f"Started {self.exercise} session {session.session_id}")
        return session

    def validate(self, frame: KeypointFrame) -> ValidationResult:
        return self.validator.validate(frame)

    def analyze_frame(self, frame: KeypointFrame, session: WorkoutSession = None, rep_number: int = None) -> FrameAnalysis:
        """
        Analyze a single frame.

        Args:
            frame: Keypoint frame from the pose-estimation provider
            session: Session to update; a throwaway session is used when omitted
            rep_number: Rep number to report for stateless calls

        Returns:
            FrameAnalysis; never raises for bad geometry or missing landmarks
        """
        if session is None:
            session = self.new_session(log_level=logging.DEBUG)
        if not session._in_flight.acquire(blocking=False):
            return FrameAnalysis(
                timestamp=frame.timestamp,
                rep_number=session.rep_count,
                phase=session.phase,
                status=FrameStatus.BUSY,
                error_message=BUSY_MESSAGE,
            )
        try:
            result = self._analyze_locked(frame, session)
        finally:
            session._in_flight.release()
        if rep_number is not None:
            result.rep_number = rep_number
        return result

    def _analyze_locked(self, frame: KeypointFrame, session: WorkoutSession) -> FrameAnalysis:
        frame = session.stamp(frame)
        validation = self.validator.validate(frame)
        if not validation.is_valid:
            session.accumulator.record_rejected(frame.timestamp)
            logger.debug(f"Frame at t={frame.timestamp:.3f} rejected: {validation.reason}")
            return FrameAnalysis(
                timestamp=frame.timestamp,
                rep_number=session.rep_count,
                phase=session.phase,
                status=FrameStatus.REJECTED,
                error_message=validation.reason,
                warnings=list(self._warnings),
            )

        angles = extract_angles(frame)
        evaluation = self.rule_engine.evaluate(angles)
        phase, rep_counted = session.classifier.update(angles, frame.timestamp)

        session.accumulator.record_frame(
            timestamp=frame.timestamp,
            phase=phase,
            form_score=evaluation.form_score,
            is_good_form=evaluation.is_good_form,
            error_types=[v.error_type for v in evaluation.violations],
            driving_angle=session.classifier.driving_angle(angles),
            back_angle=angles.back,
        )
        if rep_counted:
            record = session.accumulator.record_rep(frame.timestamp)
            logger.info(f"Rep {record.rep_number} completed in session {session.session_id} (avg score {record.average_score})")

        return FrameAnalysis(
            timestamp=frame.timestamp,
            rep_number=session.rep_count,
            phase=phase,
            angles=angles,
            violations=list(evaluation.violations),
            form_score=evaluation.form_score,
            is_good_form=evaluation.is_good_form,
            warnings=list(self._warnings),
            rep_completed=rep_counted,
        )

    def end_session(self, session: WorkoutSession) -> SessionSummary:
        summary = session.accumulator.finalize()
        logger.info(
            f"Ended {self.exercise} session {session.session_id}: reps={summary.total_reps} "
            f"accuracy={summary.form_accuracy}% frames={summary.total_frames} rejected={summary.rejected_frames}"
        )
        return summary

    def analyze_batch(self, frames: Iterable[KeypointFrame]) -> Tuple[List[FrameAnalysis], SessionSummary]:
        """Run an ordered sequence of frames through a fresh session."""
        session = self.new_session()
        analyses = [self.analyze_frame(frame, session) for frame in frames]
        return analyses, self.end_session(session)

    def count_reps(self, frames: Iterable[KeypointFrame]) -> Tuple[int, RepPhase]:
        """Total reps and the last settled phase for an ordered sequence of frames."""
        session = self.new_session()
        for frame in frames:
            self.analyze_frame(frame, session)
        return session.rep_count, session.phase
