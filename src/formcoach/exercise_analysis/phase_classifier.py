from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .config_utils import (
    default_config,
    get_logger,
    get_min_phase_frames,
    get_phase_thresholds,
    get_rep_cooldown,
)
from .form_rules import compute_metric
from .keypoints import ExerciseType
from .pose_utils import AngleSet

logger = get_logger("formcoach.phase")


# --- Phase Enum ---
class RepPhase(Enum):
    STARTING = "starting"
    DESCENDING = "descending"
    BOTTOM = "bottom"
    ASCENDING = "ascending"
    # Never emitted; a finished rep shows as ascending -> starting. Accepted as a previous phase.
    COMPLETED = "completed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PhaseThresholds:
    """Angles above start_angle are the start position; at or below bottom_angle is the bottom."""
    driving_metric: str
    start_angle: float
    bottom_angle: float

    @classmethod
    def from_config(cls, section: Dict[str, Any]) -> "PhaseThresholds":
        return cls(
            driving_metric=section["driving_metric"],
            start_angle=float(section["start_angle"]),
            bottom_angle=float(section["bottom_angle"]),
        )


def next_phase(previous: RepPhase, angle: Optional[float], thresholds: PhaseThresholds) -> RepPhase:
    """Phase implied by the driving angle given the phase the movement came from."""
    if angle is None:
        return previous
    if angle > thresholds.start_angle:
        return RepPhase.STARTING
    if angle <= thresholds.bottom_angle:
        return RepPhase.BOTTOM
    if previous in (RepPhase.BOTTOM, RepPhase.ASCENDING):
        return RepPhase.ASCENDING
    return RepPhase.DESCENDING


def is_rep_completion(previous: RepPhase, new: RepPhase) -> bool:
    """A repetition completes when the movement leaves the bottom on the way up."""
    return previous == RepPhase.BOTTOM and new == RepPhase.ASCENDING


class PhaseClassifier:
    """
    Per-session phase state machine with a hysteresis window and rep cooldown.

    Frames must be fed in timestamp order from a single thread.
    """

    def __init__(
        self,
        thresholds: Optional[PhaseThresholds],
        min_phase_frames: int = 1,
        rep_cooldown: float = 1.0,
    ):
        self.thresholds = thresholds
        self.min_phase_frames = max(1, int(min_phase_frames))
        self.rep_cooldown = rep_cooldown
        self.phase = RepPhase.STARTING if thresholds is not None else RepPhase.UNKNOWN
        self.rep_count = 0
        self.last_rep_time: Optional[float] = None
        self._pending_phase: Optional[RepPhase] = None
        self._pending_frames = 0

    @classmethod
    def for_exercise(cls, exercise: str, config: Dict[str, Any] = None, min_phase_frames: int = None) -> "PhaseClassifier":
        config = config or default_config()
        exercise_type = ExerciseType.parse(exercise)
        section = get_phase_thresholds(config, exercise_type.value) if exercise_type else None
        thresholds = PhaseThresholds.from_config(section) if section else None
        if min_phase_frames is None:
            min_phase_frames = get_min_phase_frames(config)
        return cls(thresholds, min_phase_frames, get_rep_cooldown(config))

    def driving_angle(self, angles: AngleSet) -> Optional[float]:
        if self.thresholds is None:
            return None
        return compute_metric(self.thresholds.driving_metric, angles)

    def update(self, angles: AngleSet, timestamp: float) -> Tuple[RepPhase, bool]:
        """
        Feed one frame's angles.

        Returns:
            Tuple of (settled phase after this frame, whether a rep was counted)
        """
        if self.thresholds is None:
            return RepPhase.UNKNOWN, False

        candidate = next_phase(self.phase, self.driving_angle(angles), self.thresholds)
        if candidate == self.phase:
            self._pending_phase = None
            self._pending_frames = 0
            return self.phase, False

        if candidate == self._pending_phase:
            self._pending_frames += 1
        else:
            self._pending_phase = candidate
            self._pending_frames = 1
        if self._pending_frames < self.min_phase_frames:
            return self.phase, False

        previous = self.phase
        self.phase = candidate
        self._pending_phase = None
        self._pending_frames = 0
        logger.debug(f"Phase {previous.value} -> {candidate.value} at t={timestamp:.3f}")

        rep_counted = False
        if is_rep_completion(previous, candidate):
            if self.last_rep_time is None or timestamp - self.last_rep_time >= self.rep_cooldown:
                self.rep_count += 1
                self.last_rep_time = timestamp
                rep_counted = True
            else:
                logger.debug(f"Rep suppressed by cooldown at t={timestamp:.3f}")
        return self.phase, rep_counted
