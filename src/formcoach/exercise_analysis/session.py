"""
Streaming session statistics over per-frame analyses.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .phase_classifier import RepPhase

TOP_ERROR_COUNT = 3


def round_half_up(numerator: int, denominator: int) -> int:
    """round(numerator / denominator) with halves rounded up, in exact integer math."""
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


@dataclass(frozen=True)
class CommonError:
    error_type: str
    count: int
    percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {"errorType": self.error_type, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class RepRecord:
    """Structured summary of one counted rep, as handed to coaching generation."""
    rep_number: int
    timestamp: float
    min_driving_angle: Optional[float]
    max_back_angle: Optional[float]
    average_score: int
    error_types: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repNumber": self.rep_number,
            "timestamp": self.timestamp,
            "minDrivingAngle": self.min_driving_angle,
            "maxBackAngle": self.max_back_angle,
            "averageScore": self.average_score,
            "errorTypes": list(self.error_types),
        }


@dataclass(frozen=True)
class SessionSummary:
    total_reps: int
    form_accuracy: int
    average_score: int
    common_errors: List[CommonError]
    total_frames: int = 0
    rejected_frames: int = 0
    duration: float = 0.0
    reps: List[RepRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalReps": self.total_reps,
            "formAccuracy": self.form_accuracy,
            "averageScore": self.average_score,
            "commonErrors": [e.to_dict() for e in self.common_errors],
            "totalFrames": self.total_frames,
            "rejectedFrames": self.rejected_frames,
            "duration": self.duration,
            "reps": [r.to_dict() for r in self.reps],
        }


@dataclass
class SessionAccumulator:
    """Mutable per-session tallies; finalize() turns them into a SessionSummary."""
    rep_count: int = 0
    phase_history: List[RepPhase] = field(default_factory=list)
    form_score_samples: List[int] = field(default_factory=list)
    violation_counts: Counter = field(default_factory=Counter)
    good_form_frames: int = 0
    rejected_frames: int = 0
    reps: List[RepRecord] = field(default_factory=list)
    first_timestamp: Optional[float] = None
    last_timestamp: Optional[float] = None
    # frames since the last counted rep
    _rep_scores: List[int] = field(default_factory=list)
    _rep_driving_angles: List[float] = field(default_factory=list)
    _rep_back_angles: List[float] = field(default_factory=list)
    _rep_error_types: List[str] = field(default_factory=list)

    @property
    def total_frames(self) -> int:
        return len(self.form_score_samples)

    def _touch(self, timestamp: float) -> None:
        if self.first_timestamp is None:
            self.first_timestamp = timestamp
        self.last_timestamp = timestamp

    def record_rejected(self, timestamp: float) -> None:
        self.rejected_frames += 1
        self._touch(timestamp)

    def record_frame(
        self,
        timestamp: float,
        phase: RepPhase,
        form_score: int,
        is_good_form: bool,
        error_types: List[str],
        driving_angle: Optional[float] = None,
        back_angle: Optional[float] = None,
    ) -> None:
        self._touch(timestamp)
        self.form_score_samples.append(form_score)
        if is_good_form:
            self.good_form_frames += 1
        self.violation_counts.update(error_types)
        if not self.phase_history or self.phase_history[-1] != phase:
            self.phase_history.append(phase)

        self._rep_scores.append(form_score)
        self._rep_error_types.extend(e for e in error_types if e not in self._rep_error_types)
        if driving_angle is not None:
            self._rep_driving_angles.append(driving_angle)
        if back_angle is not None:
            self._rep_back_angles.append(back_angle)

    def record_rep(self, timestamp: float) -> RepRecord:
        self.rep_count += 1
        record = RepRecord(
            rep_number=self.rep_count,
            timestamp=timestamp,
            min_driving_angle=min(self._rep_driving_angles) if self._rep_driving_angles else None,
            max_back_angle=max(self._rep_back_angles) if self._rep_back_angles else None,
            average_score=round_half_up(sum(self._rep_scores), len(self._rep_scores)),
            error_types=list(self._rep_error_types),
        )
        self.reps.append(record)
        self._rep_scores = []
        self._rep_driving_angles = []
        self._rep_back_angles = []
        self._rep_error_types = []
        return record

    def form_accuracy(self) -> int:
        return round_half_up(100 * self.good_form_frames, self.total_frames)

    def average_score(self) -> int:
        return round_half_up(sum(self.form_score_samples), self.total_frames)

    def common_errors(self) -> List[CommonError]:
        total = self.total_frames
        return [
            CommonError(error_type, count, round_half_up(100 * count, total))
            for error_type, count in self.violation_counts.most_common(TOP_ERROR_COUNT)
        ]

    def finalize(self) -> SessionSummary:
        duration = 0.0
        if self.first_timestamp is not None and self.last_timestamp is not None:
            duration = self.last_timestamp - self.first_timestamp
        return SessionSummary(
            total_reps=self.rep_count,
            form_accuracy=self.form_accuracy(),
            average_score=self.average_score(),
            common_errors=self.common_errors(),
            total_frames=self.total_frames,
            rejected_frames=self.rejected_frames,
            duration=duration,
            reps=list(self.reps),
        )
