"""
Keypoint frame data types shared by every stage of the analysis pipeline.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .config_utils import get_logger

logger = get_logger("formcoach.keypoints")

# Closed landmark vocabulary accepted from the pose-estimation provider.
LANDMARK_NAMES = (
    "nose",
    "left_eye", "right_eye",
    "left_ear", "right_ear",
    "left_shoulder", "right_shoulder",
    "left_elbow", "right_elbow",
    "left_wrist", "right_wrist",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
)


class ExerciseType(Enum):
    """Exercise types the engine accepts."""
    SQUAT = "squat"
    DEADLIFT = "deadlift"
    PUSHUP = "pushup"
    PULLUP = "pullup"
    LUNGE = "lunge"
    PLANK = "plank"
    BICEP_CURL = "bicep_curl"
    SHOULDER_PRESS = "shoulder_press"

    @classmethod
    def parse(cls, value: Union[str, "ExerciseType"]) -> Optional["ExerciseType"]:
        """Return the matching member, or None for names outside the closed set."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Landmark:
    """A single body point; visibility is the provider's confidence in [0, 1]."""
    x: float
    y: float
    z: Optional[float] = None
    visibility: float = 1.0

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def is_visible(self, min_visibility: float) -> bool:
        return self.is_finite() and self.visibility > min_visibility

    @classmethod
    def from_value(cls, value: Union[Mapping[str, Any], Sequence[float]]) -> "Landmark":
        """Build from either {x, y, z, visibility} or [x, y, z, visibility]."""
        if isinstance(value, Mapping):
            return cls(
                x=float(value["x"]),
                y=float(value["y"]),
                z=None if value.get("z") is None else float(value["z"]),
                visibility=float(value.get("visibility", 1.0)),
            )
        values = list(value)
        z = float(values[2]) if len(values) > 2 and values[2] is not None else None
        visibility = float(values[3]) if len(values) > 3 else 1.0
        return cls(x=float(values[0]), y=float(values[1]), z=z, visibility=visibility)

    def to_dict(self) -> Dict[str, float]:
        data = {"x": self.x, "y": self.y, "visibility": self.visibility}
        if self.z is not None:
            data["z"] = self.z
        return data


@dataclass
class KeypointFrame:
    """
    One snapshot of the landmarks detected in a camera frame.

    timestamp is None when the source sends none; the session assigns one.
    """
    timestamp: Optional[float]
    landmarks: Dict[str, Landmark] = field(default_factory=dict)

    def __post_init__(self):
        unknown = [name for name in self.landmarks if name not in LANDMARK_NAMES]
        for name in unknown:
            logger.warning(f"Dropping landmark outside vocabulary: {name}")
            del self.landmarks[name]

    def get(self, name: str) -> Optional[Landmark]:
        return self.landmarks.get(name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeypointFrame":
        raw = data.get("landmarks") or data.get("keypoints") or {}
        landmarks = {name: Landmark.from_value(value) for name, value in raw.items()}
        timestamp = data.get("timestamp")
        return cls(timestamp=None if timestamp is None else float(timestamp), landmarks=landmarks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "landmarks": {name: lm.to_dict() for name, lm in self.landmarks.items()},
        }
