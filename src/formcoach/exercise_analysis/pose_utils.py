"""
pose_utils.py - Joint-angle geometry over keypoint frames.

All limb angles use the interior-angle convention: 180 degrees is a fully
extended joint, smaller values mean a deeper bend. The back angle is the
torso's deviation from vertical (0 = upright).
"""
import math
from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Tuple

import numpy as np

from .keypoints import KeypointFrame, Landmark

_MIN_VECTOR_NORM = 1e-6

# angle name -> (proximal, vertex, distal)
LIMB_ANGLE_LANDMARKS = {
    "left_knee": ("left_hip", "left_knee", "left_ankle"),
    "right_knee": ("right_hip", "right_knee", "right_ankle"),
    "left_hip": ("left_shoulder", "left_hip", "left_knee"),
    "right_hip": ("right_shoulder", "right_hip", "right_knee"),
    "left_elbow": ("left_shoulder", "left_elbow", "left_wrist"),
    "right_elbow": ("right_shoulder", "right_elbow", "right_wrist"),
}

_SERIALIZED_NAMES = {
    "left_knee": "leftKneeAngle",
    "right_knee": "rightKneeAngle",
    "left_hip": "leftHipAngle",
    "right_hip": "rightHipAngle",
    "back": "backAngle",
    "left_elbow": "leftElbowAngle",
    "right_elbow": "rightElbowAngle",
}


@dataclass(frozen=True)
class AngleSet:
    """Per-frame joint angles in degrees; None means the angle is unknown."""
    left_knee: Optional[float] = None
    right_knee: Optional[float] = None
    left_hip: Optional[float] = None
    right_hip: Optional[float] = None
    back: Optional[float] = None
    left_elbow: Optional[float] = None
    right_elbow: Optional[float] = None

    def get(self, name: str) -> Optional[float]:
        return getattr(self, name, None)

    def available(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def to_dict(self) -> Dict[str, float]:
        """Serialized form with camelCase names; absent angles are omitted."""
        return {
            _SERIALIZED_NAMES[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


# --- Math & Geometry Utilities ---
def _finite(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return float(value)


def calculate_angle(a: Tuple[float, float], b: Tuple[float, float], c: Tuple[float, float]) -> Optional[float]:
    """
    Angle ABC in degrees, measured at vertex b between vectors ba and bc.

    Args:
        a: Proximal point (x, y), e.g. hip for a knee angle
        b: Vertex point (x, y), e.g. knee
        c: Distal point (x, y), e.g. ankle
    Returns:
        Angle in [0, 180], or None if either vector is degenerate or any
        coordinate is not finite
    """
    a = np.asarray(a[:2], dtype=float)
    b = np.asarray(b[:2], dtype=float)
    c = np.asarray(c[:2], dtype=float)
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b)) and np.all(np.isfinite(c))):
        return None
    ba = a - b
    bc = c - b
    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba < _MIN_VECTOR_NORM or norm_bc < _MIN_VECTOR_NORM:
        return None
    cosine_angle = np.clip(np.dot(ba, bc) / (norm_ba * norm_bc), -1.0, 1.0)
    return _finite(float(np.degrees(np.arccos(cosine_angle))))


def midpoint(p: Landmark, q: Landmark) -> Tuple[float, float]:
    return (p.x + q.x) / 2, (p.y + q.y) / 2


def calculate_back_angle(shoulder_mid: Tuple[float, float], hip_mid: Tuple[float, float]) -> Optional[float]:
    """Deviation of the hip->shoulder torso line from vertical, in degrees."""
    dx = shoulder_mid[0] - hip_mid[0]
    dy = shoulder_mid[1] - hip_mid[1]
    if not (math.isfinite(dx) and math.isfinite(dy)):
        return None
    if math.hypot(dx, dy) < _MIN_VECTOR_NORM:
        return None
    return _finite(math.degrees(math.atan2(abs(dx), abs(dy))))


def _point(landmark: Landmark) -> Tuple[float, float]:
    return landmark.x, landmark.y


def extract_angles(frame: KeypointFrame) -> AngleSet:
    """Compute every named joint angle the frame's landmarks allow."""
    values: Dict[str, Optional[float]] = {}
    for angle_name, names in LIMB_ANGLE_LANDMARKS.items():
        points = [frame.get(name) for name in names]
        if any(p is None for p in points):
            values[angle_name] = None
            continue
        values[angle_name] = calculate_angle(*(_point(p) for p in points))

    torso = [frame.get(name) for name in ("left_shoulder", "right_shoulder", "left_hip", "right_hip")]
    if all(p is not None for p in torso):
        values["back"] = calculate_back_angle(midpoint(torso[0], torso[1]), midpoint(torso[2], torso[3]))
    else:
        values["back"] = None
    return AngleSet(**values)


def pair_mean(angles: AngleSet, joint: str) -> Optional[float]:
    """Mean of the left/right angles of a joint, using whichever sides are known."""
    sides = [angles.get(f"{side}_{joint}") for side in ("left", "right")]
    known = [v for v in sides if v is not None]
    return float(np.mean(known)) if known else None


def pair_difference(angles: AngleSet, joint: str) -> Optional[float]:
    """Absolute left/right difference; needs both sides."""
    left = angles.get(f"left_{joint}")
    right = angles.get(f"right_{joint}")
    if left is None or right is None:
        return None
    return abs(left - right)
