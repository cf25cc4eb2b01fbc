from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config_utils import default_config, get_required_landmarks
from .keypoints import ExerciseType, KeypointFrame

MIN_LANDMARK_VISIBILITY = 0.5  # a landmark counts as visible strictly above this
MIN_VISIBLE_FRACTION = 0.7


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    reason: Optional[str] = None
    visible_count: int = 0
    required_count: int = 0


def _group_name(landmark_name: str) -> str:
    # left_ankle / right_ankle -> ankles
    part = landmark_name.split("_", 1)[-1]
    return part + "s"


class PoseValidator:
    """Gate deciding whether a frame shows enough of the body to analyze."""

    def __init__(
        self,
        exercise: str,
        config: Dict[str, Any] = None,
        min_visibility: float = MIN_LANDMARK_VISIBILITY,
        min_visible_fraction: float = MIN_VISIBLE_FRACTION,
    ):
        config = config or default_config()
        exercise_type = ExerciseType.parse(exercise)
        key = exercise_type.value if exercise_type else str(exercise)
        self.required_landmarks: List[str] = get_required_landmarks(config, key)
        self.min_visibility = min_visibility
        self.min_visible_fraction = min_visible_fraction

    def validate(self, frame: KeypointFrame) -> ValidationResult:
        required = self.required_landmarks
        visible = [
            name for name in required
            if frame.get(name) is not None and frame.get(name).is_visible(self.min_visibility)
        ]

        groups: Dict[str, bool] = {}
        for name in required:
            groups.setdefault(_group_name(name), False)
            if name in visible:
                groups[_group_name(name)] = True
        unseen_groups = [group for group, seen in groups.items() if not seen]

        enough = len(visible) >= len(required) * self.min_visible_fraction
        if enough and not unseen_groups:
            return ValidationResult(True, None, len(visible), len(required))

        reason = (
            f"Insufficient visible keypoints: {len(visible)} of {len(required)} required are visible"
        )
        if unseen_groups:
            reason += f" (no visible {', '.join(unseen_groups)})"
        return ValidationResult(False, reason, len(visible), len(required))


def validate_pose(frame: KeypointFrame, exercise: str, config: Dict[str, Any] = None) -> ValidationResult:
    return PoseValidator(exercise, config).validate(frame)
