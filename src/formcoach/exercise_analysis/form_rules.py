from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .config_utils import default_config, get_logger, get_rule_specs
from .keypoints import ExerciseType
from .pose_utils import AngleSet, pair_difference, pair_mean

logger = get_logger("formcoach.rules")

GOOD_FORM_THRESHOLD = 70
MAX_SCORE = 100

# --- Metric Registry ---
METRIC_REGISTRY: Dict[str, Callable[[AngleSet], Optional[float]]] = {}


def register_metric(name):
    def decorator(func):
        METRIC_REGISTRY[name] = func
        return func
    return decorator


@register_metric("knee_mean")
def _knee_mean(angles: AngleSet) -> Optional[float]:
    return pair_mean(angles, "knee")


@register_metric("hip_mean")
def _hip_mean(angles: AngleSet) -> Optional[float]:
    return pair_mean(angles, "hip")


@register_metric("elbow_mean")
def _elbow_mean(angles: AngleSet) -> Optional[float]:
    return pair_mean(angles, "elbow")


@register_metric("knee_diff")
def _knee_diff(angles: AngleSet) -> Optional[float]:
    return pair_difference(angles, "knee")


@register_metric("back")
def _back(angles: AngleSet) -> Optional[float]:
    return angles.back


def compute_metric(name: str, angles: AngleSet) -> Optional[float]:
    return METRIC_REGISTRY[name](angles)


@dataclass(frozen=True)
class Violation:
    rule: str
    message: str
    correction: str
    error_type: str
    penalty: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "message": self.message,
            "correction": self.correction,
            "errorType": self.error_type,
            "penalty": self.penalty,
        }


@dataclass(frozen=True)
class ExerciseRule:
    """A threshold check on one metric; fails when the metric leaves [min, max]."""
    name: str
    metric: str
    message: str
    correction: str
    error_type: str
    penalty: int
    min: Optional[float] = None
    max: Optional[float] = None

    def check(self, angles: AngleSet) -> Optional[Violation]:
        value = compute_metric(self.metric, angles)
        if value is None:
            return None
        too_low = self.min is not None and value < self.min
        too_high = self.max is not None and value > self.max
        if not (too_low or too_high):
            return None
        return Violation(self.name, self.message, self.correction, self.error_type, self.penalty)

    @classmethod
    def from_spec(cls, spec: Dict[str, Any]) -> "ExerciseRule":
        if spec["metric"] not in METRIC_REGISTRY:
            raise ValueError(f"Unknown metric {spec['metric']!r} in rule {spec.get('name')!r}")
        return cls(
            name=spec["name"],
            metric=spec["metric"],
            message=spec["message"],
            correction=spec["correction"],
            error_type=spec["error_type"],
            penalty=int(spec["penalty"]),
            min=spec.get("min"),
            max=spec.get("max"),
        )


@dataclass
class FormEvaluation:
    violations: List[Violation] = field(default_factory=list)
    form_score: int = MAX_SCORE

    @property
    def is_good_form(self) -> bool:
        return self.form_score >= GOOD_FORM_THRESHOLD


class RuleEngine:
    """Evaluates an exercise's fixed rule set against per-frame angles."""

    def __init__(self, exercise: str, config: Dict[str, Any] = None):
        config = config or default_config()
        exercise_type = ExerciseType.parse(exercise)
        self.supported = exercise_type is not None
        if exercise_type is None:
            logger.warning(f"Unsupported exercise type {exercise!r}: no form rules applied")
            self.rules: List[ExerciseRule] = []
        else:
            self.rules = [ExerciseRule.from_spec(spec) for spec in get_rule_specs(config, exercise_type.value)]

    def evaluate(self, angles: AngleSet) -> FormEvaluation:
        evaluation = FormEvaluation()
        score = MAX_SCORE
        for rule in self.rules:
            violation = rule.check(angles)
            if violation is not None:
                evaluation.violations.append(violation)
                score -= violation.penalty
        evaluation.form_score = min(MAX_SCORE, max(0, score))
        return evaluation


def evaluate_form(angles: AngleSet, exercise: str, config: Dict[str, Any] = None) -> FormEvaluation:
    return RuleEngine(exercise, config).evaluate(angles)
