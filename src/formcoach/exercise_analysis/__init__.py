"""
Exercise analysis package: angles, pose gating, form rules, rep phases and session statistics.
"""

from .analyzer import FormAnalyzer, FrameAnalysis, FrameStatus, WorkoutSession
from .form_rules import ExerciseRule, FormEvaluation, RuleEngine, Violation, evaluate_form
from .guidelines import get_form_guidelines
from .keypoints import LANDMARK_NAMES, ExerciseType, KeypointFrame, Landmark
from .phase_classifier import PhaseClassifier, PhaseThresholds, RepPhase, is_rep_completion, next_phase
from .pose_utils import AngleSet, calculate_angle, calculate_back_angle, extract_angles
from .pose_validator import PoseValidator, ValidationResult, validate_pose
from .session import CommonError, RepRecord, SessionAccumulator, SessionSummary

__all__ = [
    'FormAnalyzer',
    'FrameAnalysis',
    'FrameStatus',
    'WorkoutSession',
    'ExerciseRule',
    'FormEvaluation',
    'RuleEngine',
    'Violation',
    'evaluate_form',
    'get_form_guidelines',
    'LANDMARK_NAMES',
    'ExerciseType',
    'KeypointFrame',
    'Landmark',
    'PhaseClassifier',
    'PhaseThresholds',
    'RepPhase',
    'is_rep_completion',
    'next_phase',
    'AngleSet',
    'calculate_angle',
    'calculate_back_angle',
    'extract_angles',
    'PoseValidator',
    'ValidationResult',
    'validate_pose',
    'CommonError',
    'RepRecord',
    'SessionAccumulator',
    'SessionSummary',
]
