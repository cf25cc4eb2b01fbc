"""
formcoach
---------
Real-time exercise form analysis from body-keypoint streams: joint angles,
rep phases, rep counting, and per-frame form scores with corrective feedback.
"""

from .exercise_analysis import (
    ExerciseType,
    FormAnalyzer,
    FrameAnalysis,
    KeypointFrame,
    Landmark,
    RepPhase,
    SessionSummary,
    WorkoutSession,
    get_form_guidelines,
)
from .scheduler import SingleFlightPoller

__version__ = "0.1.0"
