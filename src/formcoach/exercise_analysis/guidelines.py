"""
Static form guidance per exercise, keyed by exercise type value.
"""
from typing import Dict, List

from .keypoints import ExerciseType

FORM_GUIDELINES: Dict[str, Dict[str, List[str]]] = {
    "squat": {
        "keyPoints": [
            "Feet shoulder-width apart",
            "Knees track over toes",
            "Descend until thighs are parallel to ground",
            "Keep chest up and back straight",
            "Drive through heels to stand",
        ],
        "commonMistakes": [
            "Not going deep enough",
            "Knees caving inward",
            "Leaning too far forward",
            "Rising on toes",
        ],
    },
    "pushup": {
        "keyPoints": [
            "Hands slightly wider than shoulders",
            "Body in straight line from head to heels",
            "Lower until chest nearly touches ground",
            "Push up explosively",
            "Keep core engaged throughout",
        ],
        "commonMistakes": [
            "Sagging hips",
            "Not going low enough",
            "Flaring elbows too wide",
            "Looking up instead of down",
        ],
    },
    "deadlift": {
        "keyPoints": [
            "Feet hip-width apart",
            "Bar close to shins",
            "Neutral spine throughout",
            "Hinge at hips first",
            "Drive through heels",
        ],
        "commonMistakes": [
            "Rounding the back",
            "Bar drifting away from body",
            "Not engaging lats",
            "Hyperextending at top",
        ],
    },
}


def get_form_guidelines(exercise: str) -> Dict[str, List[str]]:
    """Key points and common mistakes for an exercise; empty lists when none are written."""
    exercise_type = ExerciseType.parse(exercise)
    guidelines = FORM_GUIDELINES.get(exercise_type.value) if exercise_type else None
    if guidelines is None:
        return {"keyPoints": [], "commonMistakes": []}
    return {key: list(values) for key, values in guidelines.items()}
