import json
import logging
import os
from typing import Any, Dict, List, Optional


def get_logger(name: str) -> logging.Logger:
    """Return a named logger with the shared console handler attached once."""
    logger = logging.getLogger(name)
    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


logger = get_logger("formcoach.config")

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "exercise_config.json")


def load_exercise_config(config_path: str = None) -> Dict[str, Any]:
    """Load the exercise config from JSON file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    with open(config_path, "r") as f:
        return json.load(f)


_EXERCISE_CONFIG = load_exercise_config()


def default_config() -> Dict[str, Any]:
    return _EXERCISE_CONFIG


def _exercise_section(config: Dict[str, Any], exercise: str) -> Dict[str, Any]:
    return config["exercises"][exercise]


def get_required_landmarks(config: Dict[str, Any], exercise: str) -> List[str]:
    try:
        return list(_exercise_section(config, exercise)["required_landmarks"])
    except KeyError as e:
        fallback = config.get("fallback_exercise", "squat")
        logger.warning(f"No required_landmarks for exercise {exercise!r} ({e}); using {fallback} set")
        return list(_exercise_section(config, fallback)["required_landmarks"])


def get_phase_thresholds(config: Dict[str, Any], exercise: str) -> Optional[Dict[str, Any]]:
    """Phase thresholds for an exercise, or None when it has no phase model."""
    try:
        return dict(_exercise_section(config, exercise)["phase"])
    except KeyError:
        return None


def get_rule_specs(config: Dict[str, Any], exercise: str) -> List[Dict[str, Any]]:
    try:
        return list(_exercise_section(config, exercise)["rules"])
    except KeyError:
        return []


def get_min_phase_frames(config: Dict[str, Any]) -> int:
    try:
        return int(config["phase_classifier"]["min_phase_frames"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Could not load min_phase_frames from config: {e}")
        return 1


def get_rep_cooldown(config: Dict[str, Any]) -> float:
    try:
        return float(config["phase_classifier"]["rep_cooldown"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Could not load rep_cooldown from config: {e}")
        return 1.0


def get_camera_min_phase_frames(config: Dict[str, Any]) -> int:
    """Hysteresis window used by the live camera loop, which sees many more frames per phase."""
    try:
        return int(config["phase_classifier"]["camera_min_phase_frames"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Could not load camera_min_phase_frames from config: {e}")
        return get_min_phase_frames(config)


def get_frame_interval(config: Dict[str, Any]) -> float:
    """Seconds assumed between consecutive frames that arrive without a timestamp."""
    try:
        return float(config["phase_classifier"]["frame_interval"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Could not load frame_interval from config: {e}")
        return 0.5
