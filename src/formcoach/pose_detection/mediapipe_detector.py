from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

from .base_detector import BasePoseDetector
from ..exercise_analysis.keypoints import LANDMARK_NAMES, KeypointFrame, Landmark

# MediaPipe Pose landmark index for each name in the engine vocabulary
MEDIAPIPE_INDICES = {
    "nose": 0,
    "left_eye": 2,
    "right_eye": 5,
    "left_ear": 7,
    "right_ear": 8,
    "left_shoulder": 11,
    "right_shoulder": 12,
    "left_elbow": 13,
    "right_elbow": 14,
    "left_wrist": 15,
    "right_wrist": 16,
    "left_hip": 23,
    "right_hip": 24,
    "left_knee": 25,
    "right_knee": 26,
    "left_ankle": 27,
    "right_ankle": 28,
}


class MediaPipePoseDetector(BasePoseDetector):
    """MediaPipe Pose adapter producing keypoint frames in normalized image coordinates."""

    def __init__(self, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5, model_complexity: int = 1):
        """
        Initialize the MediaPipe pose detector.

        Args:
            min_detection_confidence: Minimum confidence for pose detection
            min_tracking_confidence: Minimum confidence for pose tracking
            model_complexity: Complexity of the pose landmark model (0, 1, or 2)
        """
        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence
        )

    def detect(self, frame: np.ndarray, timestamp: float) -> Optional[KeypointFrame]:
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.pose.process(frame_rgb)

        if not results.pose_landmarks:
            return None

        raw = results.pose_landmarks.landmark
        landmarks = {}
        for name in LANDMARK_NAMES:
            point = raw[MEDIAPIPE_INDICES[name]]
            landmarks[name] = Landmark(x=point.x, y=point.y, z=point.z, visibility=point.visibility)
        return KeypointFrame(timestamp=timestamp, landmarks=landmarks)

    def get_landmark_names(self) -> List[str]:
        return list(LANDMARK_NAMES)

    def close(self) -> None:
        self.pose.close()
