from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from ..exercise_analysis.keypoints import KeypointFrame


class BasePoseDetector(ABC):
    """Base class for pose-estimation providers feeding the analysis engine."""

    @abstractmethod
    def detect(self, frame: np.ndarray, timestamp: float) -> Optional[KeypointFrame]:
        """
        Detect pose landmarks in the given image.

        Args:
            frame: Input image as numpy array (BGR)
            timestamp: Capture time in seconds

        Returns:
            KeypointFrame with the detected landmarks, or None if no pose was found
        """
        pass

    @abstractmethod
    def get_landmark_names(self) -> List[str]:
        """
        Get the list of landmark names that this detector provides.

        Returns:
            List of landmark names
        """
        pass

    def close(self) -> None:
        """Release provider resources."""
