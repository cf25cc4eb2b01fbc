from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..exercise_analysis.keypoints import KeypointFrame, Landmark


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LandmarkIn(CamelModel):
    x: float
    y: float
    z: Optional[float] = None
    visibility: float = Field(default=1.0, ge=0.0, le=1.0)


class FrameIn(CamelModel):
    timestamp: Optional[float] = None
    landmarks: Dict[str, LandmarkIn] = Field(default_factory=dict)

    def to_keypoint_frame(self) -> KeypointFrame:
        return KeypointFrame(
            timestamp=self.timestamp,
            landmarks={name: Landmark(**lm.model_dump()) for name, lm in self.landmarks.items()},
        )


class PoseAnalysisRequest(CamelModel):
    exercise: str
    frame: FrameIn
    rep_number: Optional[int] = None


class FrameSequenceRequest(CamelModel):
    exercise: str
    frames: List[FrameIn]

    def keypoint_frames(self) -> List[KeypointFrame]:
        return [frame.to_keypoint_frame() for frame in self.frames]


class RepCountResponse(CamelModel):
    total_reps: int
    last_phase: str


class BatchAnalysisResponse(CamelModel):
    frame_analyses: List[Dict[str, Any]]
    session_summary: Dict[str, Any]


class GuidelinesResponse(CamelModel):
    key_points: List[str]
    common_mistakes: List[str]


class SessionCreateRequest(CamelModel):
    exercise: str


class SessionCreateResponse(CamelModel):
    session_id: str
    exercise: str
