from typing import Any, Dict

from fastapi import FastAPI, HTTPException

from .. import __version__
from ..exercise_analysis.analyzer import FrameStatus
from ..exercise_analysis.guidelines import get_form_guidelines
from .schemas import (
    BatchAnalysisResponse,
    FrameIn,
    FrameSequenceRequest,
    GuidelinesResponse,
    PoseAnalysisRequest,
    RepCountResponse,
    SessionCreateRequest,
    SessionCreateResponse,
)
from .sessions import SessionRegistry, SummarySink


def create_app(config_path: str = None, summary_sink: SummarySink = None) -> FastAPI:
    """Build the form analysis service around a fresh session registry."""
    registry = SessionRegistry(config_path=config_path, summary_sink=summary_sink)
    app = FastAPI(title="formcoach", version=__version__)
    app.state.registry = registry

    @app.get("/health")
    def health_check():
        return {"status": "ok", "activeSessions": len(registry)}

    @app.post("/analysis/pose")
    def analyze_pose(request: PoseAnalysisRequest) -> Dict[str, Any]:
        analyzer = registry.analyzer_for(request.exercise)
        result = analyzer.analyze_frame(request.frame.to_keypoint_frame(), rep_number=request.rep_number)
        return result.to_dict()

    @app.post("/analysis/batch", response_model=BatchAnalysisResponse)
    def analyze_batch(request: FrameSequenceRequest):
        analyzer = registry.analyzer_for(request.exercise)
        analyses, summary = analyzer.analyze_batch(request.keypoint_frames())
        return BatchAnalysisResponse(
            frame_analyses=[a.to_dict() for a in analyses],
            session_summary=summary.to_dict(),
        )

    @app.post("/analysis/rep-count", response_model=RepCountResponse)
    def count_reps(request: FrameSequenceRequest):
        analyzer = registry.analyzer_for(request.exercise)
        total, phase = analyzer.count_reps(request.keypoint_frames())
        return RepCountResponse(total_reps=total, last_phase=phase.value)

    @app.get("/analysis/guidelines/{exercise}", response_model=GuidelinesResponse)
    def guidelines(exercise: str):
        data = get_form_guidelines(exercise)
        return GuidelinesResponse(key_points=data["keyPoints"], common_mistakes=data["commonMistakes"])

    @app.post("/sessions", response_model=SessionCreateResponse)
    def create_session(request: SessionCreateRequest):
        session = registry.create(request.exercise)
        return SessionCreateResponse(session_id=session.session_id, exercise=session.exercise)

    @app.post("/sessions/{session_id}/frames")
    def submit_frame(session_id: str, frame: FrameIn) -> Dict[str, Any]:
        entry = registry.get(session_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
        analyzer, session = entry
        result = analyzer.analyze_frame(frame.to_keypoint_frame(), session)
        if result.status == FrameStatus.BUSY:
            raise HTTPException(status_code=409, detail=result.error_message)
        return result.to_dict()

    @app.post("/sessions/{session_id}/end")
    def end_session(session_id: str) -> Dict[str, Any]:
        summary = registry.end(session_id)
        if summary is None:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
        return summary.to_dict()

    return app
