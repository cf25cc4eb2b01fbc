"""Tests for the HTTP service."""

import pytest
from fastapi.testclient import TestClient

from formcoach.api import create_app

from frame_builders import make_squat_frame, squat_scenario


@pytest.fixture
def sink():
    return []


@pytest.fixture
def client(sink):
    app = create_app(summary_sink=lambda session_id, exercise, summary: sink.append((session_id, exercise, summary)))
    return TestClient(app)


def _payloads(frames):
    return [f.to_dict() for f in frames]


class TestStatelessEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_pose_analysis(self, client):
        response = client.post("/analysis/pose", json={
            "exercise": "squat",
            "frame": make_squat_frame(130, 0.0).to_dict(),
            "repNumber": 3,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["repNumber"] == 3
        assert data["formScore"] == 80
        assert data["feedback"] == ["Go deeper in your squat"]

    def test_pose_rejected_frame(self, client):
        frame = make_squat_frame(130, 0.0, drop=("left_ankle", "right_ankle"))
        data = client.post("/analysis/pose", json={"exercise": "squat", "frame": frame.to_dict()}).json()
        assert data["status"] == "rejected"
        assert data["formScore"] is None

    def test_batch(self, client):
        response = client.post("/analysis/batch", json={"exercise": "squat", "frames": _payloads(squat_scenario())})
        assert response.status_code == 200
        data = response.json()
        assert len(data["frameAnalyses"]) == 10
        assert data["sessionSummary"]["totalReps"] == 1
        assert data["sessionSummary"]["averageScore"] == 86

    def test_rep_count(self, client):
        data = client.post("/analysis/rep-count", json={"exercise": "squat", "frames": _payloads(squat_scenario())}).json()
        assert data == {"totalReps": 1, "lastPhase": "starting"}

    def test_guidelines(self, client):
        data = client.get("/analysis/guidelines/deadlift").json()
        assert data["keyPoints"]
        assert client.get("/analysis/guidelines/plank").json() == {"keyPoints": [], "commonMistakes": []}

    def test_invalid_visibility_rejected(self, client):
        frame = make_squat_frame(130).to_dict()
        frame["landmarks"]["left_knee"]["visibility"] = 1.5
        response = client.post("/analysis/pose", json={"exercise": "squat", "frame": frame})
        assert response.status_code == 422


class TestSessionEndpoints:

    def test_session_lifecycle(self, client, sink):
        created = client.post("/sessions", json={"exercise": "squat"}).json()
        session_id = created["sessionId"]
        assert created["exercise"] == "squat"

        for frame in squat_scenario():
            response = client.post(f"/sessions/{session_id}/frames", json=frame.to_dict())
            assert response.status_code == 200
        assert response.json()["repNumber"] == 1

        summary = client.post(f"/sessions/{session_id}/end").json()
        assert summary["totalReps"] == 1
        assert summary["formAccuracy"] == 100
        assert summary["commonErrors"] == [{"errorType": "shallow_depth", "count": 7, "percentage": 70}]
        assert len(sink) == 1
        assert sink[0][0] == session_id
        assert sink[0][2].total_reps == 1

        assert client.post(f"/sessions/{session_id}/end").status_code == 404

    def test_unknown_session(self, client):
        response = client.post("/sessions/nope/frames", json=make_squat_frame(170).to_dict())
        assert response.status_code == 404

    def test_busy_session_returns_409(self, client):
        session_id = client.post("/sessions", json={"exercise": "squat"}).json()["sessionId"]
        _, session = client.app.state.registry.get(session_id)
        session._in_flight.acquire()
        try:
            response = client.post(f"/sessions/{session_id}/frames", json=make_squat_frame(170).to_dict())
        finally:
            session._in_flight.release()
        assert response.status_code == 409

    def test_sessions_do_not_share_state(self, client):
        first = client.post("/sessions", json={"exercise": "squat"}).json()["sessionId"]
        second = client.post("/sessions", json={"exercise": "squat"}).json()["sessionId"]
        for frame in squat_scenario():
            client.post(f"/sessions/{first}/frames", json=frame.to_dict())
        assert client.post(f"/sessions/{second}/end").json()["totalReps"] == 0
        assert client.post(f"/sessions/{first}/end").json()["totalReps"] == 1


class TestUntimestampedRequests:

    def test_rep_count_without_timestamps(self, client):
        frames = []
        for _ in range(3):
            for frame in squat_scenario():
                payload = frame.to_dict()
                del payload["timestamp"]
                frames.append(payload)
        data = client.post("/analysis/rep-count", json={"exercise": "squat", "frames": frames}).json()
        assert data == {"totalReps": 3, "lastPhase": "starting"}


class TestAnalyzerCache:

    def test_unknown_exercises_are_not_cached(self, client):
        for i in range(20):
            response = client.post("/analysis/pose", json={"exercise": f"junk{i}", "frame": make_squat_frame(170).to_dict()})
            assert response.status_code == 200
            assert response.json()["phase"] == "unknown"
        assert len(client.app.state.registry._analyzers) == 0

    def test_exercise_names_share_one_analyzer(self, client):
        registry = client.app.state.registry
        assert registry.analyzer_for(" Squat ") is registry.analyzer_for("squat")
        assert list(registry._analyzers) == ["squat"]
