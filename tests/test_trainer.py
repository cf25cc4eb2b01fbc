"""Tests for the capture loop, with a scripted capture and detector in place of OpenCV and MediaPipe."""

from formcoach.exercise_analysis.analyzer import FormAnalyzer, FrameStatus
from formcoach.pose_detection.base_detector import BasePoseDetector
from formcoach.trainer import VirtualTrainer

from frame_builders import FRAME_INTERVAL, SQUAT_SCENARIO_ANGLES, make_squat_frame


class ScriptedCapture:
    def __init__(self, count):
        self.remaining = count
        self.released = False

    def read(self):
        if self.remaining <= 0:
            return False, None
        self.remaining -= 1
        return True, object()

    def release(self):
        self.released = True


class ScriptedDetector(BasePoseDetector):
    """Returns the next scripted knee angle as a frame; None entries mean no pose found."""

    def __init__(self, angles):
        self.angles = list(angles)
        self.closed = False

    def detect(self, frame, timestamp):
        angle = self.angles.pop(0)
        if angle is None:
            return None
        return make_squat_frame(angle, timestamp)

    def get_landmark_names(self):
        return []

    def close(self):
        self.closed = True


class TestVirtualTrainer:

    def test_sequential_run_counts_rep(self):
        angles = SQUAT_SCENARIO_ANGLES
        capture = ScriptedCapture(len(angles))
        detector = ScriptedDetector(angles)
        trainer = VirtualTrainer(FormAnalyzer("squat"), detector, capture)
        summary = trainer.run_sequential(fps=1 / FRAME_INTERVAL)
        assert summary.total_reps == 1
        assert summary.total_frames == 10
        assert capture.released
        assert detector.closed
        assert trainer.summary_dict()["totalReps"] == 1

    def test_process_next_without_pose(self):
        trainer = VirtualTrainer(FormAnalyzer("squat"), ScriptedDetector([None, 170]), ScriptedCapture(2))
        assert trainer.process_next(0.0) is None
        assert trainer.missing_pose_counter == 1
        result = trainer.process_next(0.2)
        assert result.status == FrameStatus.ANALYZED
        assert trainer.missing_pose_counter == 0

    def test_process_next_uses_clock(self):
        seen = []
        trainer = VirtualTrainer(FormAnalyzer("squat"), ScriptedDetector([170]), ScriptedCapture(1),
                                 on_result=seen.append, clock=lambda: 42.0)
        trainer.process_next()
        assert seen[0].timestamp == 42.0

    def test_failed_read_returns_none(self):
        trainer = VirtualTrainer(FormAnalyzer("squat"), ScriptedDetector([]), ScriptedCapture(0))
        assert trainer.process_next() is None

    def test_polling_run_stops_and_summarizes(self):
        capture = ScriptedCapture(1000)
        trainer = VirtualTrainer(FormAnalyzer("squat"), ScriptedDetector([170] * 1000), capture)
        summary = trainer.run_polling(interval=0.01, duration=0.3)
        assert capture.released
        assert summary.total_reps == 0
        assert summary.total_frames >= 1
