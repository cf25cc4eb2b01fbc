"""Tests for the rep phase state machine."""

import pytest

from formcoach.exercise_analysis.phase_classifier import (
    PhaseClassifier,
    PhaseThresholds,
    RepPhase,
    is_rep_completion,
    next_phase,
)
from formcoach.exercise_analysis.pose_utils import AngleSet

SQUAT = PhaseThresholds("knee_mean", 160.0, 120.0)


def _knees(angle):
    return AngleSet(left_knee=angle, right_knee=angle)


def _feed(classifier, angles, interval=0.2):
    return [classifier.update(_knees(a), i * interval) for i, a in enumerate(angles)]


# ============================================================================
# Pure transition
# ============================================================================

class TestNextPhase:

    @pytest.mark.parametrize("previous,angle,expected", [
        (RepPhase.STARTING, 170.0, RepPhase.STARTING),
        (RepPhase.STARTING, 150.0, RepPhase.DESCENDING),
        (RepPhase.DESCENDING, 140.0, RepPhase.DESCENDING),
        (RepPhase.DESCENDING, 120.0, RepPhase.BOTTOM),
        (RepPhase.BOTTOM, 130.0, RepPhase.ASCENDING),
        (RepPhase.ASCENDING, 150.0, RepPhase.ASCENDING),
        (RepPhase.ASCENDING, 161.0, RepPhase.STARTING),
        (RepPhase.COMPLETED, 150.0, RepPhase.DESCENDING),
    ])
    def test_transitions(self, previous, angle, expected):
        assert next_phase(previous, angle, SQUAT) == expected

    def test_start_threshold_is_exclusive(self):
        assert next_phase(RepPhase.STARTING, 160.0, SQUAT) == RepPhase.DESCENDING

    def test_missing_angle_holds_phase(self):
        assert next_phase(RepPhase.BOTTOM, None, SQUAT) == RepPhase.BOTTOM

    def test_rep_completion_predicate(self):
        assert is_rep_completion(RepPhase.BOTTOM, RepPhase.ASCENDING)
        assert not is_rep_completion(RepPhase.ASCENDING, RepPhase.STARTING)
        assert not is_rep_completion(RepPhase.DESCENDING, RepPhase.BOTTOM)


# ============================================================================
# Stateful classifier
# ============================================================================

class TestPhaseClassifier:

    def test_squat_scenario_counts_one_rep(self):
        classifier = PhaseClassifier(SQUAT)
        results = _feed(classifier, [170, 170, 150, 110, 95, 90, 95, 115, 150, 170])
        phases = [phase for phase, _ in results]
        collapsed = [p for i, p in enumerate(phases) if i == 0 or phases[i - 1] != p]
        assert collapsed == [RepPhase.STARTING, RepPhase.DESCENDING, RepPhase.BOTTOM,
                             RepPhase.ASCENDING, RepPhase.STARTING]
        assert classifier.rep_count == 1
        assert [counted for _, counted in results].index(True) == 8

    def test_completed_is_never_emitted(self):
        classifier = PhaseClassifier(SQUAT)
        phases = [phase for phase, _ in _feed(classifier, [170, 150, 110, 90, 130, 150, 170] * 3, interval=0.5)]
        assert RepPhase.COMPLETED not in phases
        assert classifier.rep_count == 3

    def test_hysteresis_ignores_single_frame_jitter(self):
        classifier = PhaseClassifier(SQUAT, min_phase_frames=3)
        _feed(classifier, [170, 150, 170, 170])
        assert classifier.phase == RepPhase.STARTING

    def test_hysteresis_accepts_after_window(self):
        classifier = PhaseClassifier(SQUAT, min_phase_frames=3)
        _feed(classifier, [170, 150, 150, 150])
        assert classifier.phase == RepPhase.DESCENDING

    def test_cooldown_suppresses_fast_second_rep(self):
        classifier = PhaseClassifier(SQUAT, rep_cooldown=1.0)
        _feed(classifier, [170, 110, 130, 110, 130], interval=0.1)
        assert classifier.rep_count == 1

    def test_reps_after_cooldown_are_counted(self):
        classifier = PhaseClassifier(SQUAT, rep_cooldown=1.0)
        _feed(classifier, [170, 110, 130, 170, 110, 130], interval=0.5)
        assert classifier.rep_count == 2

    def test_rep_count_is_monotone(self):
        classifier = PhaseClassifier(SQUAT)
        counts = []
        for i, angle in enumerate([170, 110, 130, 170, None, 110, 150, 170] * 3):
            classifier.update(_knees(angle), i * 0.5)
            counts.append(classifier.rep_count)
        assert counts == sorted(counts)

    def test_missing_angles_hold_phase(self):
        classifier = PhaseClassifier(SQUAT)
        _feed(classifier, [170, 110])
        phase, counted = classifier.update(AngleSet(), 1.0)
        assert phase == RepPhase.BOTTOM
        assert not counted

    def test_no_thresholds_reports_unknown(self):
        classifier = PhaseClassifier.for_exercise("plank")
        assert classifier.phase == RepPhase.UNKNOWN
        assert classifier.update(_knees(90), 0.0) == (RepPhase.UNKNOWN, False)

    def test_for_exercise_reads_config(self):
        classifier = PhaseClassifier.for_exercise("deadlift")
        assert classifier.thresholds == PhaseThresholds("hip_mean", 160.0, 110.0)
        assert classifier.min_phase_frames == 1
        assert classifier.rep_cooldown == pytest.approx(1.0)

    def test_pushup_driven_by_elbows(self):
        classifier = PhaseClassifier.for_exercise("pushup")
        classifier.update(AngleSet(left_knee=90.0, left_elbow=170.0, right_elbow=170.0), 0.0)
        phase, _ = classifier.update(AngleSet(left_knee=170.0, left_elbow=100.0, right_elbow=100.0), 0.2)
        assert phase == RepPhase.BOTTOM
