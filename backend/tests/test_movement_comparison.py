"""Tests for DTW trajectory comparison."""

import numpy as np
import pytest

from formcoach.vision import movement_comparison
from formcoach.vision.movement_comparison import (
    SQUAT_REFERENCE,
    TOO_SHORT_DISTANCE,
    ReferenceTrajectory,
    averaged_profile,
    compare_rep,
    dtw_distance,
    resample_trajectory,
    score_feedback,
)
from formcoach.vision.telemetry import NullTelemetry, RecordingTelemetry


# ============================================================================
# Resampling
# ============================================================================

class TestResample:

    def test_short_trajectory_unchanged(self):
        values = [1.0, 2.0, 3.0]
        assert list(resample_trajectory(values, 20)) == values

    def test_long_trajectory_downsampled_keeps_endpoints(self):
        values = list(np.linspace(10, 95, 57))
        out = resample_trajectory(values, 20)
        assert len(out) == 20
        assert out[0] == pytest.approx(values[0])
        assert out[-1] == pytest.approx(values[-1])

    def test_monotonic_input_stays_ordered(self):
        values = [float(v) for v in range(100)]
        out = resample_trajectory(values, 20)
        assert np.all(np.diff(out) > 0)


# ============================================================================
# DTW
# ============================================================================

class TestDTW:

    def test_identical_sequences_have_zero_distance(self):
        seq = [1.0, 5.0, 9.0, 5.0, 1.0]
        assert dtw_distance(seq, seq) == 0.0

    def test_time_stretch_is_free(self):
        a = [0.0, 1.0, 2.0, 1.0, 0.0]
        b = [0.0, 0.0, 1.0, 1.0, 2.0, 2.0, 1.0, 0.0]
        assert dtw_distance(a, b) == 0.0

    def test_symmetric(self):
        a = [0.0, 3.0, 7.0, 2.0]
        b = [1.0, 2.0, 8.0, 8.0, 1.0]
        assert dtw_distance(a, b) == pytest.approx(dtw_distance(b, a))

    def test_constant_offset(self):
        assert dtw_distance([1.0, 1.0, 1.0], [3.0, 3.0, 3.0]) == pytest.approx(6.0)


# ============================================================================
# Rep comparison
# ============================================================================

class TestCompareRep:

    def test_reference_against_itself_is_perfect(self):
        result = compare_rep(list(SQUAT_REFERENCE.samples))
        assert result.distance == 0.0
        assert result.score == 100
        assert result.feedback == "Excellent form!"

    def test_too_short(self):
        result = compare_rep([30.0, 50.0, 70.0, 40.0])
        assert result.score == 0
        assert result.feedback == "Rep too short to analyze"
        assert result.distance == TOO_SHORT_DISTANCE

    def test_score_is_clamped_for_poor_reps(self):
        result = compare_rep([0.0] * 30)
        assert result.score == 0
        assert result.feedback == "Try to match the movement pattern"

    def test_custom_reference_max_distance(self):
        reference = ReferenceTrajectory(name="flat", samples=(10.0, 10.0, 10.0), max_distance=100.0)
        # Every sample is 5 off; 5 samples aligned to the reference cost 25
        result = compare_rep([15.0] * 5, reference)
        assert result.distance == pytest.approx(25.0)
        assert result.score == 75
        assert result.feedback == "Good rep!"

    def test_emits_dtw_event(self):
        telemetry = RecordingTelemetry()
        compare_rep(list(SQUAT_REFERENCE.samples), telemetry=telemetry)
        events = telemetry.named("dtw_comparison")
        assert len(events) == 1
        assert events[0].data["score"] == 100
        assert events[0].data["averaged"] == list(SQUAT_REFERENCE.samples)

    def test_disabled_sink_skips_profile(self, monkeypatch):
        def fail(values):
            raise AssertionError("profile built without an enabled sink")

        monkeypatch.setattr(movement_comparison, "averaged_profile", fail)

        for sink in (None, NullTelemetry()):
            result = compare_rep(list(SQUAT_REFERENCE.samples), telemetry=sink)
            assert result.score == 100

    def test_explicit_lengths_override_settings(self):
        result = compare_rep(list(SQUAT_REFERENCE.samples), min_length=50)
        assert result.feedback == "Rep too short to analyze"
        assert result.distance == TOO_SHORT_DISTANCE


@pytest.mark.parametrize("score,expected", [
    (100, "Excellent form!"),
    (80, "Excellent form!"),
    (79.9, "Good rep!"),
    (60, "Good rep!"),
    (45, "Work on consistency"),
    (39, "Try to match the movement pattern"),
])
def test_score_feedback_bands(score, expected):
    assert score_feedback(score) == expected


def test_averaged_profile_buckets():
    assert averaged_profile([]) == []
    assert averaged_profile(list(range(20))) == [0, 2, 4, 6, 8, 10, 12, 14, 16, 18]
