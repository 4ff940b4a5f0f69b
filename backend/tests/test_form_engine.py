"""Tests for the dispatcher, analyzer registry and exercise schema."""

import pytest
from pydantic import ValidationError

from formcoach.config import Settings
from formcoach.schemas.exercise import ExerciseConfig
from formcoach.vision.analyzers import (
    ANALYZER_REGISTRY,
    ExerciseAnalyzer,
    GenericAnalyzer,
    get_analyzer,
    register_analyzer,
)
from formcoach.vision.analyzers.squat import SquatAnalyzer
from formcoach.vision.form_engine import FormEngine, create_form_engine, resolve_analyzer
from formcoach.vision.landmarks import LandmarkCountError, PoseFrame
from formcoach.vision.results import AnalysisResult
from formcoach.vision.telemetry import NullTelemetry, RecordingTelemetry


# ============================================================================
# Exercise schema
# ============================================================================

class TestExerciseConfig:

    def test_defaults(self):
        exercise = ExerciseConfig(id="abc")
        assert exercise.thresholds == {}
        assert exercise.fallback_phase == "neutral"

    def test_fallback_phase_is_first_configured_phase(self):
        exercise = ExerciseConfig.model_validate({
            "id": "plank",
            "detection_config": {"phases": ["hold", "rest"]},
        })
        assert exercise.fallback_phase == "hold"

    def test_non_finite_threshold_rejected(self):
        with pytest.raises(ValidationError):
            ExerciseConfig.model_validate({
                "id": "squat",
                "detection_config": {"thresholds": {"min_depth_angle": float("nan")}},
            })

    def test_non_numeric_threshold_rejected(self):
        with pytest.raises(ValidationError):
            ExerciseConfig.model_validate({
                "id": "squat",
                "detection_config": {"thresholds": {"min_depth_angle": "deep"}},
            })


# ============================================================================
# Registry & analyzer resolution
# ============================================================================

class TestRegistry:

    def test_builtin_exercises_registered(self):
        for slug in (
            "squat", "goblet-squat", "cat-camel", "cobra-stretch", "dead-bug",
            "standing-lumbar-flexion", "standing-lumbar-extension",
            "standing-lumbar-side-bending", "romanian-deadlift", "lunge",
            "lunge-with-rotation",
        ):
            assert get_analyzer(slug) is not None, slug

    def test_aliases_share_one_instance(self):
        assert get_analyzer("squat") is get_analyzer("goblet-squat")

    def test_unknown_and_empty_lookups(self):
        assert get_analyzer("handstand") is None
        assert get_analyzer(None) is None
        assert get_analyzer("") is None

    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError, match="already registered"):
            @register_analyzer("squat")
            class AnotherSquat(ExerciseAnalyzer):
                pass

    def test_register_new_analyzer(self):
        try:
            @register_analyzer("test-wall-sit")
            class WallSitAnalyzer(ExerciseAnalyzer):
                name = "wall-sit"

                def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
                    return AnalysisResult(phase="hold", form_score=100)

            assert isinstance(get_analyzer("test-wall-sit"), WallSitAnalyzer)
        finally:
            ANALYZER_REGISTRY.pop("test-wall-sit", None)

    def test_slug_wins_over_id(self):
        analyzer = resolve_analyzer(ExerciseConfig(id="lunge", slug="squat"))
        assert isinstance(analyzer, SquatAnalyzer)

    def test_id_used_when_slug_unknown(self):
        analyzer = resolve_analyzer(ExerciseConfig(id="squat", slug="my-custom-squat"))
        assert isinstance(analyzer, SquatAnalyzer)

    def test_unknown_exercise_falls_back(self):
        analyzer = resolve_analyzer(ExerciseConfig(id="42", slug="handstand"))
        assert isinstance(analyzer, GenericAnalyzer)


# ============================================================================
# FormEngine
# ============================================================================

class TestFormEngine:

    def test_fallback_reports_first_phase_and_never_counts(self, standing_landmarks):
        engine = FormEngine({
            "id": "plank",
            "detection_config": {"phases": ["hold", "rest"]},
        })
        assert engine.is_fallback

        results = [engine.analyze(standing_landmarks, timestamp=i / 30.0) for i in range(10)]

        assert all(r.phase == "hold" for r in results)
        assert not any(r.rep_completed for r in results)
        assert all(r.findings == [] for r in results)
        assert results[0].form_score == 90
        assert results[0].confidence == pytest.approx(0.9)
        assert engine.rep_count == 0

    def test_wrong_landmark_count_rejected(self, standing_landmarks):
        engine = FormEngine({"id": "squat", "slug": "squat"})
        with pytest.raises(LandmarkCountError):
            engine.analyze(standing_landmarks[:25], timestamp=0.0)
        with pytest.raises(LandmarkCountError):
            engine.process_frame(PoseFrame(landmarks=[], timestamp=0.0))

    def test_landmark_count_from_settings(self, standing_landmarks):
        engine = FormEngine({"id": "squat"}, settings=Settings(landmark_count=25))
        with pytest.raises(LandmarkCountError):
            engine.analyze(standing_landmarks, timestamp=0.0)

    def test_analyze_defaults_timestamp(self, standing_landmarks):
        engine = FormEngine({"id": "plank"})
        result = engine.analyze(standing_landmarks)
        assert result.phase == "neutral"

    def test_states_are_independent(self, make_squat_frame):
        first = FormEngine({"id": "squat"})
        second = FormEngine({"id": "squat"})
        assert first.analyzer is second.analyzer

        first.process_frame(make_squat_frame(10, 0.0))
        first.process_frame(make_squat_frame(30, 1 / 30))

        assert first.state.last_phase == "descending"
        assert second.state.last_phase == "standing"

    def test_reset_and_summary(self, make_squat_frame):
        engine = FormEngine({"id": "squat", "slug": "squat"})
        assert engine.get_summary() == {
            "exercise": "squat", "analyzer": "squat", "rep_count": 0, "phase": None,
        }

        for i, angle in enumerate([10, 30, 50, 75, 50, 30, 10]):
            engine.process_frame(make_squat_frame(angle, i / 30.0))
        assert engine.get_summary()["rep_count"] == 1
        assert engine.get_summary()["phase"] == "standing"

        engine.reset()
        assert engine.rep_count == 0
        assert engine.state.max_thigh_angle == 0.0

    def test_last_rep_phase_cleared_on_leaving(self, make_squat_frame):
        engine = FormEngine({"id": "squat"})
        for i, angle in enumerate([10, 30, 50, 75, 50, 30, 10]):
            engine.process_frame(make_squat_frame(angle, i / 30.0))
        assert engine.state.last_rep_phase == "standing"

        engine.process_frame(make_squat_frame(10, 7 / 30.0))
        assert engine.state.last_rep_phase == "standing"

        engine.process_frame(make_squat_frame(30, 8 / 30.0))
        assert engine.state.last_rep_phase == ""

    def test_rep_completed_event(self, make_squat_frame):
        telemetry = RecordingTelemetry()
        engine = FormEngine({"id": "squat", "slug": "squat"}, telemetry=telemetry)
        for i, angle in enumerate([10, 30, 50, 75, 50, 30, 10]):
            engine.process_frame(make_squat_frame(angle, i / 30.0))

        (event,) = telemetry.named("rep_completed")
        assert event.data == {"exercise": "squat", "rep": 1, "phase": "standing", "findings": []}

    def test_telemetry_off_by_default(self):
        engine = FormEngine({"id": "squat"})
        assert isinstance(engine.telemetry, NullTelemetry)

    def test_telemetry_enabled_by_env(self, monkeypatch):
        monkeypatch.setenv("FORMCOACH_TELEMETRY_ENABLED", "true")
        engine = FormEngine({"id": "squat"})
        assert not isinstance(engine.telemetry, NullTelemetry)


def test_create_form_engine_returns_callable(make_squat_frame):
    analyze = create_form_engine({"id": "squat", "slug": "squat"})
    frames = [make_squat_frame(angle, i / 30.0) for i, angle in enumerate([10, 30, 50, 75, 50, 30, 10])]
    results = [analyze(f.landmarks, f.timestamp) for f in frames]
    assert results[-1].rep_completed
