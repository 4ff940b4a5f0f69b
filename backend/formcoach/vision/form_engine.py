"""
Per-frame form analysis dispatcher.

FormEngine binds one exercise attempt to its analyzer and analyzer state.
Each frame is validated, handed to the analyzer, and the shared phase
bookkeeping is updated from the result.

Usage:
    from formcoach.vision import create_form_engine

    analyze = create_form_engine({"id": "squat", "slug": "squat"})
    for landmarks in stream:
        result = analyze(landmarks)
        if result.rep_completed:
            print(result.feedback)
"""

import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from formcoach.config import Settings, get_settings
from formcoach.schemas.exercise import ExerciseConfig
from formcoach.vision.analyzers import ExerciseAnalyzer, GenericAnalyzer, get_analyzer
from formcoach.vision.analyzers.base import AnalyzerState
from formcoach.vision.landmarks import Landmark, PoseFrame, validate_landmark_count
from formcoach.vision.results import AnalysisResult
from formcoach.vision.telemetry import LoggingTelemetry, NullTelemetry, TelemetrySink, emit

logger = logging.getLogger(__name__)


def resolve_analyzer(exercise: ExerciseConfig) -> ExerciseAnalyzer:
    """Pick the analyzer by slug, then by id, then fall back to the generic one."""
    analyzer = get_analyzer(exercise.slug) or get_analyzer(exercise.id)
    if analyzer is None:
        logger.info(
            f"No analyzer for exercise {exercise.slug or exercise.id!r}, "
            f"using generic fallback"
        )
        return GenericAnalyzer(exercise.fallback_phase)
    return analyzer


class FormEngine:
    """
    Analysis engine for a single exercise attempt.

    Not safe for concurrent calls; track each attempt with its own engine.
    """

    def __init__(
        self,
        exercise: Union[ExerciseConfig, Mapping[str, Any]],
        telemetry: Optional[TelemetrySink] = None,
        settings: Optional[Settings] = None
    ):
        if not isinstance(exercise, ExerciseConfig):
            exercise = ExerciseConfig.model_validate(exercise)
        self.exercise = exercise
        self.settings = settings or get_settings()

        if telemetry is None:
            telemetry = LoggingTelemetry() if self.settings.telemetry_enabled else NullTelemetry()
        self.telemetry = telemetry

        self.analyzer = resolve_analyzer(exercise)
        self.thresholds: Dict[str, float] = dict(exercise.thresholds)
        self.rep_count = 0
        self._state: Optional[AnalyzerState] = None

        logger.info(f"FormEngine initialized: {exercise.slug or exercise.id} -> {self.analyzer!r}")

    @property
    def state(self) -> AnalyzerState:
        """Analyzer state, created on first use."""
        if self._state is None:
            self._state = self.analyzer.create_state()
        return self._state

    @property
    def is_fallback(self) -> bool:
        return isinstance(self.analyzer, GenericAnalyzer)

    def validate_frame(self, landmarks: Sequence[Landmark]) -> None:
        """
        Raises:
            LandmarkCountError: If the frame does not match the configured landmark count
        """
        validate_landmark_count(landmarks, self.settings.landmark_count)

    def process_frame(self, frame: PoseFrame) -> AnalysisResult:
        """
        Analyze one frame and update phase bookkeeping.

        Args:
            frame: PoseFrame with timestamp in seconds

        Returns:
            AnalysisResult for the frame
        """
        self.validate_frame(frame.landmarks)

        state = self.state
        result = self.analyzer.analyze(
            frame, state, self.thresholds, self.telemetry, settings=self.settings
        )

        state.last_phase = result.phase
        if result.rep_completed:
            state.last_rep_phase = result.phase
            self.rep_count += 1
            emit(
                self.telemetry,
                "rep_completed",
                exercise=self.exercise.slug or self.exercise.id,
                rep=self.rep_count,
                phase=result.phase,
                findings=[f.type for f in result.findings],
            )
        elif result.phase != state.last_rep_phase:
            state.last_rep_phase = ""

        return result

    def analyze(
        self,
        landmarks: Sequence[Landmark],
        timestamp: Optional[float] = None
    ) -> AnalysisResult:
        """
        Convenience method: wrap raw landmarks in a frame and process it.

        Timestamps default to the wall clock in seconds.
        """
        self.validate_frame(landmarks)
        frame = PoseFrame(
            landmarks=list(landmarks),
            timestamp=time.time() if timestamp is None else timestamp,
        )
        return self.process_frame(frame)

    def reset(self) -> None:
        """Start a fresh attempt on the same exercise."""
        self._state = None
        self.rep_count = 0

    def get_summary(self) -> Dict[str, Any]:
        return {
            "exercise": self.exercise.slug or self.exercise.id,
            "analyzer": self.analyzer.name,
            "rep_count": self.rep_count,
            "phase": self._state.last_phase if self._state else None,
        }


def create_form_engine(
    exercise: Union[ExerciseConfig, Mapping[str, Any]],
    telemetry: Optional[TelemetrySink] = None
) -> Callable[..., AnalysisResult]:
    """
    Factory function returning the per-frame analysis callable.

    Args:
        exercise: ExerciseConfig or a mapping validated into one

    Returns:
        Callable taking (landmarks, timestamp=None) and returning AnalysisResult
    """
    return FormEngine(exercise, telemetry=telemetry).analyze
