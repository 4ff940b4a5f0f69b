"""Fallback for exercises without a dedicated analyzer."""

from formcoach.vision.analyzers.base import ExerciseAnalyzer
from formcoach.vision.geometry import base_form_score, core_confidence
from formcoach.vision.results import AnalysisResult


class GenericAnalyzer(ExerciseAnalyzer):
    """
    Reports a fixed phase and a visibility-only score.

    Never produces findings and never completes a rep, so an unknown
    exercise still gets a live camera-quality signal without miscounting.
    """

    name = "generic"

    def __init__(self, phase: str = "neutral"):
        self.phase = phase

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        return AnalysisResult(
            phase=self.phase,
            form_score=base_form_score(frame.landmarks),
            confidence=core_confidence(frame.landmarks),
        )

    def __repr__(self) -> str:
        return f"GenericAnalyzer(phase={self.phase!r})"
