"""
Analyzer seam and registry.

Every exercise analyzer is a stateless strategy: all mutable tracking lives
in the AnalyzerState it creates, so one analyzer instance can serve any
number of concurrent exercise attempts. Analyzers register themselves
against exercise identifiers with the register_analyzer decorator; the
dispatcher never needs editing to add an exercise.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Type

from formcoach.config import Settings
from formcoach.vision.landmarks import PoseFrame
from formcoach.vision.results import AnalysisResult
from formcoach.vision.telemetry import TelemetrySink

logger = logging.getLogger(__name__)


@dataclass
class AnalyzerState:
    """
    Bookkeeping shared by every analyzer.

    Attributes:
        last_phase: Phase reported on the previous frame
        last_rep_phase: Phase of the most recent completion, cleared once the
            analyzer leaves that phase
    """
    last_phase: str = "neutral"
    last_rep_phase: str = ""


class ExerciseAnalyzer:
    """
    Base class for per-exercise phase state machines.

    Subclasses set DEFAULT_THRESHOLDS and implement analyze(). Thresholds
    passed in by the caller override the defaults key by key.
    """

    name = "base"
    state_class: Type[AnalyzerState] = AnalyzerState
    DEFAULT_THRESHOLDS: Dict[str, float] = {}

    def create_state(self) -> AnalyzerState:
        return self.state_class()

    def resolve_thresholds(self, overrides: Optional[Mapping[str, float]]) -> Dict[str, float]:
        """Merge caller overrides over the documented defaults."""
        merged = dict(self.DEFAULT_THRESHOLDS)
        if overrides:
            merged.update(overrides)
        return merged

    def analyze(
        self,
        frame: PoseFrame,
        state: AnalyzerState,
        thresholds: Optional[Mapping[str, float]] = None,
        telemetry: Optional[TelemetrySink] = None,
        settings: Optional[Settings] = None
    ) -> AnalysisResult:
        """
        Analyze one frame.

        Args:
            frame: Validated 33-landmark frame
            state: State created by this analyzer's create_state()
            thresholds: Per-exercise overrides
            telemetry: Optional sink for tuning events
            settings: Engine settings; the process-wide settings when omitted

        Returns:
            AnalysisResult for the frame
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# identifier -> analyzer instance
ANALYZER_REGISTRY: Dict[str, ExerciseAnalyzer] = {}


def register_analyzer(*identifiers: str):
    """
    Class decorator registering an analyzer under one or more exercise ids.

    Raises:
        ValueError: If an identifier is already registered
    """
    def decorator(cls: Type[ExerciseAnalyzer]) -> Type[ExerciseAnalyzer]:
        instance = cls()
        for identifier in identifiers:
            if identifier in ANALYZER_REGISTRY:
                raise ValueError(
                    f"Analyzer for {identifier!r} already registered: "
                    f"{ANALYZER_REGISTRY[identifier]!r}"
                )
            ANALYZER_REGISTRY[identifier] = instance
        logger.debug(f"Registered {cls.__name__} for {', '.join(identifiers)}")
        return cls
    return decorator


def get_analyzer(identifier: Optional[str]) -> Optional[ExerciseAnalyzer]:
    """Look up a registered analyzer; None when nothing matches."""
    if not identifier:
        return None
    return ANALYZER_REGISTRY.get(identifier)
