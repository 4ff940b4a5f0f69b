"""
Per-exercise analyzers.

Importing this package registers every built-in analyzer:
- squat, goblet-squat
- cat-camel, cat-cow, cobra-stretch, cobra, dead-bug
- standing-lumbar-flexion, standing-lumbar-extension,
  standing-lumbar-side-bending, standing-lumbar-side-bend
- romanian-deadlift, lunge, lunge-with-rotation
"""

from formcoach.vision.analyzers.base import (
    ANALYZER_REGISTRY,
    AnalyzerState,
    ExerciseAnalyzer,
    get_analyzer,
    register_analyzer,
)
from formcoach.vision.analyzers.generic import GenericAnalyzer
from formcoach.vision.analyzers.squat import SquatAnalyzer, SquatState
from formcoach.vision.analyzers.floor import (
    CatCamelAnalyzer,
    CobraAnalyzer,
    DeadBugAnalyzer,
)
from formcoach.vision.analyzers.lumbar import (
    LumbarExtensionAnalyzer,
    LumbarFlexionAnalyzer,
    LumbarSideBendAnalyzer,
)
from formcoach.vision.analyzers.standing import (
    LungeAnalyzer,
    LungeWithRotationAnalyzer,
    RomanianDeadliftAnalyzer,
)

__all__ = [
    "ANALYZER_REGISTRY",
    "AnalyzerState",
    "ExerciseAnalyzer",
    "get_analyzer",
    "register_analyzer",
    "GenericAnalyzer",
    "SquatAnalyzer",
    "SquatState",
    "CatCamelAnalyzer",
    "CobraAnalyzer",
    "DeadBugAnalyzer",
    "LumbarExtensionAnalyzer",
    "LumbarFlexionAnalyzer",
    "LumbarSideBendAnalyzer",
    "LungeAnalyzer",
    "LungeWithRotationAnalyzer",
    "RomanianDeadliftAnalyzer",
]
