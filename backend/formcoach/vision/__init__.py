"""
Per-frame movement-form analysis.

PIPELINE COMPONENTS:
1. LandmarkSmoother: optional Savitzky-Golay + EMA smoothing of detector output
2. Geometry: angles, distances and visibility scores from landmarks
3. Analyzers: per-exercise phase state machines, registered by exercise id
4. RepErrorQueue: per-rep error accumulation, flushed on rep completion
5. Movement comparison: DTW of a rep's trajectory against a reference
6. FormEngine: dispatcher binding one exercise attempt to its analyzer

SUPPORTING TOOLS:
- get_camera_feedback: camera positioning hints
- Assessment: lower-back range-of-motion screen
- Telemetry sinks for threshold tuning

Usage:
    from formcoach.vision import FormEngine

    engine = FormEngine({"id": "squat", "slug": "squat"})
    for landmarks, timestamp in stream:
        result = engine.analyze(landmarks, timestamp)
        if result.rep_completed:
            print(f"Rep {engine.rep_count}: {result.feedback}")
"""

from formcoach.vision.landmarks import (
    NUM_LANDMARKS,
    Landmark,
    LandmarkCountError,
    PoseFrame,
    PoseLandmark,
    validate_landmark_count,
)
from formcoach.vision.results import AnalysisResult, FormDebug, FormFinding, Severity
from formcoach.vision.telemetry import (
    LoggingTelemetry,
    NullTelemetry,
    RecordingTelemetry,
    TelemetryEvent,
    TelemetrySink,
)
from formcoach.vision.rep_queue import ErrorSpec, FormErrorCode, RepErrorQueue
from formcoach.vision.movement_comparison import (
    SQUAT_REFERENCE,
    ComparisonResult,
    ReferenceTrajectory,
    compare_rep,
    dtw_distance,
    resample_trajectory,
)
from formcoach.vision.analyzers import (
    ANALYZER_REGISTRY,
    AnalyzerState,
    ExerciseAnalyzer,
    GenericAnalyzer,
    register_analyzer,
)
from formcoach.vision.form_engine import FormEngine, create_form_engine
from formcoach.vision.landmark_smoother import LandmarkSmoother
from formcoach.vision.camera_feedback import CameraFeedback, get_camera_feedback
from formcoach.vision.assessment import (
    AssessmentMovementResult,
    AssessmentMovementState,
    MovementTest,
    analyze_assessment_movement,
    get_rom_results,
    start_movement_test,
    stop_movement_test,
    update_assessment_state,
)

__all__ = [
    # Landmarks
    "NUM_LANDMARKS",
    "Landmark",
    "LandmarkCountError",
    "PoseFrame",
    "PoseLandmark",
    "validate_landmark_count",
    # Results
    "AnalysisResult",
    "FormDebug",
    "FormFinding",
    "Severity",
    # Telemetry
    "LoggingTelemetry",
    "NullTelemetry",
    "RecordingTelemetry",
    "TelemetryEvent",
    "TelemetrySink",
    # Rep errors
    "ErrorSpec",
    "FormErrorCode",
    "RepErrorQueue",
    # Trajectory comparison
    "SQUAT_REFERENCE",
    "ComparisonResult",
    "ReferenceTrajectory",
    "compare_rep",
    "dtw_distance",
    "resample_trajectory",
    # Analyzers & dispatch
    "ANALYZER_REGISTRY",
    "AnalyzerState",
    "ExerciseAnalyzer",
    "GenericAnalyzer",
    "register_analyzer",
    "FormEngine",
    "create_form_engine",
    # Supporting tools
    "LandmarkSmoother",
    "CameraFeedback",
    "get_camera_feedback",
    "AssessmentMovementResult",
    "AssessmentMovementState",
    "MovementTest",
    "analyze_assessment_movement",
    "get_rom_results",
    "start_movement_test",
    "stop_movement_test",
    "update_assessment_state",
]
