"""
Range-of-motion (ROM) screen for the lower back.

During an assessment the user performs four guided movements: forward
bend, backward bend and a side bend to each side. While a test is
capturing, the largest trunk angle seen is kept; the results are reported
as degrees and as a percent of typical adult ROM.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence

from formcoach.vision.geometry import (
    BASE_SCORE_LANDMARKS,
    average_visibility,
    core_confidence,
    midpoint,
    signed_segment_angle,
)
from formcoach.vision.landmarks import Landmark, PoseLandmark as P

logger = logging.getLogger(__name__)


class MovementTest(str, Enum):
    IDLE = "idle"
    FLEXION = "flexion"
    EXTENSION = "extension"
    SIDEBEND_LEFT = "sidebend_left"
    SIDEBEND_RIGHT = "sidebend_right"


# Typical adult lumbar ROM in degrees
NORMAL_ROM = {
    "flexion": 50.0,
    "extension": 25.0,
    "side_bend_left": 20.0,
    "side_bend_right": 20.0,
}

MIN_POSE_VISIBILITY = 0.5


@dataclass
class AssessmentMovementState:
    current_test: MovementTest = MovementTest.IDLE
    max_flexion_angle: float = 0.0
    max_extension_angle: float = 0.0
    max_side_bend_left_angle: float = 0.0
    max_side_bend_right_angle: float = 0.0
    is_capturing: bool = False


@dataclass
class AssessmentMovementResult:
    """
    Attributes:
        trunk_angle: Sagittal trunk angle from vertical, positive = forward
        lateral_angle: Frontal trunk angle from vertical, positive = toward +x
        is_valid_pose: Shoulders and hips visible enough to measure
        confidence: Visibility of shoulders, hips and knees (0-100)
    """
    trunk_angle: float
    lateral_angle: float
    is_valid_pose: bool
    confidence: int


def analyze_assessment_movement(landmarks: Sequence[Landmark]) -> AssessmentMovementResult:
    """Measure trunk angles on one frame."""
    confidence = int(round(average_visibility(landmarks, BASE_SCORE_LANDMARKS) * 100))

    if core_confidence(landmarks) <= MIN_POSE_VISIBILITY:
        return AssessmentMovementResult(0.0, 0.0, False, confidence)

    shoulder = midpoint(landmarks[P.LEFT_SHOULDER], landmarks[P.RIGHT_SHOULDER])
    hip = midpoint(landmarks[P.LEFT_HIP], landmarks[P.RIGHT_HIP])

    # Side view for sagittal tests, front view for lateral ones; both read
    # the same hip->shoulder segment
    angle = signed_segment_angle(shoulder, hip)
    return AssessmentMovementResult(
        trunk_angle=angle,
        lateral_angle=angle,
        is_valid_pose=True,
        confidence=confidence,
    )


def start_movement_test(
    state: AssessmentMovementState,
    test: MovementTest
) -> AssessmentMovementState:
    test = MovementTest(test)
    if test == MovementTest.IDLE:
        raise ValueError("Cannot start the idle test")
    state.current_test = test
    state.is_capturing = True
    logger.info(f"ROM test started: {test.value}")
    return state


def stop_movement_test(state: AssessmentMovementState) -> AssessmentMovementState:
    logger.info(f"ROM test stopped: {state.current_test.value}")
    state.current_test = MovementTest.IDLE
    state.is_capturing = False
    return state


def update_assessment_state(
    state: AssessmentMovementState,
    result: AssessmentMovementResult
) -> AssessmentMovementState:
    """
    Fold one measurement into the running maxima of the active test.

    Ignored when no test is capturing or the pose is not valid.
    """
    if not state.is_capturing or not result.is_valid_pose:
        return state

    test = state.current_test
    if test == MovementTest.FLEXION:
        state.max_flexion_angle = max(state.max_flexion_angle, result.trunk_angle)
    elif test == MovementTest.EXTENSION:
        state.max_extension_angle = max(state.max_extension_angle, -min(0.0, result.trunk_angle))
    elif test == MovementTest.SIDEBEND_LEFT:
        state.max_side_bend_left_angle = max(
            state.max_side_bend_left_angle, -min(0.0, result.lateral_angle)
        )
    elif test == MovementTest.SIDEBEND_RIGHT:
        state.max_side_bend_right_angle = max(
            state.max_side_bend_right_angle, max(0.0, result.lateral_angle)
        )
    return state


def get_rom_results(state: AssessmentMovementState) -> Dict[str, Dict[str, int]]:
    """Rounded max angle and percent of normal ROM per movement."""
    measured = {
        "flexion": state.max_flexion_angle,
        "extension": state.max_extension_angle,
        "side_bend_left": state.max_side_bend_left_angle,
        "side_bend_right": state.max_side_bend_right_angle,
    }
    return {
        name: {
            "angle": int(round(angle)),
            "percent_of_normal": int(round(angle / NORMAL_ROM[name] * 100)),
        }
        for name, angle in measured.items()
    }
