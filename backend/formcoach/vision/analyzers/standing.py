"""
Standing strength analyzers: Romanian deadlift, lunge and lunge with rotation.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from formcoach.vision.analyzers.base import AnalyzerState, ExerciseAnalyzer, register_analyzer
from formcoach.vision.geometry import (
    angle_between,
    base_form_score,
    core_confidence,
    distance_2d,
    midpoint,
    shin_angle_from_vertical,
    thigh_angle_from_horizontal,
    trunk_lean_angle,
)
from formcoach.vision.landmarks import PoseLandmark as P
from formcoach.vision.rep_queue import ErrorSpec, FormErrorCode, RepErrorQueue
from formcoach.vision.results import AnalysisResult, FormDebug, Severity

logger = logging.getLogger(__name__)


RDL_ERRORS = {
    FormErrorCode.KNEE_BEND: ErrorSpec("Too much knee bend - hinge at hips", Severity.WARNING, "knees"),
    FormErrorCode.KNEE_LOCK: ErrorSpec("Unlock your knees slightly", Severity.INFO, "knees"),
    FormErrorCode.NECK_ALIGNMENT: ErrorSpec("Keep head neutral with spine", Severity.WARNING, "head"),
    FormErrorCode.POOR_HINGE: ErrorSpec("Push hips back to flatten spine", Severity.WARNING, "hips"),
    FormErrorCode.BAR_DRIFT: ErrorSpec("Keep weights close to legs", Severity.WARNING, "arms"),
}

LUNGE_ERRORS = {
    FormErrorCode.FORWARD_LEAN: ErrorSpec("Keep chest up", Severity.WARNING, "torso"),
    FormErrorCode.INSUFFICIENT_DEPTH: ErrorSpec("Lower hips until thigh is parallel", Severity.INFO, "legs"),
    FormErrorCode.KNEE_FORWARD: ErrorSpec("Keep front knee behind toes", Severity.WARNING, "knee"),
    FormErrorCode.HANDS_ON_LEGS: ErrorSpec("Don't rest hands on legs", Severity.WARNING, "arms"),
}


def _hand_to_knee_distance(lm) -> float:
    """Closest distance from either wrist to either knee."""
    return min(
        distance_2d(wrist, knee)
        for wrist in (lm[P.LEFT_WRIST], lm[P.RIGHT_WRIST])
        for knee in (lm[P.LEFT_KNEE], lm[P.RIGHT_KNEE])
    )


def _min_knee_angle(lm) -> float:
    return min(
        angle_between(lm[P.LEFT_HIP], lm[P.LEFT_KNEE], lm[P.LEFT_ANKLE]),
        angle_between(lm[P.RIGHT_HIP], lm[P.RIGHT_KNEE], lm[P.RIGHT_ANKLE]),
    )


@dataclass
class RDLState(AnalyzerState):
    last_phase: str = "standing"
    rep_errors: RepErrorQueue = field(default_factory=RepErrorQueue)


@register_analyzer("romanian-deadlift")
class RomanianDeadliftAnalyzer(ExerciseAnalyzer):
    """
    Hip hinge with soft knees, filmed from the side.

    Hip shift and bar distance are normalized by leg length (hip to ankle)
    so the checks do not depend on how far the user stands from the camera.
    """

    name = "romanian-deadlift"
    state_class = RDLState

    DEFAULT_THRESHOLDS = {
        "hinge_lean": 20.0,        # Trunk lean starting the hinge
        "bottom_lean": 60.0,
        "min_knee_angle": 115.0,   # Below = squatting the weight
        "max_knee_angle": 175.0,   # Above = locked knees
        "min_neck_angle": 150.0,
        "check_lean": 30.0,        # Lean from which hinge quality is checked
        "min_hip_shift": 0.15,
        "max_bar_distance": 0.2,
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks

        mid_ear = midpoint(lm[P.LEFT_EAR], lm[P.RIGHT_EAR])
        mid_shoulder = midpoint(lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER])
        mid_hip = midpoint(lm[P.LEFT_HIP], lm[P.RIGHT_HIP])
        mid_knee = midpoint(lm[P.LEFT_KNEE], lm[P.RIGHT_KNEE])
        mid_ankle = midpoint(lm[P.LEFT_ANKLE], lm[P.RIGHT_ANKLE])
        mid_wrist = midpoint(lm[P.LEFT_WRIST], lm[P.RIGHT_WRIST])

        knee_angle = angle_between(mid_hip, mid_knee, mid_ankle)
        neck_angle = angle_between(mid_ear, mid_shoulder, mid_hip)
        trunk_lean = trunk_lean_angle(mid_shoulder, mid_hip)

        leg_length = distance_2d(mid_hip, mid_ankle) or 1.0
        hip_shift = abs(mid_hip.x - mid_ankle.x) / leg_length
        bar_distance = abs(mid_wrist.x - mid_knee.x) / leg_length

        last = state.last_phase
        phase = "standing"
        if trunk_lean > t["hinge_lean"]:
            phase = "hinging"
        if trunk_lean > t["bottom_lean"]:
            phase = "bottom"

        if last == "standing" and phase != "standing":
            state.rep_errors.reset()

        if phase != "standing":
            if knee_angle < t["min_knee_angle"]:
                state.rep_errors.add(FormErrorCode.KNEE_BEND)
            elif knee_angle > t["max_knee_angle"]:
                state.rep_errors.add(FormErrorCode.KNEE_LOCK)
            if neck_angle < t["min_neck_angle"]:
                state.rep_errors.add(FormErrorCode.NECK_ALIGNMENT)
            if trunk_lean > t["check_lean"] and hip_shift < t["min_hip_shift"]:
                state.rep_errors.add(FormErrorCode.POOR_HINGE)
            if trunk_lean > t["check_lean"] and bar_distance > t["max_bar_distance"]:
                state.rep_errors.add(FormErrorCode.BAR_DRIFT)

        queued = state.rep_errors.codes
        feedback = None
        if not queued:
            if trunk_lean > 45:
                feedback = "Excellent depth! Keep back straight."
            elif trunk_lean > t["hinge_lean"]:
                feedback = "Good hinge, go lower if comfortable."
            else:
                feedback = "Hinge forward from hips."

        rep_completed = last == "hinging" and phase == "standing"
        findings = []
        if rep_completed:
            findings = state.rep_errors.flush(RDL_ERRORS, frame.timestamp)
            if findings:
                feedback = findings[0].message
            logger.info(f"RDL rep complete, errors={queued}")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=FormDebug(knee_angle=knee_angle, trunk_lean=trunk_lean, queued_errors=queued),
        )


@dataclass
class LungeState(AnalyzerState):
    last_phase: str = "standing"
    rep_errors: RepErrorQueue = field(default_factory=RepErrorQueue)


@register_analyzer("lunge")
class LungeAnalyzer(ExerciseAnalyzer):
    """
    Static or stepping lunge.

    In the lunge the front thigh is the one closest to horizontal; its
    shin is checked for the knee drifting past the toes.
    """

    name = "lunge"
    state_class = LungeState

    DEFAULT_THRESHOLDS = {
        "lunge_knee_angle": 130.0,
        "standing_knee_angle": 150.0,
        "min_stride_width": 0.3,       # Ankle x distance
        "max_trunk_lean": 20.0,
        "max_thigh_angle": 15.0,       # Front thigh from horizontal
        "max_shin_angle": 20.0,
        "hands_on_legs_distance": 0.15,
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks

        stride_width = abs(lm[P.LEFT_ANKLE].x - lm[P.RIGHT_ANKLE].x)
        min_knee_angle = _min_knee_angle(lm)
        in_lunge = min_knee_angle < t["lunge_knee_angle"] and stride_width > t["min_stride_width"]
        standing = min_knee_angle > t["standing_knee_angle"]

        last = state.last_phase
        phase = "standing"
        feedback = "Step forward into a lunge"
        if in_lunge:
            phase = "lunge_hold"
            feedback = "Good lunge. Push back to start"
        elif last == "lunge_hold" and not standing:
            phase = "lunge_hold"
            feedback = "Push back to start"

        if phase == "lunge_hold" and last != "lunge_hold":
            state.rep_errors.reset()

        debug = FormDebug()
        if in_lunge:
            mid_hip = midpoint(lm[P.LEFT_HIP], lm[P.RIGHT_HIP])
            mid_shoulder = midpoint(lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER])
            trunk_lean = trunk_lean_angle(mid_shoulder, mid_hip)
            left_thigh = thigh_angle_from_horizontal(lm[P.LEFT_HIP], lm[P.LEFT_KNEE])
            right_thigh = thigh_angle_from_horizontal(lm[P.RIGHT_HIP], lm[P.RIGHT_KNEE])
            best_depth = min(left_thigh, right_thigh)

            if left_thigh < right_thigh:
                shin_angle = shin_angle_from_vertical(lm[P.LEFT_KNEE], lm[P.LEFT_ANKLE])
            else:
                shin_angle = shin_angle_from_vertical(lm[P.RIGHT_KNEE], lm[P.RIGHT_ANKLE])

            if trunk_lean > t["max_trunk_lean"]:
                state.rep_errors.add(FormErrorCode.FORWARD_LEAN)
            if best_depth > t["max_thigh_angle"]:
                state.rep_errors.add(FormErrorCode.INSUFFICIENT_DEPTH)
            if shin_angle > t["max_shin_angle"]:
                state.rep_errors.add(FormErrorCode.KNEE_FORWARD)
            if _hand_to_knee_distance(lm) < t["hands_on_legs_distance"]:
                state.rep_errors.add(FormErrorCode.HANDS_ON_LEGS)

            debug = FormDebug(
                trunk_lean=trunk_lean,
                left_thigh_angle=left_thigh,
                right_thigh_angle=right_thigh,
                best_depth_angle=best_depth,
                shin_angle=shin_angle,
            )

        queued = state.rep_errors.codes
        debug.queued_errors = queued

        rep_completed = last == "lunge_hold" and phase == "standing"
        findings = []
        if rep_completed:
            findings = state.rep_errors.flush(LUNGE_ERRORS, frame.timestamp)
            feedback = "Rep complete!"
            logger.info(f"Lunge rep complete, errors={queued}")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=debug,
        )


@dataclass
class LungeRotationState(AnalyzerState):
    last_phase: str = "standing"
    in_lunge: bool = False
    rotated_left: bool = False
    rotated_right: bool = False


def _yaw(left, right) -> float:
    """Rotation of a left-right landmark pair about the vertical axis, in degrees."""
    return float(np.degrees(np.arctan2(right.z - left.z, right.x - left.x)))


@register_analyzer("lunge-with-rotation")
class LungeWithRotationAnalyzer(ExerciseAnalyzer):
    """
    Lunge hold with a torso rotation to each side.

    Torsion is shoulder yaw minus hip yaw, wrapped to [-180, 180]. The rep
    counts once the user has rotated both ways and left the lunge.
    """

    name = "lunge-with-rotation"
    state_class = LungeRotationState

    DEFAULT_THRESHOLDS = {
        "lunge_knee_angle": 130.0,
        "min_stride_width": 0.3,
        "rotation_torsion": 15.0,
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks

        stride_width = abs(lm[P.LEFT_ANKLE].x - lm[P.RIGHT_ANKLE].x)
        in_lunge = _min_knee_angle(lm) < t["lunge_knee_angle"] and stride_width > t["min_stride_width"]
        state.in_lunge = in_lunge

        phase = "standing"
        feedback = "Step into a lunge position"
        if in_lunge:
            phase = "lunge_hold"
            feedback = "Good lunge. Now rotate torso Left and Right"

        shoulder_yaw = _yaw(lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER])
        hip_yaw = _yaw(lm[P.LEFT_HIP], lm[P.RIGHT_HIP])
        torsion = shoulder_yaw - hip_yaw
        if torsion > 180:
            torsion -= 360
        elif torsion < -180:
            torsion += 360

        if in_lunge:
            if torsion < -t["rotation_torsion"]:
                state.rotated_right = True
                phase = "rotated_right"
            elif torsion > t["rotation_torsion"]:
                state.rotated_left = True
                phase = "rotated_left"

            if state.rotated_left and state.rotated_right:
                phase = "rotation_done"
                feedback = "Great! Stand up to finish rep"
            elif state.rotated_left:
                feedback = "Now rotate Right"
            elif state.rotated_right:
                feedback = "Now rotate Left"

        rep_completed = False
        if not in_lunge and state.rotated_left and state.rotated_right:
            rep_completed = True
            state.rotated_left = False
            state.rotated_right = False
            feedback = "Rep complete!"
            logger.info("Lunge with rotation rep complete")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=FormDebug(torsion=torsion, shoulder_yaw=shoulder_yaw, hip_yaw=hip_yaw),
        )
