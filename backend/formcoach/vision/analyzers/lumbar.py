"""
Standing lumbar mobility analyzers: flexion, extension and side bending.

Flexion and extension are filmed from the side, side bending from the
front; a wrong camera facing is reported on every frame it occurs rather
than queued, since it is a setup problem and not part of a rep.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from formcoach.vision.analyzers.base import AnalyzerState, ExerciseAnalyzer, register_analyzer
from formcoach.vision.geometry import (
    angle_between_3d,
    base_form_score,
    check_orientation,
    core_confidence,
    midpoint,
)
from formcoach.vision.landmarks import PoseLandmark as P
from formcoach.vision.rep_queue import ErrorSpec, FormErrorCode, RepErrorQueue
from formcoach.vision.results import (
    AnalysisResult,
    FormDebug,
    Severity,
    add_orientation_finding,
)

logger = logging.getLogger(__name__)


FLEXION_ERRORS = {
    FormErrorCode.KNEE_BEND: ErrorSpec("Keep legs straight", Severity.WARNING, "knees"),
}

EXTENSION_ERRORS = {
    FormErrorCode.KNEE_BEND: ErrorSpec("Keep knees straight", Severity.WARNING, "knees"),
}


def _mid_points(lm):
    return (
        midpoint(lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER]),
        midpoint(lm[P.LEFT_HIP], lm[P.RIGHT_HIP]),
        midpoint(lm[P.LEFT_KNEE], lm[P.RIGHT_KNEE]),
        midpoint(lm[P.LEFT_ANKLE], lm[P.RIGHT_ANKLE]),
    )


@dataclass
class FlexionState(AnalyzerState):
    rep_errors: RepErrorQueue = field(default_factory=RepErrorQueue)


@register_analyzer("standing-lumbar-flexion")
class LumbarFlexionAnalyzer(ExerciseAnalyzer):
    """
    Forward bend from standing.

    Flexion starts once the shoulder-hip-knee angle closes to
    flexion_hip_angle and holds until it reopens past release_hip_angle.
    """

    name = "standing-lumbar-flexion"
    state_class = FlexionState

    DEFAULT_THRESHOLDS = {
        "flexion_hip_angle": 90.0,
        "release_hip_angle": 160.0,  # Hysteresis band on the way back up
        "min_knee_angle": 120.0,
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks
        findings = []
        add_orientation_finding(findings, check_orientation(lm, "side"), frame.timestamp)

        mid_shoulder, mid_hip, mid_knee, mid_ankle = _mid_points(lm)
        hip_angle = angle_between_3d(mid_shoulder, mid_hip, mid_knee)
        knee_angle = angle_between_3d(mid_hip, mid_knee, mid_ankle)

        last = state.last_phase
        phase = "neutral"
        if hip_angle <= t["flexion_hip_angle"]:
            phase = "flexion"
        elif hip_angle < t["release_hip_angle"] and last == "flexion":
            phase = "flexion"

        if phase == "flexion" and last != "flexion":
            state.rep_errors.reset()
        if phase == "flexion" and knee_angle < t["min_knee_angle"]:
            state.rep_errors.add(FormErrorCode.KNEE_BEND)

        rep_completed = last == "flexion" and phase == "neutral"
        queued = state.rep_errors.codes

        feedback = None
        if phase == "flexion" and not queued and not findings:
            feedback = "Good stretch"
        if rep_completed:
            findings.extend(state.rep_errors.flush(FLEXION_ERRORS, frame.timestamp))
            logger.info(f"Lumbar flexion rep complete, errors={queued}")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=FormDebug(hip_angle=hip_angle, knee_angle=knee_angle, queued_errors=queued),
        )


@dataclass
class ExtensionState(AnalyzerState):
    baseline_spine_depth: List[float] = field(default_factory=list)
    rep_errors: RepErrorQueue = field(default_factory=RepErrorQueue)


@register_analyzer("standing-lumbar-extension")
class LumbarExtensionAnalyzer(ExerciseAnalyzer):
    """
    Backward bend from standing.

    From the side a backward lean shows up as a change in the relative
    depth between shoulders and hips. The first calibration_frames frames
    record the user's normal stance; extension is a drop in shoulder-hip
    depth below that baseline.
    """

    name = "standing-lumbar-extension"
    state_class = ExtensionState

    DEFAULT_THRESHOLDS = {
        "calibration_frames": 60,
        "extension_depth_change": -0.05,
        "min_knee_angle": 135.0,
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks
        findings = []
        add_orientation_finding(findings, check_orientation(lm, "side"), frame.timestamp)

        mid_shoulder, mid_hip, mid_knee, mid_ankle = _mid_points(lm)
        knee_angle = angle_between_3d(mid_hip, mid_knee, mid_ankle)
        spine_depth = abs(mid_shoulder.z - mid_hip.z)

        calibrating = len(state.baseline_spine_depth) < int(t["calibration_frames"])
        if calibrating:
            state.baseline_spine_depth.append(spine_depth)
            if len(state.baseline_spine_depth) == int(t["calibration_frames"]):
                logger.info(f"Extension baseline calibrated over {len(state.baseline_spine_depth)} frames")

        baseline = float(np.mean(state.baseline_spine_depth)) if state.baseline_spine_depth else spine_depth
        depth_change = spine_depth - baseline

        last = state.last_phase
        phase = "extension" if depth_change <= t["extension_depth_change"] else "neutral"

        if phase == "extension" and last != "extension":
            state.rep_errors.reset()
        if phase == "extension" and knee_angle < t["min_knee_angle"]:
            state.rep_errors.add(FormErrorCode.KNEE_BEND)

        rep_completed = last == "extension" and phase == "neutral"
        queued = state.rep_errors.codes

        feedback = None
        if calibrating:
            feedback = "Wait for a second, calibrating to your normal stance"
        elif phase == "extension":
            feedback = "Hold extension"
        if rep_completed:
            findings.extend(state.rep_errors.flush(EXTENSION_ERRORS, frame.timestamp))
            logger.info(f"Lumbar extension rep complete, errors={queued}")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=FormDebug(
                knee_angle=knee_angle,
                spine_depth=spine_depth,
                depth_change=depth_change,
                baseline=baseline,
                baseline_samples=len(state.baseline_spine_depth),
                queued_errors=queued,
            ),
        )


@dataclass
class SideBendState(AnalyzerState):
    left_done: bool = False
    right_done: bool = False


@register_analyzer("standing-lumbar-side-bending", "standing-lumbar-side-bend")
class LumbarSideBendAnalyzer(ExerciseAnalyzer):
    """
    Lateral bend to each side, filmed from the front.

    The shoulder line tilt is measured from the image x axis; with the user
    facing the camera a level line reads close to 180 degrees. One rep is a
    bend and return on both sides, in either order.
    """

    name = "standing-lumbar-side-bending"
    state_class = SideBendState

    DEFAULT_THRESHOLDS = {
        "bend_tilt": 168.0,     # Tilt at or below this = bending
        "release_tilt": 172.0,  # Tilt at or above this = back to neutral
        "side_offset": 0.02,    # Shoulder height difference picking the side
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks
        findings = []
        add_orientation_finding(findings, check_orientation(lm, "front"), frame.timestamp)

        left_shoulder = lm[P.LEFT_SHOULDER]
        right_shoulder = lm[P.RIGHT_SHOULDER]
        dy = right_shoulder.y - left_shoulder.y
        dx = right_shoulder.x - left_shoulder.x
        shoulder_tilt = abs(float(np.degrees(np.arctan2(dy, dx))))

        if dy > t["side_offset"]:
            bending_side = "right"
        elif dy < -t["side_offset"]:
            bending_side = "left"
        else:
            bending_side = "neutral"

        last = state.last_phase
        phase = "neutral"
        if shoulder_tilt <= t["bend_tilt"] and bending_side != "neutral":
            phase = f"bend_{bending_side}"
        elif last.startswith("bend_") and shoulder_tilt >= t["release_tilt"]:
            phase = "neutral"
        elif last.startswith("bend_"):
            phase = last

        rep_completed = False
        feedback = "Good stretch" if phase.startswith("bend_") else None

        if last.startswith("bend_") and phase == "neutral":
            if last == "bend_left":
                state.left_done = True
            elif last == "bend_right":
                state.right_done = True

            if state.left_done and state.right_done:
                rep_completed = True
                state.left_done = False
                state.right_done = False
                feedback = "Good job! Both sides done"
                logger.info("Side bend rep complete")
            elif state.left_done:
                feedback = "Great, now repeat for the right side"
            elif state.right_done:
                feedback = "Great, now repeat for the left side"

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=FormDebug(shoulder_tilt=shoulder_tilt, bending_side=bending_side),
        )
