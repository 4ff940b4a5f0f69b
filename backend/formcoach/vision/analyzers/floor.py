"""
Floor mobility analyzers: cat-camel, cobra stretch and dead bug.

All three are filmed from the side on the floor and use the core
(shoulder and hip) visibility as their confidence.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from formcoach.vision.analyzers.base import AnalyzerState, ExerciseAnalyzer, register_analyzer
from formcoach.vision.geometry import (
    angle_between,
    base_form_score,
    core_confidence,
    distance_2d,
    midpoint,
)
from formcoach.vision.landmarks import PoseLandmark as P
from formcoach.vision.rep_queue import ErrorSpec, FormErrorCode, RepErrorQueue
from formcoach.vision.results import AnalysisResult, FormDebug, Severity

logger = logging.getLogger(__name__)


CAT_CAMEL_ERRORS = {
    FormErrorCode.HIP_ALIGNMENT: ErrorSpec("Keep hips stacked over knees", Severity.WARNING, "hips"),
}

COBRA_ERRORS = {
    FormErrorCode.OVEREXTENSION: ErrorSpec("Lift only to a comfortable height", Severity.WARNING, "spine"),
    FormErrorCode.ELBOW_LOCK: ErrorSpec("Soften the elbows slightly", Severity.INFO, "elbows"),
}


@dataclass
class QueuedState(AnalyzerState):
    """State for analyzers that only track a per-rep error queue."""
    rep_errors: RepErrorQueue = field(default_factory=RepErrorQueue)


@register_analyzer("cat-camel", "cat-cow")
class CatCamelAnalyzer(ExerciseAnalyzer):
    """
    Cat-camel on hands and knees.

    Spine curve is shoulder y minus hip y: a rounded back (cat) pushes the
    shoulders down in the image, an arched back (camel) lifts them.
    One rep is a cat followed by a camel.
    """

    name = "cat-camel"
    state_class = QueuedState

    DEFAULT_THRESHOLDS = {
        "cat_spine_curve": 0.1,
        "camel_spine_curve": -0.1,
        "min_hip_angle": 70.0,  # Shoulder-hip-knee
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks

        mid_shoulder = midpoint(lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER])
        mid_hip = midpoint(lm[P.LEFT_HIP], lm[P.RIGHT_HIP])
        mid_knee = midpoint(lm[P.LEFT_KNEE], lm[P.RIGHT_KNEE])

        spine_curve = mid_shoulder.y - mid_hip.y
        hip_angle = angle_between(mid_shoulder, mid_hip, mid_knee)

        phase = "neutral"
        if spine_curve >= t["cat_spine_curve"]:
            phase = "cat"
        if spine_curve <= t["camel_spine_curve"]:
            phase = "camel"

        last = state.last_phase
        if phase == "cat" and last != "cat":
            state.rep_errors.reset()

        if phase != "neutral" and hip_angle < t["min_hip_angle"]:
            state.rep_errors.add(FormErrorCode.HIP_ALIGNMENT)

        rep_completed = last == "cat" and phase == "camel"
        queued = state.rep_errors.codes
        findings = []
        feedback = None
        if rep_completed:
            findings = state.rep_errors.flush(CAT_CAMEL_ERRORS, frame.timestamp)
            feedback = "Rep complete!"
            logger.info(f"Cat-camel rep complete, errors={queued}")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=FormDebug(hip_angle=hip_angle, queued_errors=queued),
        )


@register_analyzer("cobra-stretch", "cobra")
class CobraAnalyzer(ExerciseAnalyzer):
    """Prone cobra stretch; a rep is a held lift followed by lowering."""

    name = "cobra"
    state_class = QueuedState

    DEFAULT_THRESHOLDS = {
        "min_chest_lift": 0.1,        # Hip y minus shoulder y
        "max_chest_lift": 0.35,
        "overextension_margin": 0.08,
        "min_elbow_angle": 120.0,
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks

        mid_shoulder = midpoint(lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER])
        mid_hip = midpoint(lm[P.LEFT_HIP], lm[P.RIGHT_HIP])
        chest_lift = mid_hip.y - mid_shoulder.y

        last = state.last_phase
        phase = "prone"
        if chest_lift > t["min_chest_lift"]:
            phase = "lift"
        if chest_lift > t["max_chest_lift"]:
            phase = "hold"
        if last == "hold" and chest_lift <= t["min_chest_lift"]:
            phase = "lower"

        elbow_angle = min(
            angle_between(lm[P.LEFT_SHOULDER], lm[P.LEFT_ELBOW], lm[P.LEFT_WRIST]),
            angle_between(lm[P.RIGHT_SHOULDER], lm[P.RIGHT_ELBOW], lm[P.RIGHT_WRIST]),
        )

        if phase in ("lift", "hold") and last not in ("lift", "hold"):
            state.rep_errors.reset()

        if phase in ("lift", "hold"):
            if chest_lift > t["max_chest_lift"] + t["overextension_margin"]:
                state.rep_errors.add(FormErrorCode.OVEREXTENSION)
            if elbow_angle < t["min_elbow_angle"]:
                state.rep_errors.add(FormErrorCode.ELBOW_LOCK)

        rep_completed = last == "hold" and phase == "lower"
        queued = state.rep_errors.codes
        findings = []
        feedback = "Hold the stretch" if phase == "hold" else None
        if rep_completed:
            findings = state.rep_errors.flush(COBRA_ERRORS, frame.timestamp)
            feedback = "Rep complete!"
            logger.info(f"Cobra rep complete, errors={queued}")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
            debug=FormDebug(queued_errors=queued),
        )


@dataclass
class DeadBugState(AnalyzerState):
    last_extended_side: Optional[str] = None


@register_analyzer("dead-bug")
class DeadBugAnalyzer(ExerciseAnalyzer):
    """
    Dead bug: opposite arm and leg extend, then return.

    A side counts as extended when the leg (hip to ankle) and the opposite
    arm (shoulder to wrist) both exceed full_extension_threshold.
    """

    name = "dead-bug"
    state_class = DeadBugState

    DEFAULT_THRESHOLDS = {
        "full_extension_threshold": 0.85,
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks
        extension = t["full_extension_threshold"]

        right_extended = (
            distance_2d(lm[P.RIGHT_HIP], lm[P.RIGHT_ANKLE]) > extension
            and distance_2d(lm[P.LEFT_SHOULDER], lm[P.LEFT_WRIST]) > extension
        )
        left_extended = (
            distance_2d(lm[P.LEFT_HIP], lm[P.LEFT_ANKLE]) > extension
            and distance_2d(lm[P.RIGHT_SHOULDER], lm[P.RIGHT_WRIST]) > extension
        )

        last = state.last_phase
        phase = "start"
        if right_extended:
            phase = "extend_right"
        if left_extended:
            phase = "extend_left"
        if last.startswith("extend") and not (right_extended or left_extended):
            phase = "return"

        rep_completed = (
            last.startswith("extend")
            and phase == "return"
            and state.last_rep_phase != phase
        )

        if right_extended:
            state.last_extended_side = "right"
        elif left_extended:
            state.last_extended_side = "left"

        feedback = None
        if rep_completed:
            other = "left" if state.last_extended_side == "right" else "right"
            feedback = f"Good. Now extend the {other} side"
            logger.info(f"Dead bug rep complete ({state.last_extended_side} side)")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=core_confidence(lm),
        )
