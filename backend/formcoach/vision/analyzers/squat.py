"""
Squat analyzer.

Depth is tracked with the thigh angle from vertical (0 = standing, 90 =
thigh parallel to the floor). Form checks run on every frame of a rep but
are only queued; the queue is flushed into findings on the frame the user
returns to standing, together with a DTW comparison of the rep's thigh
angle curve against the reference squat.

Phases:
- standing: thigh angle below standing_angle
- descending: between standing_angle and min_depth_angle, going down
- bottom: thigh angle at or past min_depth_angle
- ascending: between the two, coming back up from bottom
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from formcoach.config import get_settings
from formcoach.vision.analyzers.base import AnalyzerState, ExerciseAnalyzer, register_analyzer
from formcoach.vision.geometry import (
    BASE_SCORE_LANDMARKS,
    angle_between,
    average_visibility,
    base_form_score,
    distance_2d,
    midpoint,
    signed_segment_angle,
    trunk_lean_angle,
)
from formcoach.vision.landmarks import PoseLandmark as P
from formcoach.vision.movement_comparison import SQUAT_REFERENCE, compare_rep
from formcoach.vision.rep_queue import ErrorSpec, FormErrorCode, RepErrorQueue
from formcoach.vision.results import AnalysisResult, FormDebug, Severity
from formcoach.vision.telemetry import emit

logger = logging.getLogger(__name__)


SQUAT_ERRORS = {
    FormErrorCode.FORWARD_LEAN: ErrorSpec("Keep your chest up", Severity.WARNING, "torso"),
    FormErrorCode.KNEE_FORWARD: ErrorSpec("Sit back more, keep knees behind toes", Severity.WARNING, "knees"),
    FormErrorCode.UPPER_BACK_ROUND: ErrorSpec("Don't round your upper back", Severity.WARNING, "head"),
    FormErrorCode.HANDS_ON_LEGS: ErrorSpec("Don't rest your hands on your legs", Severity.WARNING, "arms"),
    FormErrorCode.SPEED_TOO_FAST: ErrorSpec("Slow down, control the descent", Severity.INFO, "overall"),
    FormErrorCode.INSUFFICIENT_DEPTH: ErrorSpec("Try to squat a bit deeper next time", Severity.INFO, "legs"),
}


@dataclass
class SquatState(AnalyzerState):
    """Per-attempt squat tracking."""
    last_phase: str = "standing"
    last_hip_y: Optional[float] = None
    last_hip_timestamp: Optional[float] = None
    peak_descent_speed: float = 0.0
    rep_errors: RepErrorQueue = field(default_factory=RepErrorQueue)
    max_thigh_angle: float = 0.0
    rep_angles: List[float] = field(default_factory=list)  # Thigh angles for DTW


@register_analyzer("squat", "goblet-squat")
class SquatAnalyzer(ExerciseAnalyzer):
    """Bodyweight and goblet squat."""

    name = "squat"
    state_class = SquatState

    DEFAULT_THRESHOLDS = {
        "standing_angle": 20.0,          # Thigh angle below this = standing
        "min_depth_angle": 70.0,         # Target depth
        "min_rep_angle": 40.0,           # Shallower attempts are not counted
        "max_trunk_lean": 60.0,
        "max_shin_angle": 45.0,
        "max_descent_speed": 10.0,       # Normalized hip y units per second
        "min_neck_angle": 120.0,         # Ear-shoulder-hip
        "hands_on_legs_distance": 0.08,  # Wrist to knee
    }

    def analyze(self, frame, state, thresholds=None, telemetry=None, settings=None):
        t = self.resolve_thresholds(thresholds)
        lm = frame.landmarks

        mid_ear = midpoint(lm[P.LEFT_EAR], lm[P.RIGHT_EAR])
        mid_shoulder = midpoint(lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER])
        mid_hip = midpoint(lm[P.LEFT_HIP], lm[P.RIGHT_HIP])
        mid_knee = midpoint(lm[P.LEFT_KNEE], lm[P.RIGHT_KNEE])
        mid_ankle = midpoint(lm[P.LEFT_ANKLE], lm[P.RIGHT_ANKLE])

        thigh_angle = abs(signed_segment_angle(mid_hip, mid_knee))
        trunk_lean = trunk_lean_angle(mid_shoulder, mid_hip)
        shin_angle = abs(signed_segment_angle(mid_knee, mid_ankle))
        neck_angle = angle_between(mid_ear, mid_shoulder, mid_hip)

        left_hand_dist = min(
            distance_2d(lm[P.LEFT_WRIST], lm[P.LEFT_KNEE]),
            distance_2d(lm[P.LEFT_WRIST], lm[P.RIGHT_KNEE]),
        )
        right_hand_dist = min(
            distance_2d(lm[P.RIGHT_WRIST], lm[P.LEFT_KNEE]),
            distance_2d(lm[P.RIGHT_WRIST], lm[P.RIGHT_KNEE]),
        )

        settings = settings or get_settings()
        self._track_descent_speed(
            state, mid_hip.y, frame.timestamp, settings.velocity_window_seconds
        )

        # Phase from thigh angle (higher = deeper)
        last = state.last_phase
        if thigh_angle >= t["min_depth_angle"]:
            phase = "bottom"
        elif thigh_angle >= t["standing_angle"]:
            phase = "ascending" if last in ("bottom", "ascending") else "descending"
        else:
            phase = "standing"

        # Shallow returns from descending count too, provided min_rep_angle was reached
        is_rep_transition = last in ("ascending", "descending") and phase == "standing"
        rep_completed = is_rep_transition and state.max_thigh_angle >= t["min_rep_angle"]

        if last == "standing" and phase != "standing":
            state.rep_errors.reset()
            state.peak_descent_speed = 0.0
            state.max_thigh_angle = thigh_angle
            state.rep_angles = []
            logger.debug(f"Squat rep started at {thigh_angle:.1f}°")

        if phase != "standing":
            state.max_thigh_angle = max(state.max_thigh_angle, thigh_angle)
            state.rep_angles.append(thigh_angle)

            if trunk_lean > t["max_trunk_lean"]:
                state.rep_errors.add(FormErrorCode.FORWARD_LEAN)
            if shin_angle > t["max_shin_angle"]:
                state.rep_errors.add(FormErrorCode.KNEE_FORWARD)
            if neck_angle < t["min_neck_angle"]:
                state.rep_errors.add(FormErrorCode.UPPER_BACK_ROUND)
            if min(left_hand_dist, right_hand_dist) < t["hands_on_legs_distance"]:
                state.rep_errors.add(FormErrorCode.HANDS_ON_LEGS)

        # Velocity is judged once, on the way out of the descent
        if last == "descending" and phase != "descending":
            if state.peak_descent_speed > t["max_descent_speed"]:
                state.rep_errors.add(FormErrorCode.SPEED_TOO_FAST)

        feedback = None
        if phase in ("descending", "ascending"):
            if state.max_thigh_angle < t["min_depth_angle"]:
                feedback = "Squat a bit deeper"
            else:
                feedback = "Great depth! Now stand up"
        elif phase == "bottom":
            feedback = "Good depth, hold it!"
        elif phase == "standing" and last == "ascending":
            feedback = "Rep complete!"

        peak_speed = state.peak_descent_speed
        queued = state.rep_errors.codes
        findings = []
        if rep_completed:
            if state.max_thigh_angle < t["min_depth_angle"]:
                state.rep_errors.add(FormErrorCode.INSUFFICIENT_DEPTH)
            queued = state.rep_errors.codes
            shallow = FormErrorCode.INSUFFICIENT_DEPTH in state.rep_errors

            comparison = compare_rep(
                state.rep_angles,
                SQUAT_REFERENCE,
                telemetry,
                target_length=settings.dtw_target_length,
                min_length=settings.dtw_min_length,
            )
            findings = state.rep_errors.flush(SQUAT_ERRORS, frame.timestamp)

            depth_info = f"({state.max_thigh_angle:.0f}°)"
            if not findings:
                feedback = f"{comparison.feedback} {comparison.score}% {depth_info}"
            elif shallow:
                feedback = f"Shallow squat {depth_info}. Try to go deeper."
            else:
                feedback = f"{comparison.feedback} {comparison.score}% - Check your form {depth_info}"

            logger.info(
                f"Squat rep complete: depth={state.max_thigh_angle:.1f}°, "
                f"dtw_score={comparison.score}, errors={queued}"
            )
            emit(
                telemetry,
                "squat_rep",
                max_thigh_angle=state.max_thigh_angle,
                peak_descent_speed=peak_speed,
                dtw_score=comparison.score,
                errors=queued,
            )
            state.peak_descent_speed = 0.0
            state.rep_angles = []

        if phase != last:
            logger.debug(f"Squat phase {last} → {phase} (thigh {thigh_angle:.1f}°)")

        return AnalysisResult(
            phase=phase,
            form_score=base_form_score(lm),
            findings=findings,
            feedback=feedback,
            rep_completed=rep_completed,
            confidence=average_visibility(lm, BASE_SCORE_LANDMARKS),
            debug=FormDebug(
                knee_angle=thigh_angle,
                trunk_lean=trunk_lean,
                knee_forward=shin_angle,
                descent_speed=peak_speed,
                min_depth=state.max_thigh_angle,
                queued_errors=queued,
            ),
        )

    @staticmethod
    def _track_descent_speed(
        state: SquatState,
        hip_y: float,
        timestamp: float,
        window: float
    ) -> None:
        """Update the peak downward hip velocity from consecutive frames."""
        if state.last_hip_y is not None and state.last_hip_timestamp is not None:
            dt = timestamp - state.last_hip_timestamp
            # Longer gaps are tracking dropouts, not motion
            if 0 < dt < window:
                speed = (hip_y - state.last_hip_y) / dt
                if speed > state.peak_descent_speed:
                    state.peak_descent_speed = speed
        state.last_hip_y = hip_y
        state.last_hip_timestamp = timestamp
