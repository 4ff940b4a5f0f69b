"""Camera positioning hints computed from a single landmark frame."""

from dataclasses import dataclass
from typing import Optional, Sequence

from formcoach.config import get_settings
from formcoach.vision.landmarks import Landmark, PoseLandmark as P

# Distance from the frame edge treated as touching it
EDGE_MARGIN = 0.02

MIN_SUBJECT_HEIGHT = 0.4   # Below = too far away
MAX_SUBJECT_HEIGHT = 0.9   # Above = too close
FEET_CHECK_HEIGHT = 0.6


@dataclass
class CameraFeedback:
    message: str
    type: str = "warning"


def get_camera_feedback(
    landmarks: Optional[Sequence[Landmark]],
    visibility_threshold: Optional[float] = None
) -> Optional[CameraFeedback]:
    """
    Check how the user is framed by the camera.

    Checks run from coarse to fine and the first problem found wins.

    Args:
        landmarks: Frame landmarks, possibly empty when nobody is detected
        visibility_threshold: Visibility above which a landmark counts as seen

    Returns:
        CameraFeedback, or None when positioning is good
    """
    if not landmarks:
        return CameraFeedback("No person detected")

    if visibility_threshold is None:
        visibility_threshold = get_settings().camera_visibility_threshold

    def visible(lm: Landmark) -> bool:
        return lm.visibility > visibility_threshold

    seen = [lm for lm in landmarks if visible(lm)]
    if seen:
        height = max(lm.y for lm in seen) - min(lm.y for lm in seen)
    else:
        height = 0.0

    if height < MIN_SUBJECT_HEIGHT:
        return CameraFeedback("Too far, move closer")

    nose = landmarks[P.NOSE]
    left_ankle = landmarks[P.LEFT_ANKLE]
    right_ankle = landmarks[P.RIGHT_ANKLE]

    head_visible = visible(nose) or (
        visible(landmarks[P.LEFT_SHOULDER]) and visible(landmarks[P.RIGHT_SHOULDER])
    )
    body_visible = visible(landmarks[P.LEFT_HIP]) or visible(landmarks[P.RIGHT_HIP])
    feet_visible = visible(left_ankle) or visible(right_ankle)

    if not head_visible:
        return CameraFeedback("Cannot see head")
    if not body_visible:
        return CameraFeedback("Cannot see body")

    if nose.y < EDGE_MARGIN:
        return CameraFeedback("Too close to top")

    if left_ankle.y > 1 - EDGE_MARGIN or right_ankle.y > 1 - EDGE_MARGIN:
        if not feet_visible:
            return CameraFeedback("Cannot see feet")
        return CameraFeedback("Too close to bottom")

    if any(lm.x < EDGE_MARGIN or lm.x > 1 - EDGE_MARGIN for lm in seen):
        return CameraFeedback("Too close to edge")

    if height > MAX_SUBJECT_HEIGHT:
        return CameraFeedback("Too close, move back")

    if not feet_visible and height > FEET_CHECK_HEIGHT:
        return CameraFeedback("Cannot see feet")

    return None
