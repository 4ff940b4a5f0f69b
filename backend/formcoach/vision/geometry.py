"""
Geometric feature extraction from pose landmarks.

Pure, total functions: degenerate geometry (coincident points, zero-length
segments) yields a neutral value instead of NaN or an exception, so a single
bad frame can never break an analyzer.
"""

from typing import Optional, Sequence

import numpy as np

from formcoach.vision.landmarks import Landmark, PoseLandmark

_EPSILON = 1e-9

# Joints used for the visibility-derived base score
BASE_SCORE_LANDMARKS = (
    PoseLandmark.LEFT_SHOULDER,
    PoseLandmark.RIGHT_SHOULDER,
    PoseLandmark.LEFT_HIP,
    PoseLandmark.RIGHT_HIP,
    PoseLandmark.LEFT_KNEE,
    PoseLandmark.RIGHT_KNEE,
)

CORE_LANDMARKS = (
    PoseLandmark.LEFT_SHOULDER,
    PoseLandmark.RIGHT_SHOULDER,
    PoseLandmark.LEFT_HIP,
    PoseLandmark.RIGHT_HIP,
)


def clamp(value: float, minimum: float, maximum: float) -> float:
    return min(maximum, max(minimum, value))


def midpoint(a: Landmark, b: Landmark) -> Landmark:
    """Component-wise mean of two landmarks, visibility included."""
    return Landmark(
        x=(a.x + b.x) / 2,
        y=(a.y + b.y) / 2,
        z=(a.z + b.z) / 2,
        visibility=(a.visibility + b.visibility) / 2,
    )


def distance_2d(a: Landmark, b: Landmark) -> float:
    """Euclidean distance in the image plane."""
    return float(np.hypot(a.x - b.x, a.y - b.y))


def _vertex_angle(ba: np.ndarray, bc: np.ndarray) -> float:
    magnitude = np.linalg.norm(ba) * np.linalg.norm(bc)
    if magnitude < _EPSILON:
        return 0.0
    cosine = np.clip(np.dot(ba, bc) / magnitude, -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine)))


def angle_between(a: Landmark, b: Landmark, c: Landmark) -> float:
    """
    2D angle at vertex b between rays b->a and b->c.

    Returns:
        Angle in degrees within [0, 180]; 0 when either ray has no length
    """
    ba = np.array([a.x - b.x, a.y - b.y])
    bc = np.array([c.x - b.x, c.y - b.y])
    return _vertex_angle(ba, bc)


def angle_between_3d(a: Landmark, b: Landmark, c: Landmark) -> float:
    """3D variant of angle_between, using the relative depth as well."""
    ba = np.array([a.x - b.x, a.y - b.y, a.z - b.z])
    bc = np.array([c.x - b.x, c.y - b.y, c.z - b.z])
    return _vertex_angle(ba, bc)


def average_visibility(landmarks: Sequence[Landmark], indices: Sequence[int]) -> float:
    """
    Mean visibility over a joint subset.

    Doubles as the per-frame confidence an analyzer reports. Indices past the
    end of the frame count as invisible.
    """
    if not indices:
        return 0.0
    total = 0.0
    for index in indices:
        if 0 <= index < len(landmarks):
            total += landmarks[index].visibility
    return clamp(total / len(indices), 0.0, 1.0)


def base_form_score(landmarks: Sequence[Landmark]) -> int:
    """Visibility-derived score (0-100) of shoulders, hips and knees."""
    visibility = average_visibility(landmarks, BASE_SCORE_LANDMARKS)
    return int(clamp(round(visibility * 100), 0, 100))


def core_confidence(landmarks: Sequence[Landmark]) -> float:
    """Confidence from shoulder and hip visibility."""
    return average_visibility(landmarks, CORE_LANDMARKS)


def trunk_lean_angle(shoulder: Landmark, hip: Landmark) -> float:
    """Torso angle from vertical in degrees (0 = upright, 90 = horizontal)."""
    dy = hip.y - shoulder.y
    dx = hip.x - shoulder.x
    return abs(float(np.degrees(np.arctan2(dx, dy))))


def thigh_angle_from_horizontal(hip: Landmark, knee: Landmark) -> float:
    """
    Angle between the thigh and the horizontal image axis.

    Small values mean the thigh is close to parallel with the floor (deep
    lunge), 90 means the thigh is vertical.
    """
    dx = abs(hip.x - knee.x)
    dy = abs(hip.y - knee.y)
    return float(np.degrees(np.arctan2(dy, dx)))


def shin_angle_from_vertical(knee: Landmark, ankle: Landmark) -> float:
    """Shin angle from vertical in degrees (0 = knee straight above ankle)."""
    dx = abs(knee.x - ankle.x)
    dy = abs(knee.y - ankle.y)
    return float(np.degrees(np.arctan2(dx, dy)))


def signed_segment_angle(top: Landmark, bottom: Landmark) -> float:
    """
    Signed angle of the bottom->top segment from vertical.

    Positive when the top point leans toward +x. Image y grows downward.
    """
    dx = top.x - bottom.x
    dy = top.y - bottom.y
    return float(np.degrees(np.arctan2(dx, -dy)))


def check_orientation(
    landmarks: Sequence[Landmark],
    desired: str
) -> Optional[str]:
    """
    Check whether the user faces the camera the way an exercise needs.

    Compares shoulder width to torso height: a side view collapses the
    shoulders, a front view spreads them.

    Args:
        landmarks: Frame landmarks
        desired: "front" or "side"

    Returns:
        Corrective message, or None when the orientation is right
    """
    left_shoulder = landmarks[PoseLandmark.LEFT_SHOULDER]
    right_shoulder = landmarks[PoseLandmark.RIGHT_SHOULDER]
    mid_shoulder = midpoint(left_shoulder, right_shoulder)
    mid_hip = midpoint(landmarks[PoseLandmark.LEFT_HIP], landmarks[PoseLandmark.RIGHT_HIP])

    torso_height = distance_2d(mid_shoulder, mid_hip) or 1.0
    ratio = distance_2d(left_shoulder, right_shoulder) / torso_height

    if desired == "side":
        if ratio > 0.6:
            return "Turn to face the side"
    elif ratio < 0.5:
        return "Turn to face forward"
    return None
