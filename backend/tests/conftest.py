"""
Shared fixtures: synthetic 33-landmark bodies.

Coordinates follow the detector convention: normalized image x/y with y
growing downward. Front-view bodies face the camera, so the person's left
side appears at larger x.
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from formcoach.config import get_settings
from formcoach.vision.landmarks import Landmark, PoseFrame, PoseLandmark as P


# ============================================================================
# Body builders
# ============================================================================

FRONT_STANDING = {
    P.NOSE: (0.5, 0.15),
    P.LEFT_EAR: (0.53, 0.17),
    P.RIGHT_EAR: (0.47, 0.17),
    P.LEFT_SHOULDER: (0.6, 0.3),
    P.RIGHT_SHOULDER: (0.4, 0.3),
    P.LEFT_ELBOW: (0.62, 0.45),
    P.RIGHT_ELBOW: (0.38, 0.45),
    P.LEFT_WRIST: (0.62, 0.58),
    P.RIGHT_WRIST: (0.38, 0.58),
    P.LEFT_HIP: (0.55, 0.6),
    P.RIGHT_HIP: (0.45, 0.6),
    P.LEFT_KNEE: (0.55, 0.75),
    P.RIGHT_KNEE: (0.45, 0.75),
    P.LEFT_ANKLE: (0.55, 0.9),
    P.RIGHT_ANKLE: (0.45, 0.9),
    P.LEFT_HEEL: (0.55, 0.92),
    P.RIGHT_HEEL: (0.45, 0.92),
    P.LEFT_FOOT_INDEX: (0.56, 0.93),
    P.RIGHT_FOOT_INDEX: (0.44, 0.93),
}


def build_landmarks(
    points: Optional[Dict[int, Sequence[float]]] = None,
    visibility: float = 0.9,
    base: Optional[Dict[int, Sequence[float]]] = None
) -> List[Landmark]:
    """
    33 landmarks from a base pose plus overrides.

    Points are (x, y) or (x, y, z); unlisted landmarks sit at the image center.
    """
    coords: Dict[int, Sequence[float]] = {i: (0.5, 0.5) for i in range(33)}
    coords.update(FRONT_STANDING if base is None else base)
    coords.update(points or {})

    landmarks = []
    for i in range(33):
        c = coords[i]
        z = c[2] if len(c) > 2 else 0.0
        landmarks.append(Landmark(x=c[0], y=c[1], z=z, visibility=visibility))
    return landmarks


def both(left: int, right: int, point: Sequence[float]) -> Dict[int, Sequence[float]]:
    """Place a left/right pair on the same point (side view)."""
    return {left: point, right: point}


def _polar(origin: Tuple[float, float], length: float, angle_deg: float) -> Tuple[float, float]:
    """Point `length` away from origin, `angle_deg` from straight up, leaning toward +x."""
    a = math.radians(angle_deg)
    return (origin[0] + length * math.sin(a), origin[1] - length * math.cos(a))


def squat_points(thigh_angle: float, trunk_lean: float = 0.0) -> Dict[int, Sequence[float]]:
    """
    Side-view squat with the given thigh angle from vertical.

    Knees and ankles are fixed with a vertical shin; hips move back and down
    along a 0.2 long thigh. Arms reach forward, away from the knees.
    """
    knee = (0.5, 0.7)
    ankle = (0.5, 0.9)
    hip = _polar(knee, 0.2, -thigh_angle)
    shoulder = _polar(hip, 0.25, trunk_lean)
    ear = _polar(hip, 0.32, trunk_lean)
    wrist = (shoulder[0] + 0.3, shoulder[1])

    points: Dict[int, Sequence[float]] = {}
    points.update(both(P.LEFT_EAR, P.RIGHT_EAR, ear))
    points.update(both(P.LEFT_SHOULDER, P.RIGHT_SHOULDER, shoulder))
    points.update(both(P.LEFT_WRIST, P.RIGHT_WRIST, wrist))
    points.update(both(P.LEFT_HIP, P.RIGHT_HIP, hip))
    points.update(both(P.LEFT_KNEE, P.RIGHT_KNEE, knee))
    points.update(both(P.LEFT_ANKLE, P.RIGHT_ANKLE, ankle))
    return points


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached per process; clear around each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def standing_landmarks() -> List[Landmark]:
    return build_landmarks()


@pytest.fixture
def make_landmarks():
    return build_landmarks


@pytest.fixture
def make_squat_frame():
    """Factory: (thigh_angle, timestamp, trunk_lean=0) -> PoseFrame."""
    def factory(thigh_angle: float, timestamp: float, trunk_lean: float = 0.0) -> PoseFrame:
        return PoseFrame(
            landmarks=build_landmarks(squat_points(thigh_angle, trunk_lean)),
            timestamp=timestamp,
        )
    return factory


@pytest.fixture
def polar():
    return _polar


@pytest.fixture
def pair():
    return both
