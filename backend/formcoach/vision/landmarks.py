"""
Landmark types for per-frame form analysis.

The upstream pose pipeline delivers 33 body landmarks per captured frame,
indexed by the MediaPipe Pose convention. Coordinates are normalized to the
image (0-1, y grows downward), z is depth relative to the hips and
visibility is the detector's confidence (0-1).
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence

import numpy as np


class PoseLandmark(IntEnum):
    """MediaPipe Pose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


NUM_LANDMARKS = len(PoseLandmark)


class LandmarkCountError(ValueError):
    """Raised when a frame does not carry the expected number of landmarks."""


@dataclass(frozen=True)
class Landmark:
    """Single tracked body point."""
    x: float  # Normalized x coordinate (0-1)
    y: float  # Normalized y coordinate (0-1)
    z: float = 0.0  # Depth relative to hips
    visibility: float = 0.0  # Confidence score (0-1)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Landmark":
        """Build from [x, y, z, visibility]; z and visibility are optional."""
        x, y = float(values[0]), float(values[1])
        z = float(values[2]) if len(values) > 2 else 0.0
        visibility = float(values[3]) if len(values) > 3 else 0.0
        return cls(x=x, y=y, z=z, visibility=visibility)


@dataclass
class PoseFrame:
    """
    One captured frame of landmarks.

    Processed exactly once by the engine; nothing here is buffered beyond
    what an individual analyzer state keeps.
    """
    landmarks: List[Landmark]
    timestamp: float  # Seconds
    frame_number: Optional[int] = None

    def __getitem__(self, index: int) -> Landmark:
        return self.landmarks[index]

    def __len__(self) -> int:
        return len(self.landmarks)

    @classmethod
    def from_array(
        cls,
        values: Iterable[Sequence[float]],
        timestamp: float,
        frame_number: Optional[int] = None
    ) -> "PoseFrame":
        """Create a frame from an (N, 3) or (N, 4) array-like."""
        return cls(
            landmarks=[Landmark.from_sequence(v) for v in values],
            timestamp=timestamp,
            frame_number=frame_number
        )

    def to_array(self) -> np.ndarray:
        """Return an (N, 4) array of x, y, z, visibility."""
        return np.array([[lm.x, lm.y, lm.z, lm.visibility] for lm in self.landmarks])


def validate_landmark_count(
    landmarks: Sequence[Landmark],
    expected: int = NUM_LANDMARKS
) -> None:
    """
    Fail fast on a frame of the wrong shape.

    A count mismatch means the caller wired the wrong pose model or index
    convention, so it is raised instead of recovered per frame.
    """
    if len(landmarks) != expected:
        raise LandmarkCountError(
            f"Expected {expected} landmarks per frame, got {len(landmarks)}"
        )
