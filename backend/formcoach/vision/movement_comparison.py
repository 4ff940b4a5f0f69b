"""
Trajectory comparison against a reference repetition using DTW.

During a repetition the analyzer records one signal per frame (the squat
records its thigh angle). When the rep completes, the recording is
resampled to a canonical length and aligned against an authored reference
curve with dynamic time warping. The alignment cost maps linearly to a
0-100 similarity score.

DTW is used instead of a point-by-point distance because users move at
different tempos: a slow descent and a fast ascent should still match a
reference cycle of the same shape.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from formcoach.config import get_settings
from formcoach.vision.geometry import clamp
from formcoach.vision.telemetry import TelemetrySink, emit

logger = logging.getLogger(__name__)

# Distance reported when a rep is too short to compare
TOO_SHORT_DISTANCE = 999.0

# Buckets in the averaged profile emitted for recording new references
REFERENCE_BUCKETS = 10


@dataclass(frozen=True)
class ReferenceTrajectory:
    """
    Canonical signal curve of one good repetition.

    Attributes:
        name: Identifier used in telemetry
        samples: Signal values spanning start -> peak -> return
        max_distance: DTW distance of a "very poor" rep for this reference;
            maps to a score of 0
    """
    name: str
    samples: Sequence[float]
    max_distance: float = 300.0


# Thigh angle from vertical (degrees), 10-point averaged good squat:
# stand -> descend -> bottom -> ascend -> stand
SQUAT_REFERENCE = ReferenceTrajectory(
    name="squat_thigh_angle",
    samples=(33, 60, 78, 90, 96, 91, 80, 64, 43, 26),
    max_distance=300.0,
)


@dataclass
class ComparisonResult:
    """Outcome of comparing one rep against a reference."""
    score: int
    feedback: str
    distance: float


def resample_trajectory(values: Sequence[float], target_length: int) -> np.ndarray:
    """
    Linearly interpolate a trajectory down to target_length samples.

    Trajectories at or below the target length are returned unchanged.
    Both endpoints are preserved.
    """
    arr = np.asarray(values, dtype=float)
    if len(arr) <= target_length:
        return arr

    positions = np.linspace(0, len(arr) - 1, target_length)
    return np.interp(positions, np.arange(len(arr)), arr)


def dtw_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Dynamic time warping distance with absolute-difference cost.

    Finds the minimum-cost monotonic alignment between two sequences of
    possibly different lengths and returns its cumulative cost.
    """
    x = np.asarray(a, dtype=float)
    y = np.asarray(b, dtype=float)
    n, m = len(x), len(y)
    if n == 0 or m == 0:
        return 0.0 if n == m else float("inf")

    cost = np.abs(x[:, None] - y[None, :])

    acc = np.full((n, m), np.inf)
    acc[0, 0] = cost[0, 0]
    for i in range(1, n):
        acc[i, 0] = acc[i - 1, 0] + cost[i, 0]
    for j in range(1, m):
        acc[0, j] = acc[0, j - 1] + cost[0, j]

    for i in range(1, n):
        for j in range(1, m):
            acc[i, j] = cost[i, j] + min(acc[i - 1, j], acc[i, j - 1], acc[i - 1, j - 1])

    return float(acc[n - 1, m - 1])


def score_feedback(score: float) -> str:
    """Canned coaching text for a similarity score."""
    if score >= 80:
        return "Excellent form!"
    elif score >= 60:
        return "Good rep!"
    elif score >= 40:
        return "Work on consistency"
    return "Try to match the movement pattern"


def averaged_profile(values: Sequence[float], buckets: int = REFERENCE_BUCKETS) -> list:
    """Average a recording into a fixed number of buckets, rounded to integers."""
    if len(values) == 0:
        return []
    bucket_size = max(1, len(values) // buckets)
    profile = []
    for i in range(buckets):
        bucket = values[i * bucket_size:min((i + 1) * bucket_size, len(values))]
        if len(bucket) > 0:
            profile.append(int(round(float(np.mean(bucket)))))
    return profile


def compare_rep(
    values: Sequence[float],
    reference: ReferenceTrajectory = SQUAT_REFERENCE,
    telemetry: Optional[TelemetrySink] = None,
    target_length: Optional[int] = None,
    min_length: Optional[int] = None
) -> ComparisonResult:
    """
    Score a recorded repetition against a reference trajectory.

    Args:
        values: Signal recorded once per frame during the rep
        reference: Reference curve and its calibration constant
        telemetry: Optional sink for the dtw_comparison event
        target_length: Resampling length (defaults to settings)
        min_length: Minimum viable recording (defaults to settings)

    Returns:
        ComparisonResult; too-short recordings score 0 without comparison
    """
    settings = get_settings()
    target_length = target_length or settings.dtw_target_length
    min_length = min_length or settings.dtw_min_length

    if len(values) < min_length:
        logger.debug(f"Rep too short for DTW: {len(values)} < {min_length} samples")
        return ComparisonResult(
            score=0,
            feedback="Rep too short to analyze",
            distance=TOO_SHORT_DISTANCE
        )

    normalized = resample_trajectory(values, target_length)
    distance = dtw_distance(normalized, reference.samples)

    similarity = clamp(100 - (distance / reference.max_distance) * 100, 0, 100)
    score = int(round(similarity))

    if getattr(telemetry, "enabled", False):
        emit(
            telemetry,
            "dtw_comparison",
            reference=reference.name,
            distance=distance,
            score=score,
            frames=len(values),
            averaged=averaged_profile(list(values)),
        )

    return ComparisonResult(
        score=score,
        feedback=score_feedback(similarity),
        distance=distance
    )
