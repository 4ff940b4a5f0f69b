"""
Temporal landmark smoothing using Savitzky-Golay and Exponential Moving Average.

Optional pre-processing step between the pose detector and FormEngine:
raw detector output jitters by a few pixels per frame, which shows up as
phantom velocity in the squat descent check and as phase flicker around
thresholds.

SMOOTHING STRATEGY:
1. Savitzky-Golay filter: primary smoother once a landmark has enough
   history - preserves peaks (bottom of a squat) without phase lag
2. EMA fallback: for the first frames of a session
3. Visibility is passed through unfiltered
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.signal import savgol_filter

from formcoach.config import get_settings
from formcoach.vision.landmarks import NUM_LANDMARKS, Landmark, PoseFrame

logger = logging.getLogger(__name__)


class LandmarkSmoother:
    """
    Per-landmark x/y/z smoother for 33-landmark pose frames.

    Landmarks below the visibility threshold keep their last smoothed
    position so a briefly occluded joint does not jump.
    """

    # Savitzky-Golay parameters
    SG_WINDOW_SIZE = 7  # Must be odd, 7 frames = ~230ms at 30fps
    SG_POLY_ORDER = 2   # Quadratic fit

    def __init__(
        self,
        window_size: Optional[int] = None,
        alpha: Optional[float] = None,
        visibility_threshold: float = 0.35,
        use_savgol: bool = True,
        num_landmarks: int = NUM_LANDMARKS
    ):
        """
        Initialize smoother.

        Args:
            window_size: Frames of history per landmark (at least SG_WINDOW_SIZE)
            alpha: EMA smoothing factor (0 = no update, 1 = no smoothing), fallback only
            visibility_threshold: Minimum visibility to accept a new position
            use_savgol: Whether to use Savitzky-Golay (True) or just EMA (False)
            num_landmarks: Landmarks per frame
        """
        settings = get_settings()
        window_size = window_size or settings.smoother_window_size
        self.window_size = max(window_size, self.SG_WINDOW_SIZE)
        self.alpha = settings.smoother_alpha if alpha is None else alpha
        self.visibility_threshold = visibility_threshold
        self.use_savgol = use_savgol
        self.num_landmarks = num_landmarks

        # landmark index -> deque of (x, y, z)
        self.history: Dict[int, Deque[Tuple[float, float, float]]] = {
            i: deque(maxlen=self.window_size) for i in range(num_landmarks)
        }
        self.smoothed: Dict[int, Tuple[float, float, float]] = {}

    def smooth(self, landmarks: Sequence[Landmark]) -> List[Landmark]:
        """
        Smooth one frame of landmarks.

        Args:
            landmarks: Raw landmarks from the detector

        Returns:
            New landmark list of the same length
        """
        result = []
        for i, lm in enumerate(landmarks):
            if i >= self.num_landmarks:
                result.append(lm)
                continue

            if lm.visibility < self.visibility_threshold:
                if i in self.smoothed:
                    x, y, z = self.smoothed[i]
                    result.append(Landmark(x=x, y=y, z=z, visibility=lm.visibility))
                else:
                    result.append(lm)
                continue

            self.history[i].append((lm.x, lm.y, lm.z))

            if self.use_savgol and len(self.history[i]) >= self.SG_WINDOW_SIZE:
                smoothed = self._apply_savgol(i)
            else:
                smoothed = self._apply_ema(i, lm)

            self.smoothed[i] = smoothed
            x, y, z = smoothed
            result.append(Landmark(x=x, y=y, z=z, visibility=lm.visibility))

        return result

    def smooth_frame(self, frame: PoseFrame) -> PoseFrame:
        """Smooth a PoseFrame, keeping its timestamp and frame number."""
        return PoseFrame(
            landmarks=self.smooth(frame.landmarks),
            timestamp=frame.timestamp,
            frame_number=frame.frame_number
        )

    def _apply_savgol(self, index: int) -> Tuple[float, float, float]:
        """Apply Savitzky-Golay filter to a landmark's history."""
        values = np.array(self.history[index])

        window = min(self.SG_WINDOW_SIZE, len(values))
        if window % 2 == 0:
            window -= 1

        if window <= self.SG_POLY_ORDER:
            x, y, z = values[-1]
            return float(x), float(y), float(z)

        filtered = savgol_filter(values, window, self.SG_POLY_ORDER, axis=0)
        x, y, z = filtered[-1]
        return float(x), float(y), float(z)

    def _apply_ema(self, index: int, lm: Landmark) -> Tuple[float, float, float]:
        """Apply EMA smoothing (fallback when SG can't be used)."""
        if index not in self.smoothed:
            return lm.x, lm.y, lm.z

        prev_x, prev_y, prev_z = self.smoothed[index]
        a = self.alpha
        return (
            prev_x * (1 - a) + lm.x * a,
            prev_y * (1 - a) + lm.y * a,
            prev_z * (1 - a) + lm.z * a,
        )

    def reset(self):
        """Reset all smoothing history."""
        for i in range(self.num_landmarks):
            self.history[i].clear()
        self.smoothed.clear()
        logger.debug("Landmark smoother reset")
