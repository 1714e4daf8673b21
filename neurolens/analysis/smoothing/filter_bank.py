"""Per-landmark filter bank for reducing pose estimation jitter.

Holds one smoother per landmark index, created lazily the first time the
index is observed. The bank is owned by a single tracking session; reset()
drops every per-index smoother at once.
"""

import logging
from collections.abc import Sequence

from neurolens.detection.landmarks import Landmark
from .ema_smoother import EMASmoother
from .one_euro_filter import TIMESTAMP_UNITS, LandmarkSmoother

logger = logging.getLogger(__name__)

SMOOTHING_METHODS = ("one_euro", "ema")


class LandmarkFilterBank:
    """Smoother for a sequence of pose landmarks (33 in MediaPipe format).

    Args:
        method: "one_euro" (adaptive, default) or "ema" (fixed weight).
        min_cutoff: One Euro minimum cutoff frequency (Hz).
        beta: One Euro speed coefficient.
        d_cutoff: One Euro derivative cutoff (Hz).
        ema_alpha: EMA weight of the newest sample.
        timestamp_unit: One Euro time-step unit, "ms" (default) or "s".

    Example:
        >>> bank = LandmarkFilterBank()
        >>> smoothed = bank.smooth(landmarks, timestamp_ms=33.0)
    """

    def __init__(
        self,
        method: str = "one_euro",
        min_cutoff: float = 1.0,
        beta: float = 0.0,
        d_cutoff: float = 1.0,
        ema_alpha: float = 0.3,
        timestamp_unit: str = "ms",
    ):
        if method not in SMOOTHING_METHODS:
            raise ValueError(f"method must be one of {SMOOTHING_METHODS}, got {method!r}")
        if timestamp_unit not in TIMESTAMP_UNITS:
            raise ValueError(f"timestamp_unit must be one of {TIMESTAMP_UNITS}, got {timestamp_unit!r}")

        self._method = method
        self._min_cutoff = min_cutoff
        self._beta = beta
        self._d_cutoff = d_cutoff
        self._ema_alpha = ema_alpha
        self._timestamp_unit = timestamp_unit

        self._filters: dict[int, LandmarkSmoother | EMASmoother] = {}

    @property
    def method(self) -> str:
        return self._method

    def _create_filter(self) -> LandmarkSmoother | EMASmoother:
        if self._method == "ema":
            return EMASmoother(self._ema_alpha)
        return LandmarkSmoother(self._min_cutoff, self._beta, self._d_cutoff, self._timestamp_unit)

    def _filter_for(self, index: int) -> LandmarkSmoother | EMASmoother:
        smoother = self._filters.get(index)
        if smoother is None:
            smoother = self._create_filter()
            self._filters[index] = smoother
            logger.debug(f"Created {self._method} filter for landmark {index}")
        return smoother

    def smooth(self, landmarks: Sequence[Landmark | None], timestamp_ms: float) -> list[Landmark | None]:
        """Apply smoothing to landmark positions.

        Args:
            landmarks: Raw landmarks in index order (shorter than 33 is allowed)
            timestamp_ms: Current frame timestamp in milliseconds

        Returns:
            New list of the same length with smoothed positions; visibility is
            carried over unchanged and missing entries stay None
        """
        smoothed: list[Landmark | None] = []
        for index, landmark in enumerate(landmarks):
            if landmark is None:
                smoothed.append(None)
                continue

            point = self._filter_for(index).filter(landmark, timestamp_ms)
            smoothed.append(
                Landmark(x=point.x, y=point.y, z=point.z, visibility=landmark.visibility)
            )
        return smoothed

    def smooth_batch(
        self,
        frames: Sequence[Sequence[Landmark | None]],
        timestamps: Sequence[float],
    ) -> list[list[Landmark | None]]:
        """Smooth a batch of frames with corresponding timestamps.

        Raises:
            ValueError: If frames and timestamps have different lengths
        """
        if len(frames) != len(timestamps):
            raise ValueError(
                f"frames ({len(frames)}) and timestamps ({len(timestamps)}) "
                "must have same length"
            )

        return [self.smooth(f, t) for f, t in zip(frames, timestamps)]

    def reset(self) -> None:
        """Drop all per-landmark filters for a new tracking session."""
        self._filters.clear()
        logger.debug("Landmark filter bank reset")

    def reset_landmark(self, index: int) -> None:
        """Drop the filter for one landmark index; it is recreated on next use."""
        self._filters.pop(int(index), None)

    def __contains__(self, index: int) -> bool:
        return int(index) in self._filters

    def __len__(self) -> int:
        return len(self._filters)


__all__ = ["LandmarkFilterBank", "SMOOTHING_METHODS"]
