"""Exponential moving average smoother for landmark positions."""

from neurolens.detection.landmarks import Point


class EMASmoother:
    """Fixed-weight low-pass smoother.

    Args:
        alpha: Weight of the newest sample, clamped to [0, 1].
               1.0 = no smoothing, 0.0 = output frozen at the first sample.
    """

    def __init__(self, alpha: float = 0.3):
        self._alpha = max(0.0, min(1.0, alpha))
        self._last_value: Point | None = None

    @property
    def alpha(self) -> float:
        return self._alpha

    def smooth(self, point: Point) -> Point:
        if self._last_value is None:
            self._last_value = Point(x=point.x, y=point.y, z=point.z)
            return point

        a = self._alpha
        last = self._last_value
        smoothed = Point(
            x=a * point.x + (1 - a) * last.x,
            y=a * point.y + (1 - a) * last.y,
        )
        if point.z is not None and last.z is not None:
            smoothed.z = a * point.z + (1 - a) * last.z

        self._last_value = smoothed
        return smoothed

    def filter(self, point: Point, timestamp_ms: float | None = None) -> Point:
        """Same call shape as LandmarkSmoother.filter; the timestamp is unused."""
        return self.smooth(point)

    def reset(self) -> None:
        self._last_value = None


__all__ = ["EMASmoother"]
