"""One Euro Filter for real-time landmark smoothing.

Implementation based on the paper:
"1€ Filter: A Simple Speed-based Low-pass Filter for Noisy Input in Interactive Systems"
by Géry Casiez, Nicolas Roussel, and Daniel Vogel (CHI 2012)

The filter adapts its cutoff frequency to the speed of the signal:
- Low latency for fast movements (less smoothing)
- Strong smoothing for slow movements or stationary landmarks

Each axis of a landmark owns its own pair of low-pass filters (position and
velocity), so x, y and z never share filter memory.

Reference: https://cristal.univ-lille.fr/~casiez/1euro/
"""

import math

from neurolens.detection.landmarks import Point

AXES = ("x", "y", "z")
TIMESTAMP_UNITS = ("ms", "s")


class LowPassFilter:
    """Simple exponential smoothing low-pass filter for one scalar signal."""

    def __init__(self):
        self._initialized = False
        self._last_value: float = 0.0

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def last_value(self) -> float:
        return self._last_value

    def filter(self, value: float, alpha: float) -> float:
        """Apply low-pass filter to value.

        Args:
            value: Input value to filter
            alpha: Smoothing factor (0 = max smooth, 1 = no smooth)

        Returns:
            Filtered value; the first sample is returned unchanged
        """
        if not self._initialized:
            self._last_value = value
            self._initialized = True
            return value

        self._last_value = alpha * value + (1 - alpha) * self._last_value
        return self._last_value

    def reset(self) -> None:
        self._initialized = False
        self._last_value = 0.0


class LandmarkSmoother:
    """One Euro Filter for a single tracked landmark.

    Args:
        min_cutoff: Minimum cutoff frequency (Hz). Lower values = more smoothing.
        beta: Speed coefficient. Higher values = less smoothing during fast motion.
              Default 0.0 gives a fixed-cutoff filter.
        d_cutoff: Cutoff frequency (Hz) for velocity smoothing.
        timestamp_unit: Unit used for the time step in alpha and velocity.
              "ms" (default) uses the raw millisecond delta; "s" converts
              it to seconds so cutoffs behave as true Hz.

    Example:
        >>> smoother = LandmarkSmoother(min_cutoff=1.0, beta=0.0)
        >>> # First frame at t=0 ms
        >>> smoothed = smoother.filter(Point(0.51, 0.42), timestamp_ms=0.0)
        >>> # Next frame at t=33 ms (30fps)
        >>> smoothed = smoother.filter(Point(0.52, 0.43), timestamp_ms=33.0)
    """

    def __init__(
        self,
        min_cutoff: float = 1.0,
        beta: float = 0.0,
        d_cutoff: float = 1.0,
        timestamp_unit: str = "ms",
    ):
        if min_cutoff <= 0:
            raise ValueError("min_cutoff must be positive")
        if d_cutoff <= 0:
            raise ValueError("d_cutoff must be positive")
        if timestamp_unit not in TIMESTAMP_UNITS:
            raise ValueError(f"timestamp_unit must be one of {TIMESTAMP_UNITS}, got {timestamp_unit!r}")

        self._min_cutoff = min_cutoff
        self._beta = beta
        self._d_cutoff = d_cutoff
        self._time_scale = 1.0 if timestamp_unit == "ms" else 1000.0

        self._x_filters = {axis: LowPassFilter() for axis in AXES}
        self._dx_filters = {axis: LowPassFilter() for axis in AXES}
        self._last_timestamp: float | None = None

    @property
    def last_timestamp(self) -> float | None:
        return self._last_timestamp

    @staticmethod
    def _smoothing_factor(te: float, cutoff: float) -> float:
        """Calculate smoothing factor alpha.

        Args:
            te: Time period between samples (in the configured timestamp unit)
            cutoff: Cutoff frequency (Hz)

        Returns:
            Alpha value in range (0, 1)
        """
        tau = 1.0 / (2 * math.pi * cutoff)
        return 1.0 / (1.0 + tau / te)

    def filter(self, point: Point, timestamp_ms: float) -> Point:
        """Apply One Euro Filter to a landmark position.

        Args:
            point: Current measurement
            timestamp_ms: Current timestamp in milliseconds

        Returns:
            Smoothed point; z is only filtered when the input carries it
        """
        axes = self._axes_of(point)

        if self._last_timestamp is None:
            # First sample - seed filters and return as-is
            self._last_timestamp = timestamp_ms
            for axis in axes:
                self._x_filters[axis].filter(getattr(point, axis), 1.0)
                self._dx_filters[axis].filter(0.0, 1.0)
            return point

        te_ms = timestamp_ms - self._last_timestamp
        self._last_timestamp = timestamp_ms
        if te_ms <= 0:
            # Duplicate or out-of-order frame - pass through without advancing state
            return point

        te = te_ms / self._time_scale

        # Estimate and filter velocity per axis
        alpha_d = self._smoothing_factor(te, self._d_cutoff)
        speed_sq = 0.0
        for axis in axes:
            value = getattr(point, axis)
            x_filter = self._x_filters[axis]
            if not x_filter.initialized:
                # Axis appeared mid-session (e.g. z) - seed it
                x_filter.filter(value, 1.0)
                self._dx_filters[axis].filter(0.0, 1.0)
                continue
            dx = (value - x_filter.last_value) / te
            dx_hat = self._dx_filters[axis].filter(dx, alpha_d)
            speed_sq += dx_hat * dx_hat

        # Adaptive cutoff based on speed
        cutoff = self._min_cutoff + self._beta * math.sqrt(speed_sq)
        alpha = self._smoothing_factor(te, cutoff)

        smoothed = {axis: self._x_filters[axis].filter(getattr(point, axis), alpha) for axis in axes}
        return Point(x=smoothed["x"], y=smoothed["y"], z=smoothed.get("z"))

    @staticmethod
    def _axes_of(point: Point) -> tuple[str, ...]:
        return AXES if point.z is not None else AXES[:2]

    def reset(self) -> None:
        """Reset filter state for a new tracking session."""
        for lp in (*self._x_filters.values(), *self._dx_filters.values()):
            lp.reset()
        self._last_timestamp = None


__all__ = ["LowPassFilter", "LandmarkSmoother", "TIMESTAMP_UNITS"]
