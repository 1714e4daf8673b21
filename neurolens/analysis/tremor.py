"""Tremor frequency / amplitude estimation from a wrist trajectory.

The dominant motion axis is detrended, Hamming-windowed and searched for its
first autocorrelation peak. The peak lag gives the oscillation period, which
is reported clamped to the clinical tremor band (3-8 Hz by default).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from neurolens.capture.trajectory_buffer import MIN_ANALYSIS_SAMPLES, WristSample, WristTrajectory

logger = logging.getLogger(__name__)

CONFIDENCE_METHODS = ("heuristic", "spectral")


class TremorAnalysisError(ValueError):
    """Base class for trajectories that cannot be analyzed."""


class InsufficientSamples(TremorAnalysisError):
    def __init__(self, minimum: int = MIN_ANALYSIS_SAMPLES, actual: int | None = None):
        super().__init__(f"Insufficient data points for analysis (minimum {minimum} required)")
        self.minimum = minimum
        self.actual = actual


class InvalidTrajectory(TremorAnalysisError):
    pass


@dataclass(frozen=True)
class TremorResult:
    frequency_hz: float
    amplitude: float
    confidence: float
    dominant_axis: str = "x"
    sampling_rate_hz: float = 0.0
    peak_lag: int = 1
    peak_found: bool = False


class TremorAnalyzer:
    """Single-shot tremor estimator.

    Args:
        min_samples: Samples required before analysis is attempted.
        band: (low, high) tremor band in Hz; reported frequency is clamped into it.
        peak_threshold: Autocorrelation peaks must exceed this fraction of R[0].
        variance_threshold: Windowed-signal variance above which the signal is
            considered strong enough for the heuristic confidence bonus.
        confidence_method: "heuristic" (base 0.5 plus bonuses) or "spectral"
            (power-spectrum SNR and peak prominence).
    """

    def __init__(
        self,
        min_samples: int = MIN_ANALYSIS_SAMPLES,
        band: tuple[float, float] = (3.0, 8.0),
        peak_threshold: float = 0.1,
        variance_threshold: float = 0.001,
        confidence_method: str = "heuristic",
    ):
        if band[0] <= 0 or band[0] >= band[1]:
            raise ValueError(f"band must satisfy 0 < low < high, got {band}")
        if confidence_method not in CONFIDENCE_METHODS:
            raise ValueError(
                f"confidence_method must be one of {CONFIDENCE_METHODS}, got {confidence_method!r}"
            )

        self.min_samples = min_samples
        self.band = band
        self.peak_threshold = peak_threshold
        self.variance_threshold = variance_threshold
        self.confidence_method = confidence_method

    def analyze(self, trajectory: Iterable[WristSample]) -> TremorResult:
        """Estimate tremor frequency, amplitude and confidence.

        Args:
            trajectory: WristTrajectory or any sequence of WristSample in time order

        Returns:
            TremorResult with frequency clamped into the tremor band

        Raises:
            InsufficientSamples: fewer than min_samples samples
            InvalidTrajectory: last timestamp is not after the first
        """
        if not isinstance(trajectory, WristTrajectory):
            trajectory = WristTrajectory.from_samples(trajectory, self.min_samples)

        n = len(trajectory)
        if n < self.min_samples:
            raise InsufficientSamples(self.min_samples, n)

        x, y, t = trajectory.as_arrays()

        # Analyze whichever axis moves more
        if np.var(x) > np.var(y):
            dominant_axis, motion = "x", x
        else:
            dominant_axis, motion = "y", y

        time_span_ms = t[-1] - t[0]
        if time_span_ms <= 0:
            raise InvalidTrajectory(
                f"trajectory must span positive time, got {time_span_ms} ms over {n} samples"
            )
        sampling_rate = (n - 1) / (time_span_ms / 1000.0)

        windowed = detrend(motion) * np.hamming(n)
        windowed_variance = float(np.var(windowed))

        lag, peak_found = self._find_peak_lag(windowed)
        raw_frequency = sampling_rate / lag
        frequency = float(np.clip(raw_frequency, *self.band))
        if not peak_found:
            logger.warning(
                f"No autocorrelation peak above {self.peak_threshold:.2f}*R[0]; "
                f"reporting clamped fallback {frequency:.2f} Hz"
            )

        amplitude = float(np.sqrt(windowed_variance))

        if self.confidence_method == "spectral":
            confidence = self._spectral_confidence(windowed, sampling_rate)
        else:
            confidence = self._heuristic_confidence(raw_frequency, windowed_variance)

        logger.debug(
            f"Tremor analysis: n={n} axis={dominant_axis} fs={sampling_rate:.2f}Hz "
            f"lag={lag} raw={raw_frequency:.3f}Hz var={windowed_variance:.6f}"
        )

        return TremorResult(
            frequency_hz=frequency,
            amplitude=amplitude,
            confidence=confidence,
            dominant_axis=dominant_axis,
            sampling_rate_hz=float(sampling_rate),
            peak_lag=lag,
            peak_found=peak_found,
        )

    def _find_peak_lag(self, data: np.ndarray) -> tuple[int, bool]:
        """First local autocorrelation maximum above peak_threshold * R[0].

        Returns:
            (lag, found); lag defaults to 1 when no peak qualifies
        """
        autocorr = autocorrelation(data, max_lag=len(data) // 2)
        floor = self.peak_threshold * autocorr[0]

        for lag in range(1, len(autocorr) - 1):
            if (
                autocorr[lag] > autocorr[lag - 1]
                and autocorr[lag] > autocorr[lag + 1]
                and autocorr[lag] > floor
            ):
                return lag, True
        return 1, False

    def _heuristic_confidence(self, raw_frequency: float, variance: float) -> float:
        confidence = 0.5
        low, high = self.band
        if low <= raw_frequency <= high:
            confidence += 0.3
        if variance > self.variance_threshold:
            confidence += 0.2
        return min(1.0, confidence)

    def _spectral_confidence(self, data: np.ndarray, sampling_rate: float) -> float:
        """Confidence from in-band peak SNR and prominence of the power spectrum."""
        power = np.abs(np.fft.rfft(data)) ** 2
        freqs = np.fft.rfftfreq(len(data), d=1.0 / sampling_rate)

        low, high = self.band
        band_bins = np.flatnonzero((freqs >= low) & (freqs <= high))
        if band_bins.size == 0:
            return 0.1

        peak_bin = int(band_bins[np.argmax(power[band_bins])])
        peak_power = float(power[peak_bin])
        if peak_power <= 0:
            return 0.1

        snr = peak_power / float(power[band_bins].mean())

        left = power[max(0, peak_bin - 5):peak_bin]
        right = power[peak_bin + 1:peak_bin + 6]
        left_min = float(left.min()) if left.size else peak_power
        right_min = float(right.min()) if right.size else peak_power
        prominence = peak_power - max(left_min, right_min)

        confidence = min(1.0, (snr * prominence) / (peak_power * 10))
        return max(0.1, confidence)


def detrend(data: np.ndarray) -> np.ndarray:
    """Subtract the least-squares line fitted against sample index."""
    idx = np.arange(len(data), dtype=float)
    slope, intercept = np.polyfit(idx, data, 1)
    return data - (slope * idx + intercept)


def autocorrelation(data: np.ndarray, max_lag: int) -> np.ndarray:
    """Unnormalized autocorrelation R[lag] = sum(data[i] * data[i + lag]) for lag 0..max_lag."""
    n = len(data)
    full = np.correlate(data, data, mode="full")
    return full[n - 1:n + max_lag]


_default_analyzer = TremorAnalyzer()


def analyze_tremor(trajectory: Iterable[WristSample]) -> TremorResult:
    """Analyze a trajectory with the default settings."""
    return _default_analyzer.analyze(trajectory)
