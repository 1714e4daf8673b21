import logging
from collections.abc import Sequence
from enum import Enum

from neurolens.analysis.pose_quality import QualityDescriptor
from neurolens.analysis.tremor import InsufficientSamples, TremorAnalyzer, TremorResult
from neurolens.capture.trajectory_buffer import WristSample, WristTrajectory
from neurolens.detection.landmarks import Landmark, PoseLandmark

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


class TremorSession:
    """Collects the more visible wrist for a fixed-duration tremor capture.

    Registered as a frame observer on PosePipeline; the caller drives time
    by passing frame timestamps, so no timer lives in here.
    """

    def __init__(
        self,
        duration_sec: float = 20.0,
        wrist_visibility_threshold: float = 0.5,
        analyzer: TremorAnalyzer | None = None,
    ):
        self.state = SessionState.IDLE
        self.duration_sec = duration_sec
        self.wrist_visibility_threshold = wrist_visibility_threshold
        self.analyzer = analyzer or TremorAnalyzer()

        self.trajectory = WristTrajectory(min_samples=self.analyzer.min_samples)
        self.started_at: float | None = None
        self.result: TremorResult | None = None

    def start(self, timestamp_ms: float) -> None:
        self.trajectory.start()
        self.started_at = timestamp_ms
        self.result = None
        self.state = SessionState.RECORDING
        logger.info(f"Tremor capture started ({self.duration_sec:.0f}s)")

    def on_pose_detected(
        self,
        landmarks: Sequence[Landmark | None],
        quality: QualityDescriptor,
        timestamp_ms: float,
    ) -> None:
        if self.state != SessionState.RECORDING:
            return
        if self.is_expired(timestamp_ms):
            self.state = SessionState.STOPPED
            logger.info(f"Tremor capture finished with {len(self.trajectory)} samples")
            return

        wrist = select_wrist(landmarks)
        if wrist is None or (wrist.visibility or 0.0) <= self.wrist_visibility_threshold:
            return
        self.trajectory.append(WristSample(x=wrist.x, y=wrist.y, timestamp_ms=timestamp_ms))

    def is_expired(self, timestamp_ms: float) -> bool:
        return self.remaining_sec(timestamp_ms) <= 0

    def remaining_sec(self, timestamp_ms: float) -> float:
        if self.started_at is None:
            return self.duration_sec
        elapsed = (timestamp_ms - self.started_at) / 1000.0
        return max(0.0, self.duration_sec - elapsed)

    def stop(self) -> TremorResult:
        """Stop collecting and analyze what was captured.

        Raises:
            InsufficientSamples: too few wrist samples were collected
        """
        self.state = SessionState.STOPPED
        if not self.trajectory.is_ready():
            logger.warning(
                f"Tremor capture stopped with {len(self.trajectory)} samples "
                f"(minimum {self.trajectory.min_samples} required)"
            )
            raise InsufficientSamples(self.trajectory.min_samples, len(self.trajectory))

        self.result = self.analyzer.analyze(self.trajectory)
        logger.info(
            f"Tremor result: {self.result.frequency_hz:.2f} Hz, "
            f"amplitude {self.result.amplitude:.4f}, confidence {self.result.confidence:.2f}"
        )
        return self.result

    def reset(self) -> None:
        self.trajectory.reset()
        self.started_at = None
        self.result = None
        self.state = SessionState.IDLE


def select_wrist(landmarks: Sequence[Landmark | None]) -> Landmark | None:
    """Pick the left or right wrist, whichever is more visible (right on ties)."""
    left = _get(landmarks, PoseLandmark.LEFT_WRIST)
    right = _get(landmarks, PoseLandmark.RIGHT_WRIST)
    if left is None:
        return right
    if right is None:
        return left
    if (left.visibility or 0.0) > (right.visibility or 0.0):
        return left
    return right


def _get(landmarks: Sequence[Landmark | None], index: int) -> Landmark | None:
    return landmarks[index] if index < len(landmarks) else None
