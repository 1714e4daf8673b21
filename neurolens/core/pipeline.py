import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from neurolens.analysis.pose_quality import PoseQualityAssessor, QualityDescriptor
from neurolens.analysis.smoothing import LandmarkFilterBank
from neurolens.analysis.tremor import TremorAnalyzer
from neurolens.core.config import Config, TremorConfig, default_config
from neurolens.core.session import TremorSession
from neurolens.detection.landmarks import Landmark

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    landmarks: list[Landmark | None]
    quality: QualityDescriptor
    timestamp_ms: float


class PoseFrameObserver(Protocol):
    def on_pose_detected(
        self,
        landmarks: Sequence[Landmark | None],
        quality: QualityDescriptor,
        timestamp_ms: float,
    ) -> None: ...


class PosePipeline:
    """Per-frame smoothing and quality scoring.

    The caller owns frame timing and calls process_frame() once per frame
    with the raw landmarks from its pose-estimation engine.
    """

    def __init__(self, config: Config | None = None):
        self.config = config or default_config()

        self.filter_bank = LandmarkFilterBank(
            method=self.config.smoothing.method,
            min_cutoff=self.config.smoothing.min_cutoff,
            beta=self.config.smoothing.beta,
            d_cutoff=self.config.smoothing.d_cutoff,
            ema_alpha=self.config.smoothing.ema_alpha,
            timestamp_unit=self.config.smoothing.timestamp_unit,
        )

        self.quality_assessor = PoseQualityAssessor(
            key_visibility_threshold=self.config.quality.key_visibility_threshold,
            min_key_landmarks=self.config.quality.min_key_landmarks,
            full_key_bonus=self.config.quality.full_key_bonus,
            green_threshold=self.config.quality.green_threshold,
            amber_threshold=self.config.quality.amber_threshold,
        )

        self.observers: list[PoseFrameObserver] = []

    def add_observer(self, observer: PoseFrameObserver) -> None:
        self.observers.append(observer)

    def process_frame(
        self, raw_landmarks: Sequence[Landmark | None] | None, timestamp_ms: float
    ) -> FrameResult:
        if not raw_landmarks:
            return FrameResult(
                landmarks=[],
                quality=self.quality_assessor.assess(raw_landmarks),
                timestamp_ms=timestamp_ms,
            )

        smoothed = self.filter_bank.smooth(raw_landmarks, timestamp_ms)
        quality = self.quality_assessor.assess(smoothed)

        for observer in self.observers:
            observer.on_pose_detected(smoothed, quality, timestamp_ms)

        return FrameResult(landmarks=smoothed, quality=quality, timestamp_ms=timestamp_ms)

    def create_tremor_session(self) -> TremorSession:
        """Build a TremorSession from config and subscribe it to processed frames."""
        session = TremorSession(
            duration_sec=self.config.session.duration_sec,
            wrist_visibility_threshold=self.config.session.wrist_visibility_threshold,
            analyzer=build_tremor_analyzer(self.config.tremor),
        )
        self.add_observer(session)
        return session

    def reset(self) -> None:
        self.filter_bank.reset()
        logger.info("Pose pipeline reset")


def build_tremor_analyzer(tremor_config: TremorConfig) -> TremorAnalyzer:
    return TremorAnalyzer(
        min_samples=tremor_config.min_samples,
        band=(tremor_config.band_low_hz, tremor_config.band_high_hz),
        peak_threshold=tremor_config.peak_threshold,
        variance_threshold=tremor_config.variance_threshold,
        confidence_method=tremor_config.confidence_method,
    )
