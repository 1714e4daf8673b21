"""Heuristic pose-quality scoring from landmark visibility."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from neurolens.detection.landmarks import KEY_LANDMARKS, NUM_LANDMARKS, Landmark


class QualityTier(Enum):
    RED = "red"
    AMBER = "amber"
    GREEN = "green"


@dataclass(frozen=True)
class QualityDescriptor:
    tier: QualityTier
    score: float
    reason: str


class PoseQualityAssessor:
    """Grade how trustworthy the current pose estimate is."""

    def __init__(
        self,
        key_visibility_threshold: float = 0.3,
        min_key_landmarks: int = 3,
        full_key_bonus: float = 0.2,
        green_threshold: float = 0.7,
        amber_threshold: float = 0.4,
    ):
        """
        Args:
            key_visibility_threshold: Visibility above which a key landmark
                (nose, shoulders, hips) counts as seen.
            min_key_landmarks: Key landmarks that must be seen for any
                score above the "insufficient" floor.
            full_key_bonus: Added to the mean visibility when all key
                landmarks are seen.
            green_threshold: Confidence above which the pose is GREEN.
            amber_threshold: Confidence above which the pose is AMBER.
        """
        self.key_visibility_threshold = key_visibility_threshold
        self.min_key_landmarks = min_key_landmarks
        self.full_key_bonus = full_key_bonus
        self.green_threshold = green_threshold
        self.amber_threshold = amber_threshold

    def assess(self, landmarks: Sequence[Landmark | None] | None) -> QualityDescriptor:
        """Score a landmark set. Never raises; bad input yields a RED tier.

        Rules, in order:
        - no landmarks: RED 0.0
        - fewer than 33: RED 0.1
        - fewer than 3 of 5 key landmarks visible: RED 0.2
        - otherwise mean visibility (+ bonus if all key landmarks visible)
          mapped onto GREEN / AMBER / RED
        """
        if not landmarks:
            return QualityDescriptor(QualityTier.RED, 0.0, "No landmarks detected")

        if len(landmarks) < NUM_LANDMARKS:
            return QualityDescriptor(
                QualityTier.RED,
                0.1,
                f"Incomplete pose: {len(landmarks)}/{NUM_LANDMARKS} landmarks",
            )

        visible_keys = self._count_visible_keys(landmarks)
        if visible_keys < self.min_key_landmarks:
            return QualityDescriptor(
                QualityTier.RED,
                0.2,
                f"Insufficient key landmarks visible: {visible_keys}/{len(KEY_LANDMARKS)}",
            )

        avg_visibility = sum(_visibility(lm) for lm in landmarks) / len(landmarks)

        confidence = avg_visibility
        if visible_keys == len(KEY_LANDMARKS):
            confidence += self.full_key_bonus

        if confidence > self.green_threshold:
            return QualityDescriptor(
                QualityTier.GREEN, min(1.0, confidence), "High confidence pose detected"
            )
        elif confidence > self.amber_threshold:
            return QualityDescriptor(QualityTier.AMBER, confidence, "Moderate confidence pose")
        else:
            return QualityDescriptor(QualityTier.RED, confidence, "Low confidence pose")

    def _count_visible_keys(self, landmarks: Sequence[Landmark | None]) -> int:
        return sum(
            1 for idx in KEY_LANDMARKS if _visibility(landmarks[idx]) > self.key_visibility_threshold
        )


def _visibility(landmark: Landmark | None) -> float:
    if landmark is None or landmark.visibility is None:
        return 0.0
    return landmark.visibility


_default_assessor = PoseQualityAssessor()


def assess_pose_quality(landmarks: Sequence[Landmark | None] | None) -> QualityDescriptor:
    """Score landmarks with the default thresholds."""
    return _default_assessor.assess(landmarks)
