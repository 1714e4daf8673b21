"""Landmark data structures for 33-point MediaPipe-style pose output."""
import math
from dataclasses import dataclass
from enum import IntEnum

import numpy as np

NUM_LANDMARKS = 33


class PoseLandmark(IntEnum):
    """33 landmarks from the BlazePose / MediaPipe Pose topology."""
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


# Nose, shoulders and hips: the torso anchors used to judge pose quality
KEY_LANDMARKS = (
    PoseLandmark.NOSE,
    PoseLandmark.LEFT_SHOULDER,
    PoseLandmark.RIGHT_SHOULDER,
    PoseLandmark.LEFT_HIP,
    PoseLandmark.RIGHT_HIP,
)


@dataclass
class Point:
    """2D/3D coordinate, normalized to [0, 1] image space for landmarks."""

    x: float
    y: float
    z: float | None = None


@dataclass
class Landmark(Point):
    """A Point with an optional detection confidence in [0, 1]."""

    visibility: float | None = None


def landmarks_from_array(keypoints: np.ndarray) -> list[Landmark]:
    """Convert a detector output array into Landmarks.

    Args:
        keypoints: Array of shape (N, 3) -> x, y, z or (N, 4) -> x, y, z, visibility

    Returns:
        List of N Landmark objects in index order
    """
    keypoints = np.asarray(keypoints, dtype=float)
    if keypoints.ndim != 2 or keypoints.shape[1] not in (3, 4):
        raise ValueError(f"expected array of shape (N, 3) or (N, 4), got {keypoints.shape}")

    has_visibility = keypoints.shape[1] == 4
    return [
        Landmark(
            x=float(row[0]),
            y=float(row[1]),
            z=float(row[2]),
            visibility=float(row[3]) if has_visibility else None,
        )
        for row in keypoints
    ]


def calculate_distance(p1: Point, p2: Point) -> float:
    """Euclidean distance; a missing z is treated as 0."""
    dx = p1.x - p2.x
    dy = p1.y - p2.y
    dz = (p1.z or 0.0) - (p2.z or 0.0)
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def calculate_angle(p1: Point, p2: Point, p3: Point) -> float:
    """Signed angle (degrees) at vertex p2 between p2->p1 and p2->p3, in the image plane."""
    v1 = (p1.x - p2.x, p1.y - p2.y)
    v2 = (p3.x - p2.x, p3.y - p2.y)

    dot = v1[0] * v2[0] + v1[1] * v2[1]
    det = v1[0] * v2[1] - v1[1] * v2[0]
    return math.degrees(math.atan2(det, dot))
