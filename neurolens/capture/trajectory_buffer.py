from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import numpy as np

MIN_ANALYSIS_SAMPLES = 100


@dataclass
class WristSample:
    x: float
    y: float
    timestamp_ms: float


class WristTrajectory:
    """Append-only wrist trajectory for one capture session."""

    def __init__(self, min_samples: int = MIN_ANALYSIS_SAMPLES):
        self.min_samples = min_samples
        self.buffer: list[WristSample] = []

    @classmethod
    def from_samples(cls, samples: Iterable[WristSample], min_samples: int = MIN_ANALYSIS_SAMPLES) -> "WristTrajectory":
        trajectory = cls(min_samples=min_samples)
        trajectory.buffer.extend(samples)
        return trajectory

    def start(self) -> None:
        self.buffer.clear()

    def append(self, sample: WristSample) -> None:
        self.buffer.append(sample)

    def is_ready(self) -> bool:
        return len(self.buffer) >= self.min_samples

    def reset(self) -> None:
        self.buffer.clear()

    @property
    def samples(self) -> list[WristSample]:
        return list(self.buffer)

    def as_arrays(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (x, y, timestamp_ms) as float arrays in insertion order."""
        x = np.array([s.x for s in self.buffer], dtype=float)
        y = np.array([s.y for s in self.buffer], dtype=float)
        t = np.array([s.timestamp_ms for s in self.buffer], dtype=float)
        return x, y, t

    def __iter__(self) -> Iterator[WristSample]:
        return iter(self.buffer)

    def __len__(self) -> int:
        return len(self.buffer)
