"""Landmark smoothing utilities for noise reduction."""

from .one_euro_filter import LowPassFilter, LandmarkSmoother
from .ema_smoother import EMASmoother
from .filter_bank import LandmarkFilterBank

__all__ = ["LowPassFilter", "LandmarkSmoother", "EMASmoother", "LandmarkFilterBank"]
