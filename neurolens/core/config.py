import os
import re
from dataclasses import dataclass, field

import yaml


@dataclass
class SmoothingConfig:
    method: str = "one_euro"
    min_cutoff: float = 1.0
    beta: float = 0.0
    d_cutoff: float = 1.0
    ema_alpha: float = 0.3
    timestamp_unit: str = "ms"


@dataclass
class QualityConfig:
    key_visibility_threshold: float = 0.3
    min_key_landmarks: int = 3
    full_key_bonus: float = 0.2
    green_threshold: float = 0.7
    amber_threshold: float = 0.4


@dataclass
class TremorConfig:
    min_samples: int = 100
    band_low_hz: float = 3.0
    band_high_hz: float = 8.0
    peak_threshold: float = 0.1
    variance_threshold: float = 0.001
    confidence_method: str = "heuristic"


@dataclass
class SessionConfig:
    duration_sec: float = 20.0
    wrist_visibility_threshold: float = 0.5


@dataclass
class Config:
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    tremor: TremorConfig = field(default_factory=TremorConfig)
    session: SessionConfig = field(default_factory=SessionConfig)


def _substitute_env_vars(value: str) -> str:
    pattern = r"\$\{([^}]+)\}"

    def replace(match):
        env_var = match.group(1)
        return os.environ.get(env_var, match.group(0))

    return re.sub(pattern, replace, value)


def _process_config_values(data: dict) -> dict:
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = _process_config_values(value)
        elif isinstance(value, str):
            result[key] = _substitute_env_vars(value)
        else:
            result[key] = value
    return result


def default_config() -> Config:
    return Config()


def load_config(config_path: str = "config/settings.yaml") -> Config:
    with open(config_path) as f:
        raw_config = yaml.safe_load(f) or {}

    config_data = _process_config_values(raw_config)

    return Config(
        smoothing=SmoothingConfig(**config_data.get("smoothing", {})),
        quality=QualityConfig(**config_data.get("quality", {})),
        tremor=TremorConfig(**config_data.get("tremor", {})),
        session=SessionConfig(**config_data.get("session", {})),
    )
