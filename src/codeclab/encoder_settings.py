"""
Encoder configuration for CodecLab sessions.

Provides the default VP8 encoder configuration and loading of custom
settings files (YAML).  A settings file only needs the keys it overrides:

    target_bandwidth: 512
    max_quantizer: 56
    error_resilient: true
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any
import logging

import yaml

from .error_handling import ConfigurationError

logger = logging.getLogger(__name__)


# Encoder modes as numbered by the original test suite
ENCODE_MODES: dict[int, tuple[str, int]] = {
    0: ("realtime", 1),
    1: ("good", 1),
    2: ("best", 1),
    4: ("good", 2),  # two-pass good quality
    5: ("best", 2),  # two-pass best quality
}


@dataclass
class EncoderSettings:
    """VP8 encoder parameters passed to the codec for every variant."""

    target_bandwidth: int = 256  # kbit/s
    mode: int = 1
    cpu_used: int = 0
    min_quantizer: int = 4
    max_quantizer: int = 63
    kf_max_dist: int = 999
    lag_in_frames: int = 0
    noise_sensitivity: int = 0
    sharpness: int = 0
    error_resilient: bool = False
    threads: int = 1
    frame_rate: float = 30.0  # used for headerless .yuv input

    def __post_init__(self) -> None:
        if self.target_bandwidth <= 0:
            raise ConfigurationError(
                f"target_bandwidth must be positive, got {self.target_bandwidth}"
            )
        if self.mode not in ENCODE_MODES:
            raise ConfigurationError(
                f"Unsupported encode mode {self.mode}; expected one of {sorted(ENCODE_MODES)}"
            )
        if not 0 <= self.min_quantizer <= self.max_quantizer <= 63:
            raise ConfigurationError(
                f"Quantizer range [{self.min_quantizer}, {self.max_quantizer}] invalid"
            )
        if not -16 <= self.cpu_used <= 16:
            raise ConfigurationError(f"cpu_used must be in [-16, 16], got {self.cpu_used}")
        if self.frame_rate <= 0:
            raise ConfigurationError("frame_rate must be positive")

    @property
    def deadline(self) -> str:
        return ENCODE_MODES[self.mode][0]

    @property
    def passes(self) -> int:
        return ENCODE_MODES[self.mode][1]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def default_encoder_settings() -> EncoderSettings:
    """Get the default encoder configuration."""
    return EncoderSettings()


def load_encoder_settings(
    settings_path: Path, base: EncoderSettings | None = None
) -> EncoderSettings:
    """Load encoder settings from a YAML file on top of *base* (the defaults if omitted).

    Keys absent from the file keep their value from *base*.

    Raises:
        ConfigurationError: If the file is missing, unreadable, or holds
            unknown keys or invalid values
    """
    if not settings_path.exists():
        raise ConfigurationError(
            f"Input Settings file {settings_path} does not exist",
            context={"path": str(settings_path)},
        )

    try:
        with open(settings_path) as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read settings file {settings_path}", cause=e) from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Settings file {settings_path} must contain a mapping")

    known = {f.name for f in fields(EncoderSettings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown encoder settings in {settings_path}: {', '.join(unknown)}"
        )

    try:
        settings = EncoderSettings(**{**(base or default_encoder_settings()).to_dict(), **raw})
    except TypeError as e:
        raise ConfigurationError(f"Invalid value in settings file {settings_path}", cause=e) from e
    logger.info(f"Loaded encoder settings from {settings_path}")
    return settings


def save_encoder_settings(settings: EncoderSettings, settings_path: Path) -> None:
    """Write *settings* as YAML so a run can be reproduced with --settings."""
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_path, "w") as f:
        yaml.safe_dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False)
