"""Configuration settings for CodecLab."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SweepConfig:
    """Configuration for the frame-size sweep."""

    # Base width and height must be multiples of this (macroblock size)
    ALIGNMENT: int = 16

    # Number of steps per sweep axis (3 * DEPTH - 2 variants in total)
    DEPTH: int = 16

    # Encoder speed used for every variant
    SPEED: int = 0

    def __post_init__(self) -> None:
        if self.ALIGNMENT <= 0:
            raise ValueError(f"ALIGNMENT must be positive, got {self.ALIGNMENT}")
        if self.DEPTH < 1:
            raise ValueError(f"DEPTH must be at least 1, got {self.DEPTH}")
        if self.SPEED < 0:
            raise ValueError(f"SPEED must be non-negative, got {self.SPEED}")


@dataclass
class ThresholdConfig:
    """Thresholds used to classify a completed sweep."""

    # Every variant must stay strictly within this fraction of the baseline PSNR
    RELATIVE_TOLERANCE: float = 0.05

    # Every variant PSNR must be strictly greater than this (dB)
    ABSOLUTE_FLOOR: float = 25.0

    # A frame this far (dB) below the clip's median frame PSNR is a possible artifact
    ARTIFACT_DROP_DB: float = 10.0

    def __post_init__(self) -> None:
        if not 0.0 < self.RELATIVE_TOLERANCE < 1.0:
            raise ValueError(
                f"RELATIVE_TOLERANCE must be in (0, 1), got {self.RELATIVE_TOLERANCE}"
            )
        if self.ABSOLUTE_FLOOR < 0:
            raise ValueError("ABSOLUTE_FLOOR must be non-negative")
        if self.ARTIFACT_DROP_DB <= 0:
            raise ValueError("ARTIFACT_DROP_DB must be positive")


@dataclass
class EngineConfig:
    """Configuration for external codec tool paths with environment variable overrides."""

    # Path to FFmpeg executable (must be built with libvpx).
    # Override with: CODECLAB_FFMPEG_PATH
    FFMPEG_PATH: str = "ffmpeg"

    # Path to FFprobe executable (companion to FFmpeg).
    # Override with: CODECLAB_FFPROBE_PATH
    FFPROBE_PATH: str = "ffprobe"

    # Hard timeout for a single external command in seconds (None = wait forever)
    COMMAND_TIMEOUT: int | None = None

    def __post_init__(self) -> None:
        """Apply environment variable overrides after initialization."""
        env_overrides = {
            "FFMPEG_PATH": "CODECLAB_FFMPEG_PATH",
            "FFPROBE_PATH": "CODECLAB_FFPROBE_PATH",
        }

        for attr_name, env_var_name in env_overrides.items():
            env_value = os.getenv(env_var_name)
            if env_value:
                setattr(self, attr_name, env_value)


@dataclass
class PathConfig:
    """Configuration for file paths and directories."""

    WORKING_DIR: Path = Path("results/frame_size")
    LOGS_DIR: Path = Path("logs")


# Default configuration instances
DEFAULT_SWEEP_CONFIG = SweepConfig()
DEFAULT_THRESHOLD_CONFIG = ThresholdConfig()
DEFAULT_ENGINE_CONFIG = EngineConfig()
DEFAULT_PATH_CONFIG = PathConfig()
