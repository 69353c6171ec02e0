"""Tests for codeclab.config."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from codeclab.config import (
    DEFAULT_PATH_CONFIG,
    DEFAULT_SWEEP_CONFIG,
    DEFAULT_THRESHOLD_CONFIG,
    EngineConfig,
    SweepConfig,
    ThresholdConfig,
)


@pytest.mark.fast
class TestDefaults:
    """Default configuration values."""

    def test_sweep_defaults(self):
        assert DEFAULT_SWEEP_CONFIG.ALIGNMENT == 16
        assert DEFAULT_SWEEP_CONFIG.DEPTH == 16
        assert DEFAULT_SWEEP_CONFIG.SPEED == 0

    def test_threshold_defaults(self):
        assert DEFAULT_THRESHOLD_CONFIG.RELATIVE_TOLERANCE == 0.05
        assert DEFAULT_THRESHOLD_CONFIG.ABSOLUTE_FLOOR == 25.0
        assert DEFAULT_THRESHOLD_CONFIG.ARTIFACT_DROP_DB == 10.0

    def test_path_defaults(self):
        assert DEFAULT_PATH_CONFIG.WORKING_DIR == Path("results/frame_size")
        assert DEFAULT_PATH_CONFIG.LOGS_DIR == Path("logs")


@pytest.mark.fast
class TestValidation:
    """__post_init__ validation."""

    @pytest.mark.parametrize("kwargs", [{"ALIGNMENT": 0}, {"DEPTH": 0}, {"SPEED": -1}])
    def test_invalid_sweep_config(self, kwargs):
        with pytest.raises(ValueError):
            SweepConfig(**kwargs)

    @pytest.mark.parametrize(
        "kwargs",
        [{"RELATIVE_TOLERANCE": 0.0}, {"RELATIVE_TOLERANCE": 1.5}, {"ABSOLUTE_FLOOR": -1.0}, {"ARTIFACT_DROP_DB": 0.0}],
    )
    def test_invalid_threshold_config(self, kwargs):
        with pytest.raises(ValueError):
            ThresholdConfig(**kwargs)


@pytest.mark.fast
class TestEngineConfig:
    """Environment overrides for tool paths."""

    def test_defaults_without_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            config = EngineConfig()
        assert config.FFMPEG_PATH == "ffmpeg"
        assert config.FFPROBE_PATH == "ffprobe"
        assert config.COMMAND_TIMEOUT is None

    def test_environment_overrides(self):
        env = {"CODECLAB_FFMPEG_PATH": "/opt/ffmpeg/bin/ffmpeg", "CODECLAB_FFPROBE_PATH": "/opt/ffmpeg/bin/ffprobe"}
        with patch.dict(os.environ, env, clear=True):
            config = EngineConfig()
        assert config.FFMPEG_PATH == "/opt/ffmpeg/bin/ffmpeg"
        assert config.FFPROBE_PATH == "/opt/ffmpeg/bin/ffprobe"

    def test_empty_environment_value_ignored(self):
        with patch.dict(os.environ, {"CODECLAB_FFMPEG_PATH": ""}, clear=True):
            assert EngineConfig().FFMPEG_PATH == "ffmpeg"
