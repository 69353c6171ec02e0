"""Tests for codeclab.encoder_settings."""

import pytest
import yaml

from codeclab.encoder_settings import (
    ENCODE_MODES,
    EncoderSettings,
    default_encoder_settings,
    load_encoder_settings,
    save_encoder_settings,
)
from codeclab.error_handling import ConfigurationError


@pytest.mark.fast
class TestEncoderSettings:
    """Encoder configuration values."""

    def test_defaults(self):
        settings = default_encoder_settings()
        assert settings.target_bandwidth == 256
        assert settings.mode == 1
        assert settings.passes == 1
        assert settings.deadline == "good"

    @pytest.mark.parametrize("mode,deadline,passes", [(0, "realtime", 1), (2, "best", 1), (4, "good", 2), (5, "best", 2)])
    def test_modes(self, mode, deadline, passes):
        settings = EncoderSettings(mode=mode)
        assert (settings.deadline, settings.passes) == (deadline, passes)

    def test_unknown_mode(self):
        assert 3 not in ENCODE_MODES
        with pytest.raises(ConfigurationError, match="Unsupported encode mode 3"):
            EncoderSettings(mode=3)

    def test_invalid_quantizers(self):
        with pytest.raises(ConfigurationError, match="Quantizer range"):
            EncoderSettings(min_quantizer=40, max_quantizer=20)

    def test_non_positive_bandwidth(self):
        with pytest.raises(ConfigurationError, match="target_bandwidth"):
            EncoderSettings(target_bandwidth=0)


@pytest.mark.fast
class TestSettingsFile:
    """Loading and saving YAML settings files."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Input Settings file .* does not exist"):
            load_encoder_settings(tmp_path / "missing.yaml")

    def test_partial_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("target_bandwidth: 512\nmax_quantizer: 56\n")

        settings = load_encoder_settings(path)

        assert settings.target_bandwidth == 512
        assert settings.max_quantizer == 56
        assert settings.min_quantizer == default_encoder_settings().min_quantizer

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert load_encoder_settings(path) == default_encoder_settings()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("bogus: 1\n")
        with pytest.raises(ConfigurationError, match="Unknown encoder settings.*bogus"):
            load_encoder_settings(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_encoder_settings(path)

    def test_save_and_load(self, tmp_path):
        original = EncoderSettings(target_bandwidth=300, mode=4, error_resilient=True)
        path = tmp_path / "out" / "settings.yaml"

        save_encoder_settings(original, path)

        assert yaml.safe_load(path.read_text())["mode"] == 4
        assert load_encoder_settings(path) == original
