"""Tests for AnalyzerConfig validation."""

import numpy as np
import pytest

from bandpulse.config import SUPPORTED_FFT_SIZES, AnalyzerConfig, ConfigError


class TestAnalyzerConfig:
    """Tests for configuration defaults and validation."""

    def test_defaults_are_valid(self):
        config = AnalyzerConfig()

        assert config.validate() is config

    def test_derived_values(self):
        config = AnalyzerConfig(sample_rate=44100, fft_size=2048, update_frequency=120.0)

        assert config.nyquist == 22050.0
        assert config.usable_bins == 1024
        assert config.bin_width == pytest.approx(21.533203125)
        assert config.update_period == pytest.approx(1 / 120)

    @pytest.mark.parametrize("fft_size", SUPPORTED_FFT_SIZES)
    def test_supported_fft_sizes(self, fft_size):
        AnalyzerConfig(fft_size=fft_size).validate()

    @pytest.mark.parametrize(
        "changes",
        [
            {"num_bands": 0},
            {"num_bands": 65},
            {"fft_size": 1000},
            {"fft_size": 16384},
            {"sample_rate": 0},
            {"update_frequency": 0.0},
            {"smoothing": 0.0},
            {"smoothing": 1.0},
            {"min_scale": 2.0, "max_scale": 1.0},
            {"sensitivity": -1.0},
            {"intensity_multiplier": -0.5},
            {"beat_threshold": -0.1},
            {"shake_threshold": -0.1},
            {"shake_cooldown": -1.0},
            {"min_freq": 0.0},
            {"min_freq": 500.0, "max_freq": 400.0},
            {"fft_size": 2048.0},
            {"fft_size": True},
            {"sample_rate": 44100.0},
            {"num_bands": 16.0},
            {"sensitivity": float("nan")},
            {"intensity_multiplier": float("inf")},
            {"beat_threshold": float("nan")},
            {"shake_threshold": float("nan")},
            {"shake_cooldown": float("nan")},
            {"update_frequency": float("inf")},
            {"update_frequency": float("nan")},
            {"smoothing": float("nan")},
            {"min_scale": float("nan")},
            {"max_scale": float("inf")},
            {"min_freq": float("nan")},
            {"max_freq": float("inf")},
            {"sensitivity": "1.0"},
        ],
    )
    def test_invalid_values_raise(self, changes):
        with pytest.raises(ConfigError):
            AnalyzerConfig(**changes).validate()

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            AnalyzerConfig(num_bands=99).validate()

    def test_integral_numpy_values_accepted(self):
        config = AnalyzerConfig(num_bands=np.int64(8), fft_size=np.int64(1024))

        assert config.validate() is config
