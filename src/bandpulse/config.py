"""
Analyzer configuration.

Holds every tunable of the spectral analyzer in one dataclass and
validates it at the configuration boundary so the sampling loop never
sees an invalid value.
"""

import math
import numbers
from dataclasses import dataclass

SUPPORTED_FFT_SIZES = (256, 512, 1024, 2048, 4096, 8192)
MIN_BANDS = 1
MAX_BANDS = 64

# Human hearing range
HEARING_MIN_HZ = 20.0
HEARING_MAX_HZ = 20000.0


class ConfigError(ValueError):
    """Raised when the analyzer is given an unusable configuration."""


_FLOAT_FIELDS = (
    "update_frequency",
    "sensitivity",
    "intensity_multiplier",
    "smoothing",
    "min_scale",
    "max_scale",
    "beat_threshold",
    "shake_threshold",
    "shake_cooldown",
    "min_freq",
    "max_freq",
)


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_finite(value) -> bool:
    # NaN compares False against every bound, so it must be caught up front
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def check_num_bands(num_bands) -> int:
    """Return num_bands as an int, or raise ConfigError if it is out of range."""
    if not _is_int(num_bands) or not (MIN_BANDS <= num_bands <= MAX_BANDS):
        raise ConfigError(
            f"num_bands must be an integer in [{MIN_BANDS}, {MAX_BANDS}], "
            f"got {num_bands!r}"
        )
    return int(num_bands)


@dataclass
class AnalyzerConfig:
    """Configuration surface of the spectral analyzer."""

    num_bands: int = 16
    fft_size: int = 2048
    sample_rate: int = 44100
    update_frequency: float = 120.0  # sample passes per second

    # Intensity shaping
    sensitivity: float = 1.0
    intensity_multiplier: float = 1.0
    smoothing: float = 0.2  # closer to 1 tracks the raw signal faster

    # Output scale range for band values and event strengths
    min_scale: float = 1.0
    max_scale: float = 3.0

    # Event detection
    beat_threshold: float = 0.1
    shake_threshold: float = 0.25
    shake_cooldown: float = 0.5  # seconds

    # Frequency span covered by the bands
    min_freq: float = HEARING_MIN_HZ
    max_freq: float = HEARING_MAX_HZ

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0

    @property
    def usable_bins(self) -> int:
        return self.fft_size // 2

    @property
    def bin_width(self) -> float:
        """Width of one spectrum bin in Hz."""
        return self.nyquist / self.usable_bins

    @property
    def update_period(self) -> float:
        return 1.0 / self.update_frequency

    def validate(self) -> "AnalyzerConfig":
        """
        Check every field and raise ConfigError on the first bad one.

        Returns:
            self, so calls can be chained.
        """
        check_num_bands(self.num_bands)
        if not _is_int(self.fft_size) or self.fft_size not in SUPPORTED_FFT_SIZES:
            raise ConfigError(
                f"fft_size must be one of {SUPPORTED_FFT_SIZES}, got {self.fft_size!r}"
            )
        if not _is_int(self.sample_rate) or self.sample_rate <= 0:
            raise ConfigError(
                f"sample_rate must be a positive integer, got {self.sample_rate!r}"
            )

        for name in _FLOAT_FIELDS:
            value = getattr(self, name)
            if not _is_finite(value):
                raise ConfigError(f"{name} must be a finite number, got {value!r}")

        if self.update_frequency <= 0:
            raise ConfigError(
                f"update_frequency must be positive, got {self.update_frequency!r}"
            )
        if not (0.0 < self.smoothing < 1.0):
            raise ConfigError(f"smoothing must lie in (0, 1), got {self.smoothing!r}")
        if self.min_scale > self.max_scale:
            raise ConfigError(
                f"min_scale ({self.min_scale}) exceeds max_scale ({self.max_scale})"
            )

        for name in (
            "sensitivity",
            "intensity_multiplier",
            "beat_threshold",
            "shake_threshold",
            "shake_cooldown",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ConfigError(f"{name} must not be negative, got {value!r}")

        if self.min_freq <= 0 or self.min_freq >= self.max_freq:
            raise ConfigError(
                f"frequency span must satisfy 0 < min_freq < max_freq, "
                f"got [{self.min_freq}, {self.max_freq}]"
            )
        return self
