"""
Frequency band layout.

Splits the audible range into logarithmically spaced, contiguous bands
and maps each band onto the bin indices of a fixed-size FFT.
"""

import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from bandpulse.config import (
    HEARING_MAX_HZ,
    HEARING_MIN_HZ,
    AnalyzerConfig,
    ConfigError,
    check_num_bands,
)


@dataclass(frozen=True)
class FrequencyBand:
    """A contiguous frequency range [min_freq, max_freq) in Hz."""

    min_freq: float
    max_freq: float

    @property
    def center(self) -> float:
        """Geometric centre, the natural midpoint on a log axis."""
        return math.sqrt(self.min_freq * self.max_freq)

    @property
    def width(self) -> float:
        return self.max_freq - self.min_freq


def generate_bands(
    num_bands: int,
    min_freq: float = HEARING_MIN_HZ,
    max_freq: float = HEARING_MAX_HZ,
) -> tuple[FrequencyBand, ...]:
    """
    Generate log-spaced bands covering [min_freq, max_freq].

    Band i spans exp(log_min + i*step) .. exp(log_min + (i+1)*step) with
    step = (ln(max_freq) - ln(min_freq)) / num_bands. Neighbouring bands
    share their edge exactly and the outer edges are pinned to the
    requested span.

    Args:
        num_bands: Number of bands, 1..64.
        min_freq: Lower edge of the first band in Hz.
        max_freq: Upper edge of the last band in Hz.

    Returns:
        Tuple of FrequencyBand ordered by frequency.
    """
    num_bands = check_num_bands(num_bands)
    if min_freq <= 0 or min_freq >= max_freq:
        raise ConfigError(f"invalid frequency span [{min_freq}, {max_freq}]")

    edges = np.exp(np.linspace(np.log(min_freq), np.log(max_freq), num_bands + 1))
    # exp(log(x)) drifts by an ulp or two
    edges[0] = min_freq
    edges[-1] = max_freq

    return tuple(
        FrequencyBand(float(lo), float(hi)) for lo, hi in zip(edges[:-1], edges[1:])
    )


def frequency_to_bin(freq: float, sample_rate: int, fft_size: int) -> int:
    """Index of the FFT bin containing ``freq``."""
    nyquist = sample_rate / 2.0
    usable_bins = fft_size // 2
    return int(math.floor(freq / (nyquist / usable_bins)))


def band_bin_range(
    band: FrequencyBand,
    sample_rate: int,
    fft_size: int,
) -> tuple[int, int]:
    """
    Inclusive (min_bin, max_bin) covered by a band.

    The range is clamped to the usable bins. A band lying entirely above
    Nyquist comes back empty (min_bin > max_bin).
    """
    last_bin = fft_size // 2 - 1
    min_bin = max(0, frequency_to_bin(band.min_freq, sample_rate, fft_size))
    max_bin = min(last_bin, frequency_to_bin(band.max_freq, sample_rate, fft_size))
    return min_bin, max_bin


class BandConfig:
    """Ordered, immutable set of analysis bands."""

    def __init__(self, bands: tuple[FrequencyBand, ...]):
        self._bands = tuple(bands)

    @classmethod
    def generate(
        cls,
        num_bands: int,
        min_freq: float = HEARING_MIN_HZ,
        max_freq: float = HEARING_MAX_HZ,
    ) -> "BandConfig":
        return cls(generate_bands(num_bands, min_freq, max_freq))

    @classmethod
    def from_config(cls, config: AnalyzerConfig) -> "BandConfig":
        return cls.generate(config.num_bands, config.min_freq, config.max_freq)

    @property
    def bands(self) -> tuple[FrequencyBand, ...]:
        return self._bands

    @property
    def edges(self) -> list[float]:
        """All band edges, num_bands + 1 values."""
        if not self._bands:
            return []
        return [b.min_freq for b in self._bands] + [self._bands[-1].max_freq]

    def bin_ranges(self, sample_rate: int, fft_size: int) -> list[tuple[int, int]]:
        return [band_bin_range(b, sample_rate, fft_size) for b in self._bands]

    def __len__(self) -> int:
        return len(self._bands)

    def __getitem__(self, index: int) -> FrequencyBand:
        return self._bands[index]

    def __iter__(self) -> Iterator[FrequencyBand]:
        return iter(self._bands)

    def __repr__(self) -> str:
        return f"BandConfig(n={len(self)}, span={self.edges[:1] + self.edges[-1:]})"
