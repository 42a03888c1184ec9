"""
Spectral analysis and event detection.

Samples a magnitude source across log-spaced frequency bands at a
throttled update rate, smooths and scales per-band intensities, and
derives beat and shake events from sudden rises in overall intensity.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Union

import numpy as np

from bandpulse.config import AnalyzerConfig, ConfigError, check_num_bands
from bandpulse.core.bands import BandConfig, FrequencyBand
from bandpulse.core.polisher import IntensityPolisher, ScaleRange, remap
from bandpulse.core.source import CallableSource, MagnitudeSource

logger = logging.getLogger(__name__)

# Broadband loudness shake trigger: at least this share of bands above this level
LOUD_BAND_LEVEL = 0.4
LOUD_BAND_FRACTION = 0.5


@dataclass(frozen=True)
class BandUpdate:
    """New scale value for one band."""

    band_index: int
    scale_value: float
    kind: str = field(default="band", init=False)


@dataclass(frozen=True)
class Beat:
    """Short-term rise in overall intensity above the beat threshold."""

    strength: float
    kind: str = field(default="beat", init=False)


@dataclass(frozen=True)
class Shake:
    """Stronger or broadband energy event, rate limited by a cooldown."""

    strength: float
    kind: str = field(default="shake", init=False)


AnalyzerEvent = Union[BandUpdate, Beat, Shake]


@dataclass
class SampleResult:
    """Everything produced by one sample pass."""

    timestamp: float
    band_updates: list[BandUpdate]
    overall_intensity: float
    delta: float
    beat: Optional[Beat] = None
    shake: Optional[Shake] = None

    @property
    def scales(self) -> list[float]:
        return [u.scale_value for u in self.band_updates]

    def events(self) -> Iterator[AnalyzerEvent]:
        """Band updates in band order, then the beat, then the shake."""
        yield from self.band_updates
        if self.beat is not None:
            yield self.beat
        if self.shake is not None:
            yield self.shake


@dataclass
class AnalyzerState:
    """Mutable per-band state owned by one analyzer."""

    raw_intensity: np.ndarray
    smoothed_intensity: np.ndarray
    # Raw intensities of the previous pass, the beat detection baseline
    previous_raw: np.ndarray
    last_shake_time: float = float("-inf")

    @classmethod
    def zeros(cls, num_bands: int) -> "AnalyzerState":
        return cls(
            raw_intensity=np.zeros(num_bands),
            smoothed_intensity=np.zeros(num_bands),
            previous_raw=np.zeros(num_bands),
        )

    @property
    def num_bands(self) -> int:
        return len(self.raw_intensity)

    def resize(self, num_bands: int):
        """Resize every per-band array, keeping existing slots and zero-filling new ones."""
        def _resized(arr: np.ndarray) -> np.ndarray:
            out = np.zeros(num_bands)
            keep = min(num_bands, len(arr))
            out[:keep] = arr[:keep]
            return out

        self.raw_intensity = _resized(self.raw_intensity)
        self.smoothed_intensity = _resized(self.smoothed_intensity)
        self.previous_raw = _resized(self.previous_raw)


class SpectralAnalyzer:
    """
    Turns a magnitude source into band intensities, beats and shakes.

    Drive it with ``advance(dt)`` from the host tick. Sampling is
    throttled to ``update_frequency`` independently of the tick rate.
    Each pass returns a SampleResult and also pushes its events, in
    order, to any registered listeners.

    The analyzer is single threaded. Callers that invoke ``advance``
    from several threads must serialize the calls themselves.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        source: Union[MagnitudeSource, Callable, None] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            config: Analyzer configuration (validated here).
            source: Magnitude source or ``f(freq_low, freq_high)`` callable.
            clock: Monotonic time function used for the shake cooldown.
                Defaults to the analyzer's own playback clock, the sum of
                all ``advance`` deltas.
        """
        self.config = (config or AnalyzerConfig()).validate()
        self._clock = clock
        self._elapsed = 0.0
        self._accumulator = 0.0
        self._listeners: list[Callable[[AnalyzerEvent], None]] = []

        self.source: Optional[MagnitudeSource] = None
        if source is not None:
            self.attach_source(source)

        self.bands = BandConfig.from_config(self.config)
        self.state = AnalyzerState.zeros(self.config.num_bands)
        self._apply_config()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _apply_config(self):
        cfg = self.config
        self.polisher = IntensityPolisher(
            smoothing=cfg.smoothing,
            sensitivity=cfg.sensitivity,
            intensity_multiplier=cfg.intensity_multiplier,
        )
        self.scale_range = ScaleRange(cfg.min_scale, cfg.max_scale)
        self._bin_ranges = self.bands.bin_ranges(cfg.sample_rate, cfg.fft_size)

        degenerate = [i for i, (lo, hi) in enumerate(self._bin_ranges) if lo > hi]
        if degenerate:
            logger.debug(
                "Bands %s map to no spectrum bins at %d Hz / %d-point FFT",
                degenerate, cfg.sample_rate, cfg.fft_size,
            )

    def configure(self, **changes) -> AnalyzerConfig:
        """
        Reconfigure the analyzer.

        Accepts any AnalyzerConfig field as a keyword. The new
        configuration is validated before anything changes, so a
        ConfigError leaves the analyzer untouched. Band intensities are
        preserved where the band index still exists.

        Returns:
            The new configuration.
        """
        try:
            new_config = dataclasses.replace(self.config, **changes)
        except TypeError as e:
            raise ConfigError(f"unknown analyzer option in {sorted(changes)}") from e
        new_config.validate()

        regenerate = (
            new_config.num_bands != self.config.num_bands
            or new_config.min_freq != self.config.min_freq
            or new_config.max_freq != self.config.max_freq
        )
        self.config = new_config
        if regenerate:
            self.bands = BandConfig.from_config(new_config)
            self.state.resize(new_config.num_bands)
        self._apply_config()

        logger.debug("Analyzer reconfigured: %s", changes)
        return new_config

    def set_num_bands(self, num_bands: int) -> AnalyzerConfig:
        return self.configure(num_bands=check_num_bands(num_bands))

    @property
    def num_bands(self) -> int:
        return self.config.num_bands

    # ------------------------------------------------------------------
    # Source and listeners
    # ------------------------------------------------------------------

    def attach_source(self, source: Union[MagnitudeSource, Callable]):
        if isinstance(source, MagnitudeSource):
            self.source = source
        elif callable(source):
            self.source = CallableSource(source)
        else:
            raise TypeError(f"not a magnitude source: {source!r}")

    def detach_source(self):
        self.source = None

    @property
    def has_source(self) -> bool:
        return self.source is not None

    def add_listener(self, listener: Callable[[AnalyzerEvent], None]):
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[AnalyzerEvent], None]):
        self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return self._elapsed

    def reset(self):
        """Zero all band state, the baseline, the cooldown and the clock."""
        self.state = AnalyzerState.zeros(self.config.num_bands)
        self._elapsed = 0.0
        self._accumulator = 0.0

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def advance(self, delta_seconds: float) -> Optional[SampleResult]:
        """
        Advance by one host tick.

        Runs a sample pass once the accumulated time reaches the update
        period, then restarts accumulation from zero.

        Returns:
            The SampleResult of the pass, or None when no pass ran or no
            magnitude source is attached.
        """
        self._elapsed += delta_seconds
        if self.source is None:
            return None

        self._accumulator += delta_seconds
        if self._accumulator < self.config.update_period:
            return None
        self._accumulator = 0.0
        return self.sample()

    def _band_magnitude(self, band_index: int) -> float:
        """Average source magnitude over the bins of one band."""
        min_bin, max_bin = self._bin_ranges[band_index]
        if min_bin > max_bin:
            return 0.0

        bin_width = self.config.bin_width
        total = 0.0
        for b in range(min_bin, max_bin + 1):
            total += self.source.magnitude(b * bin_width, (b + 1) * bin_width)
        return total / (max_bin - min_bin + 1)

    def sample(self) -> Optional[SampleResult]:
        """
        Run one sample pass over every band.

        Returns:
            SampleResult, or None when no magnitude source is attached.
        """
        if self.source is None:
            return None

        state = self.state
        scale = self.scale_range
        updates = []

        for i in range(self.config.num_bands):
            raw = self.polisher.raw_intensity(self._band_magnitude(i))
            state.raw_intensity[i] = raw
            state.smoothed_intensity[i] = self.polisher.smooth(
                state.smoothed_intensity[i], raw
            )
            updates.append(BandUpdate(i, scale.map(state.smoothed_intensity[i])))

        overall = float(np.mean(state.raw_intensity))
        delta = overall - self.get_average_intensity()
        timestamp = self.now()

        beat = None
        if delta > self.config.beat_threshold:
            beat = Beat(scale.strength(delta, 0.0, 1.0))

        shake = self._detect_shake(delta, timestamp)

        state.previous_raw = state.raw_intensity.copy()

        result = SampleResult(
            timestamp=timestamp,
            band_updates=updates,
            overall_intensity=overall,
            delta=delta,
            beat=beat,
            shake=shake,
        )
        self._emit(result)
        return result

    def _detect_shake(self, delta: float, timestamp: float) -> Optional[Shake]:
        cfg = self.config
        state = self.state
        if timestamp - state.last_shake_time < cfg.shake_cooldown:
            return None

        triggered = False
        strength = 0.0

        if delta > cfg.shake_threshold:
            triggered = True
            strength = remap(delta, cfg.shake_threshold, 1.0, cfg.min_scale, cfg.max_scale)

        loud_fraction = float(np.mean(state.raw_intensity > LOUD_BAND_LEVEL))
        if loud_fraction >= LOUD_BAND_FRACTION:
            triggered = True
            strength = max(
                strength,
                remap(loud_fraction, LOUD_BAND_FRACTION, 1.0, cfg.min_scale, cfg.max_scale),
            )

        if not triggered:
            return None

        state.last_shake_time = timestamp
        strength = min(max(strength, cfg.min_scale), cfg.max_scale)
        logger.debug(
            "Shake at t=%.3f (delta=%.3f, loud=%.2f, strength=%.3f)",
            timestamp, delta, loud_fraction, strength,
        )
        return Shake(strength)

    def _emit(self, result: SampleResult):
        if not self._listeners:
            return
        for event in result.events():
            for listener in list(self._listeners):
                listener(event)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _in_range(self, index: int) -> bool:
        return 0 <= index < self.config.num_bands

    def get_band_intensity(self, index: int) -> float:
        """Smoothed intensity of a band, 0.0 for an unknown band."""
        if not self._in_range(index):
            return 0.0
        return float(self.state.smoothed_intensity[index])

    def get_raw_intensity(self, index: int) -> float:
        if not self._in_range(index):
            return 0.0
        return float(self.state.raw_intensity[index])

    def get_band_scale(self, index: int) -> float:
        """Current output scale of a band, min_scale for an unknown band."""
        return self.scale_range.map(self.get_band_intensity(index))

    def get_band_range(self, index: int) -> Optional[FrequencyBand]:
        if not self._in_range(index):
            return None
        return self.bands[index]

    def get_average_intensity(self) -> float:
        """
        Mean raw intensity of the previous sample pass.

        This is the beat baseline: a one-frame lag, not a moving average.
        """
        if self.state.num_bands == 0:
            return 0.0
        return float(np.mean(self.state.previous_raw))
