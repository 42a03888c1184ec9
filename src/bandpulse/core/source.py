"""
Magnitude sources.

The analyzer never runs an FFT itself. It asks a magnitude source for
the spectrum magnitude of a frequency range, one query per bin, and
expects the source to hold a stable spectrum snapshot while a sample
pass runs. This module provides that capability for callables, for
precomputed spectrogram frames and for live sample chunks, plus the
librosa helpers that load audio and compute spectrograms.
"""

import abc
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

import librosa
import numpy as np
from scipy import fft as scipy_fft
from scipy import signal as scipy_signal

# Tolerance for bin centres that land on a range edge
_FREQ_EPSILON = 1e-6


def as_scalar_magnitude(value) -> float:
    """
    Reduce a host magnitude value to a float.

    Hosts may report a per-channel pair (left, right) or a complex bin;
    pairs collapse to their Euclidean length, complex values to their
    absolute value.
    """
    if isinstance(value, complex):
        return abs(value)
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 0:
        return float(arr)
    return float(np.linalg.norm(arr))


class MagnitudeSource(abc.ABC):
    """Provides the magnitude of the current spectrum over a frequency range."""

    @abc.abstractmethod
    def magnitude(self, freq_low: float, freq_high: float) -> float:
        """Magnitude of the current spectrum frame in [freq_low, freq_high)."""


class CallableSource(MagnitudeSource):
    """Adapts a plain ``f(freq_low, freq_high)`` function."""

    def __init__(self, func: Callable[[float, float], object]):
        self.func = func

    def magnitude(self, freq_low: float, freq_high: float) -> float:
        return as_scalar_magnitude(self.func(freq_low, freq_high))


def _amplitude_scale(window: np.ndarray) -> float:
    # Single-sided amplitude correction: a sine of amplitude A reads ~A
    return 2.0 / float(np.sum(window))


class SpectrumFrameSource(MagnitudeSource):
    """
    Serves magnitudes from a single precomputed spectrum frame.

    The frame holds ``n_fft // 2 + 1`` magnitudes, bin k centred on
    ``k * sample_rate / n_fft`` Hz.
    """

    def __init__(self, sample_rate: int, n_fft: int, frame: np.ndarray | None = None):
        self.sample_rate = sample_rate
        self.n_fft = n_fft
        self.bin_freqs = np.arange(n_fft // 2 + 1) * (sample_rate / n_fft)
        self._frame = np.zeros(n_fft // 2 + 1)
        if frame is not None:
            self.set_frame(frame)

    @property
    def frame(self) -> np.ndarray:
        return self._frame

    def set_frame(self, frame: np.ndarray):
        frame = np.asarray(frame, dtype=float)
        if frame.shape != self._frame.shape:
            raise ValueError(
                f"expected a frame of {self._frame.shape[0]} bins, got shape {frame.shape}"
            )
        self._frame = frame

    def magnitude(self, freq_low: float, freq_high: float) -> float:
        # Tolerate an ulp of disagreement about where a bin starts
        low = freq_low - _FREQ_EPSILON
        high = freq_high - _FREQ_EPSILON
        mask = (self.bin_freqs >= low) & (self.bin_freqs < high)
        if np.any(mask):
            return float(np.mean(self._frame[mask]))

        # Range narrower than a bin: use the bin that contains freq_low
        index = int(round(freq_low * self.n_fft / self.sample_rate))
        if 0 <= index < len(self._frame):
            return float(self._frame[index])
        return 0.0


class ChunkSpectrumSource(SpectrumFrameSource):
    """
    Live magnitude source fed with raw audio chunks.

    Keeps the most recent ``n_fft`` mono samples and recomputes a
    windowed magnitude spectrum on every push.
    """

    def __init__(self, sample_rate: int, n_fft: int, window: str = "hann"):
        super().__init__(sample_rate, n_fft)
        self.window = scipy_signal.get_window(window, n_fft)
        self._scale = _amplitude_scale(self.window)
        self._buffer = np.zeros(n_fft, dtype=np.float64)

    def push(self, samples: np.ndarray):
        """
        Append a chunk of samples and refresh the spectrum.

        Args:
            samples: Mono (n,) or interleaved (n, channels) samples.
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim > 1:
            samples = samples.mean(axis=1)
        if samples.size == 0:
            return

        if samples.size >= self.n_fft:
            self._buffer = samples[-self.n_fft:].copy()
        else:
            self._buffer = np.roll(self._buffer, -samples.size)
            self._buffer[-samples.size:] = samples

        spectrum = scipy_fft.rfft(self._buffer * self.window)
        self._frame = np.abs(spectrum) * self._scale


@dataclass
class LoadedAudio:
    """Mono audio loaded for analysis."""

    samples: np.ndarray
    sample_rate: int
    duration: float

    @property
    def n_samples(self) -> int:
        return len(self.samples)


@dataclass
class Spectrogram:
    """Amplitude spectrogram, shape (n_fft // 2 + 1, n_frames)."""

    magnitudes: np.ndarray
    sample_rate: int
    n_fft: int
    hop_length: int

    @property
    def n_frames(self) -> int:
        return self.magnitudes.shape[1]

    @property
    def frame_times(self) -> np.ndarray:
        return librosa.frames_to_time(
            np.arange(self.n_frames),
            sr=self.sample_rate,
            hop_length=self.hop_length,
        )

    def frame(self, index: int) -> np.ndarray:
        return self.magnitudes[:, index]


def load_audio(
    audio_path: Union[str, Path],
    sr: int | None = 44100,
    mono: bool = True,
) -> LoadedAudio:
    """
    Load audio from file.

    Args:
        audio_path: Path to audio file (wav, mp3, flac).
        sr: Target sample rate. None preserves the original.
        mono: Downmix to mono if True.

    Returns:
        LoadedAudio with samples and duration.
    """
    y, sr_out = librosa.load(audio_path, sr=sr, mono=mono)
    return LoadedAudio(
        samples=y,
        sample_rate=sr_out,
        duration=librosa.get_duration(y=y, sr=sr_out),
    )


def compute_spectrogram(
    samples: np.ndarray,
    sample_rate: int,
    n_fft: int,
    hop_length: int,
    window: str = "hann",
) -> Spectrogram:
    """
    Compute an amplitude-normalized magnitude spectrogram.

    Magnitudes are scaled the same way as ChunkSpectrumSource so file and
    live analysis read identical levels for identical signals.
    """
    stft = librosa.stft(
        samples,
        n_fft=n_fft,
        hop_length=hop_length,
        window=window,
        center=True,
    )
    scale = _amplitude_scale(scipy_signal.get_window(window, n_fft))
    return Spectrogram(
        magnitudes=np.abs(stft) * scale,
        sample_rate=sample_rate,
        n_fft=n_fft,
        hop_length=hop_length,
    )
