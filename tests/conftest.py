"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from bandpulse.config import AnalyzerConfig

# Default sample rate for test audio
TEST_SR = 22050


class StepSource:
    """
    Magnitude source returning one constant magnitude per sample pass.

    ``level`` is the desired raw intensity; with unit gains the analyzer
    reads sqrt(magnitude), so the source returns level squared.
    """

    def __init__(self, level: float = 0.0):
        self.level = level
        self.calls = 0

    def __call__(self, freq_low: float, freq_high: float) -> float:
        self.calls += 1
        return self.level ** 2


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def step_source() -> StepSource:
    return StepSource()


@pytest.fixture
def unit_config() -> AnalyzerConfig:
    """Unit gains, 0..1 scale range and 10 bands."""
    return AnalyzerConfig(
        num_bands=10,
        fft_size=2048,
        sample_rate=44100,
        min_scale=0.0,
        max_scale=1.0,
        smoothing=0.5,
        beat_threshold=0.05,
        shake_threshold=0.3,
        shake_cooldown=0.5,
    )


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a pure 440Hz sine wave (A4 note).

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    y = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def click_track(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a broadband click track at 120 BPM over near silence.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 3.0
    bpm = 120
    samples_per_beat = int(sample_rate * 60 / bpm)
    total_samples = int(sample_rate * duration)

    rng = np.random.default_rng(42)
    y = np.zeros(total_samples, dtype=np.float32)

    # 50ms noise bursts with exponential decay
    click_duration = int(sample_rate * 0.05)
    for beat_start in range(samples_per_beat // 2, total_samples, samples_per_beat):
        click_end = min(beat_start + click_duration, total_samples)
        n = click_end - beat_start
        decay = np.exp(-np.linspace(0, 4, n))
        y[beat_start:click_end] = 0.9 * decay * rng.uniform(-1.0, 1.0, n)

    return y, sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, click_track):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = click_track
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path


@pytest.fixture
def fast_config(sample_rate) -> AnalyzerConfig:
    """Small configuration for pipeline tests at the test sample rate."""
    return AnalyzerConfig(
        num_bands=8,
        fft_size=1024,
        sample_rate=sample_rate,
        update_frequency=60.0,
    )
