"""Spectral band analysis and beat/shake detection for audio-reactive visuals."""

from bandpulse.config import AnalyzerConfig, ConfigError
from bandpulse.core.analyzer import Beat, BandUpdate, SampleResult, Shake, SpectralAnalyzer
from bandpulse.core.bands import BandConfig, generate_bands
from bandpulse.io.exporter import EventManifestExporter
from bandpulse.pipeline import AnalysisPipeline

__version__ = "0.1.0"
__all__ = [
    "AnalyzerConfig",
    "ConfigError",
    "SpectralAnalyzer",
    "SampleResult",
    "BandUpdate",
    "Beat",
    "Shake",
    "BandConfig",
    "generate_bands",
    "EventManifestExporter",
    "AnalysisPipeline",
]
