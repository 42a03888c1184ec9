"""Core spectral analysis modules."""

from bandpulse.core.analyzer import SpectralAnalyzer
from bandpulse.core.bands import BandConfig
from bandpulse.core.polisher import IntensityPolisher
from bandpulse.core.source import MagnitudeSource, SpectrumFrameSource

__all__ = [
    "SpectralAnalyzer",
    "BandConfig",
    "IntensityPolisher",
    "MagnitudeSource",
    "SpectrumFrameSource",
]
