"""
Manifest serialization module.

Exports analyzer sample results to JSON or NumPy form so renderers and
lighting rigs can replay band values, beats and shakes offline.
"""

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Sequence, Union

import numpy as np

from bandpulse.config import AnalyzerConfig
from bandpulse.core.analyzer import SampleResult
from bandpulse.core.bands import BandConfig


@dataclass
class ManifestMetadata:
    """Metadata header for the event manifest."""

    duration: float
    n_samples: int
    n_bands: int
    update_frequency: float
    sample_rate: int
    fft_size: int
    min_scale: float
    max_scale: float
    version: str = "1.0"
    schema_version: str = "1.0"


class EventManifestExporter:
    """
    Exports sample results to a manifest.

    The manifest has a metadata header, the band layout, one entry per
    sample pass and flat beat/shake event lists for quick lookup.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _build_sample(self, index: int, result: SampleResult) -> dict[str, Any]:
        return {
            "index": index,
            "time": self._round(result.timestamp),
            "bands": [self._round(v) for v in result.scales],
            "overall_intensity": self._round(result.overall_intensity),
            "delta": self._round(result.delta),
            "beat": self._round(result.beat.strength) if result.beat else None,
            "shake": self._round(result.shake.strength) if result.shake else None,
        }

    def build_manifest(
        self,
        results: Sequence[SampleResult],
        config: AnalyzerConfig,
        duration: float,
    ) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            results: Sample results in order.
            config: Configuration the results were produced with.
            duration: Audio duration in seconds.

        Returns:
            Manifest dictionary ready for serialization.
        """
        metadata = ManifestMetadata(
            duration=self._round(duration),
            n_samples=len(results),
            n_bands=config.num_bands,
            update_frequency=config.update_frequency,
            sample_rate=config.sample_rate,
            fft_size=config.fft_size,
            min_scale=config.min_scale,
            max_scale=config.max_scale,
        )

        bands = [
            {
                "index": i,
                "min_freq": self._round(band.min_freq),
                "max_freq": self._round(band.max_freq),
            }
            for i, band in enumerate(BandConfig.from_config(config))
        ]

        samples = [self._build_sample(i, r) for i, r in enumerate(results)]

        beats = [
            {"index": i, "time": self._round(r.timestamp), "strength": self._round(r.beat.strength)}
            for i, r in enumerate(results)
            if r.beat is not None
        ]
        shakes = [
            {"index": i, "time": self._round(r.timestamp), "strength": self._round(r.shake.strength)}
            for i, r in enumerate(results)
            if r.shake is not None
        ]

        return {
            "metadata": asdict(metadata),
            "bands": bands,
            "samples": samples,
            "events": {"beats": beats, "shakes": shakes},
        }

    def export_json(
        self,
        results: Sequence[SampleResult],
        config: AnalyzerConfig,
        duration: float,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Export manifest to JSON file.

        Returns:
            Path to written file.
        """
        manifest = self.build_manifest(results, config, duration)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        results: Sequence[SampleResult],
        config: AnalyzerConfig,
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export results as a NumPy .npz archive for faster loading.

        Beat and shake strengths are 0.0 on passes without an event.

        Returns:
            Path to written file.
        """
        output_path = Path(output_path)
        n = len(results)

        band_scales = np.zeros((n, config.num_bands))
        for i, r in enumerate(results):
            band_scales[i, : len(r.scales)] = r.scales

        np.savez_compressed(
            output_path,
            times=np.array([r.timestamp for r in results]),
            band_scales=band_scales,
            overall_intensity=np.array([r.overall_intensity for r in results]),
            beat_strength=np.array([r.beat.strength if r.beat else 0.0 for r in results]),
            shake_strength=np.array([r.shake.strength if r.shake else 0.0 for r in results]),
            update_frequency=config.update_frequency,
            n_bands=config.num_bands,
        )

        return output_path

    def to_dict(
        self,
        results: Sequence[SampleResult],
        config: AnalyzerConfig,
        duration: float,
    ) -> dict[str, Any]:
        """Return manifest as dictionary (for in-memory use)."""
        return self.build_manifest(results, config, duration)
