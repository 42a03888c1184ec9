"""
Offline analysis pipeline.

Plays an audio file through the spectral analyzer the way a host engine
would: one spectrum frame per host tick, ``advance(dt)`` on every tick,
and collects the resulting band values and events into a manifest.
"""

import dataclasses
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from bandpulse.config import AnalyzerConfig, ConfigError
from bandpulse.core.analyzer import SampleResult, SpectralAnalyzer
from bandpulse.core.source import (
    LoadedAudio,
    Spectrogram,
    SpectrumFrameSource,
    compute_spectrogram,
    load_audio,
)
from bandpulse.io.exporter import EventManifestExporter

logger = logging.getLogger(__name__)

MANIFEST_CACHE_DIR = Path.home() / ".cache" / "bandpulse" / "manifests"
_HASH_CHUNK_BYTES = 1 << 20


class AnalysisPipeline:
    """
    Audio file to event manifest pipeline.

    Combines loading, spectrogram computation, tick-driven analysis and
    export into a single interface.
    """

    # Version of the analysis logic/schema.
    # Increment whenever sampling or event detection changes so cached
    # manifests are invalidated.
    ANALYSIS_VERSION = "1.0"

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        tick_rate: int = 60,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Analyzer configuration. Its sample_rate is also the
                rate audio is resampled to on load.
            tick_rate: Simulated host ticks per second; one spectrum frame
                is analysed per tick.
        """
        self.config = (config or AnalyzerConfig()).validate()
        if tick_rate <= 0:
            raise ConfigError(f"tick_rate must be positive, got {tick_rate!r}")
        self.tick_rate = tick_rate
        self.exporter = EventManifestExporter()

    @property
    def hop_length(self) -> int:
        return max(1, self.config.sample_rate // self.tick_rate)

    # ------------------------------------------------------------------
    # Manifest cache
    # ------------------------------------------------------------------

    def _get_cache_dir(self) -> Path:
        MANIFEST_CACHE_DIR.mkdir(parents=True, exist_ok=True)
        return MANIFEST_CACHE_DIR

    def _calculate_file_hash(self, file_path: Path) -> str:
        """SHA-256 of the audio file contents."""
        digest = hashlib.sha256()
        with open(file_path, "rb") as f:
            while chunk := f.read(_HASH_CHUNK_BYTES):
                digest.update(chunk)
        return digest.hexdigest()

    def _get_config_hash(self) -> str:
        """MD5 of everything that shapes the manifest besides the audio."""
        key = {
            "version": self.ANALYSIS_VERSION,
            "tick_rate": self.tick_rate,
            "analyzer": dataclasses.asdict(self.config),
        }
        return hashlib.md5(json.dumps(key, sort_keys=True).encode("utf-8")).hexdigest()

    def _get_cache_path(self, audio_path: Path) -> Path:
        file_hash = self._calculate_file_hash(audio_path)
        config_hash = self._get_config_hash()
        return self._get_cache_dir() / f"manifest_{file_hash}_{config_hash}.json"

    def _read_cache(self, audio_path: Path) -> Optional[dict[str, Any]]:
        """Cached manifest for this file and config, or None on a miss or unreadable entry."""
        try:
            cache_path = self._get_cache_path(audio_path)
            if not cache_path.exists():
                logger.debug("No cached manifest for %s", audio_path)
                return None
            with open(cache_path, "r", encoding="utf-8") as f:
                manifest = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load cache: %s. Re-analyzing.", e)
            return None

        logger.info("Loaded analysis from cache: %s", cache_path)
        return manifest

    def _write_cache(self, audio_path: Path, manifest: dict[str, Any]):
        try:
            cache_path = self._get_cache_path(audio_path)
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2)
        except OSError as e:
            logger.warning("Failed to save cache: %s", e)

    def clear_cache(self) -> int:
        """
        Delete cached manifests.

        Only ``manifest_*.json`` entries are removed; anything else in the
        cache directory is left alone.

        Returns:
            Number of manifests deleted.
        """
        removed = 0
        for entry in self._get_cache_dir().glob("manifest_*.json"):
            entry.unlink()
            removed += 1
        logger.info("Cleared %d cached manifests", removed)
        return removed

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def load(self, audio_path: Union[str, Path]) -> LoadedAudio:
        """Load audio resampled to the configured sample rate."""
        return load_audio(audio_path, sr=self.config.sample_rate)

    def spectrogram(self, audio: LoadedAudio) -> Spectrogram:
        """Compute one spectrum frame per host tick."""
        return compute_spectrogram(
            audio.samples,
            audio.sample_rate,
            n_fft=self.config.fft_size,
            hop_length=self.hop_length,
        )

    def run(self, spectrogram: Spectrogram) -> list[SampleResult]:
        """
        Drive a fresh analyzer through every spectrogram frame.

        Returns:
            Sample results in time order.
        """
        source = SpectrumFrameSource(spectrogram.sample_rate, spectrogram.n_fft)
        analyzer = SpectralAnalyzer(self.config, source=source)
        dt = spectrogram.hop_length / spectrogram.sample_rate

        results = []
        for i in range(spectrogram.n_frames):
            source.set_frame(spectrogram.frame(i))
            result = analyzer.advance(dt)
            if result is not None:
                results.append(result)

        logger.info(
            "Analysed %d frames: %d samples, %d beats, %d shakes",
            spectrogram.n_frames,
            len(results),
            sum(1 for r in results if r.beat is not None),
            sum(1 for r in results if r.shake is not None),
        )
        return results

    def export(
        self,
        results: list[SampleResult],
        duration: float,
        output_path: Union[str, Path],
        format: str = "json",
    ) -> Path:
        if format == "numpy":
            return self.exporter.export_numpy(results, self.config, output_path)
        return self.exporter.export_json(results, self.config, duration, output_path)

    def _summarize(self, manifest: dict[str, Any]) -> dict[str, Any]:
        metadata = manifest.get("metadata", {})
        events = manifest.get("events", {})
        return {
            "manifest": manifest,
            "duration": metadata.get("duration", 0.0),
            "n_samples": metadata.get("n_samples", 0),
            "n_beats": len(events.get("beats", [])),
            "n_shakes": len(events.get("shakes", [])),
        }

    def process(
        self,
        audio_path: Union[str, Path],
        output_path: Union[str, Path, None] = None,
        format: str = "json",
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """
        Run the complete pipeline from audio file to manifest.

        Args:
            audio_path: Path to input audio file.
            output_path: Path for output manifest. If None, only returns dict.
            format: Output format ("json" or "numpy").
            use_cache: Whether to use a cached manifest if available.

        Returns:
            Dictionary with the manifest and summary counts.
        """
        audio_path = Path(audio_path)

        # A cached manifest can only stand in for JSON output
        manifest = None
        if use_cache and format == "json":
            manifest = self._read_cache(audio_path)

        if manifest is not None:
            result = self._summarize(manifest)
            if output_path:
                with open(output_path, "w", encoding="utf-8") as f:
                    json.dump(manifest, f, indent=2)
                result["output_path"] = str(output_path)
            return result

        audio = self.load(audio_path)
        results = self.run(self.spectrogram(audio))
        manifest = self.exporter.to_dict(results, self.config, audio.duration)

        if use_cache:
            self._write_cache(audio_path, manifest)

        result = self._summarize(manifest)
        if output_path:
            written_path = self.export(results, audio.duration, output_path, format)
            result["output_path"] = str(written_path)

        return result
