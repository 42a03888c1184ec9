"""Tests for the EventManifestExporter module."""

import json

import numpy as np
import pytest

from bandpulse.config import AnalyzerConfig
from bandpulse.core.analyzer import SpectralAnalyzer
from bandpulse.io.exporter import EventManifestExporter


class TestEventManifestExporter:
    """Tests for manifest serialization."""

    @pytest.fixture
    def run(self):
        """Results of a short synthetic run: silence, a hit, then decay."""
        config = AnalyzerConfig(num_bands=6, min_scale=1.0, max_scale=3.0)
        level = {"value": 0.0}
        analyzer = SpectralAnalyzer(config, source=lambda lo, hi: level["value"] ** 2)

        results = []
        for value in [0.0, 0.0, 0.8, 0.6, 0.4, 0.2, 0.0]:
            level["value"] = value
            results.append(analyzer.advance(1 / 60))
        return results, config

    def test_build_manifest_structure(self, run):
        results, config = run
        manifest = EventManifestExporter().build_manifest(results, config, duration=0.12)

        assert set(manifest) == {"metadata", "bands", "samples", "events"}
        assert set(manifest["events"]) == {"beats", "shakes"}

    def test_metadata_fields(self, run):
        results, config = run
        meta = EventManifestExporter().build_manifest(results, config, 0.12)["metadata"]

        assert meta["n_samples"] == 7
        assert meta["n_bands"] == 6
        assert meta["update_frequency"] == 120.0
        assert meta["fft_size"] == 2048
        assert meta["min_scale"] == 1.0
        assert meta["max_scale"] == 3.0
        assert "version" in meta
        assert "schema_version" in meta

    def test_band_layout(self, run):
        results, config = run
        bands = EventManifestExporter().build_manifest(results, config, 0.12)["bands"]

        assert len(bands) == 6
        assert bands[0]["min_freq"] == 20.0
        assert bands[-1]["max_freq"] == 20000.0

    def test_sample_structure(self, run):
        results, config = run
        samples = EventManifestExporter().build_manifest(results, config, 0.12)["samples"]

        assert len(samples) == 7
        for key in ["index", "time", "bands", "overall_intensity", "delta", "beat", "shake"]:
            assert key in samples[0]
        assert len(samples[0]["bands"]) == 6
        assert samples[0]["beat"] is None

    def test_events_match_samples(self, run):
        results, config = run
        manifest = EventManifestExporter().build_manifest(results, config, 0.12)

        beats = manifest["events"]["beats"]
        assert [b["index"] for b in beats] == [2]
        assert manifest["samples"][2]["beat"] == beats[0]["strength"]

        shakes = manifest["events"]["shakes"]
        assert [s["index"] for s in shakes] == [2]

    def test_precision(self, run):
        results, config = run
        exporter = EventManifestExporter(precision=2)
        sample = exporter.build_manifest(results, config, 0.12)["samples"][3]

        for value in sample["bands"]:
            assert value == round(value, 2)

    def test_export_json(self, run, tmp_path):
        results, config = run
        output = tmp_path / "events.json"

        written = EventManifestExporter().export_json(results, config, 0.12, output)

        assert written == output
        with open(output, encoding="utf-8") as f:
            data = json.load(f)
        assert data["metadata"]["n_samples"] == 7

    def test_export_numpy(self, run, tmp_path):
        results, config = run
        output = tmp_path / "events.npz"

        EventManifestExporter().export_numpy(results, config, output)

        data = np.load(output)
        assert data["band_scales"].shape == (7, 6)
        assert data["beat_strength"][0] == 0.0
        assert data["beat_strength"][2] > 0.0
        assert data["shake_strength"][2] > 0.0
        assert len(data["times"]) == 7

    def test_to_dict_matches_build(self, run):
        results, config = run
        exporter = EventManifestExporter()

        assert exporter.to_dict(results, config, 0.12) == exporter.build_manifest(
            results, config, 0.12
        )
