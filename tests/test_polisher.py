"""Tests for intensity shaping helpers."""

import numpy as np
import pytest

from bandpulse.core.polisher import (
    IntensityPolisher,
    ScaleRange,
    clamp,
    compress,
    lerp,
    remap,
)


class TestRemap:
    """Tests for linear range mapping."""

    @pytest.mark.parametrize("lo, hi", [(0.0, 1.0), (1.0, 3.0), (0.5, 7.25), (-2.0, 0.3)])
    def test_exact_at_endpoints(self, lo, hi):
        assert remap(0.0, 0.0, 1.0, lo, hi) == lo
        assert remap(1.0, 0.0, 1.0, lo, hi) == hi

    def test_monotone(self):
        xs = np.linspace(0.0, 1.0, 101)
        ys = [remap(x, 0.0, 1.0, 1.0, 3.0) for x in xs]

        assert all(b >= a for a, b in zip(ys, ys[1:]))

    def test_offset_input_range(self):
        assert remap(0.625, 0.25, 1.0, 0.0, 1.0) == pytest.approx(0.5)

    def test_zero_width_input(self):
        assert remap(0.7, 1.0, 1.0, 2.0, 5.0) == 2.0

    def test_unclamped(self):
        assert remap(2.0, 0.0, 1.0, 0.0, 10.0) == pytest.approx(20.0)


class TestHelpers:
    def test_clamp(self):
        assert clamp(-1.0, 0.0, 1.0) == 0.0
        assert clamp(2.0, 0.0, 1.0) == 1.0
        assert clamp(0.3, 0.0, 1.0) == 0.3

    def test_lerp(self):
        assert lerp(0.0, 1.0, 0.25) == 0.25
        assert lerp(2.0, 2.0, 0.9) == 2.0

    def test_compress_is_square_root(self):
        assert compress(0.25) == pytest.approx(0.5)
        assert compress(0.0) == 0.0
        assert compress(-0.5) == 0.0


class TestScaleRange:
    def test_map_endpoints(self):
        scale = ScaleRange(1.0, 3.0)

        assert scale.map(0.0) == 1.0
        assert scale.map(1.0) == 3.0
        assert scale.map(0.5) == pytest.approx(2.0)

    def test_map_clamps(self):
        scale = ScaleRange(1.0, 3.0)

        assert scale.map(5.0) == 3.0
        assert scale.map(-1.0) == 1.0

    def test_strength_clamps(self):
        scale = ScaleRange(0.5, 2.0)

        assert scale.strength(0.0) == 0.5
        assert scale.strength(1.5) == 2.0
        assert scale.strength(0.2, 0.25, 1.0) == 0.5


class TestIntensityPolisher:
    """Tests for raw intensity and exponential smoothing."""

    def test_raw_intensity_gain(self):
        polisher = IntensityPolisher(sensitivity=2.0, intensity_multiplier=0.5)

        assert polisher.raw_intensity(0.09) == pytest.approx(0.3)

    def test_raw_intensity_clamped(self):
        polisher = IntensityPolisher(sensitivity=10.0)

        assert polisher.raw_intensity(1.0) == 1.0
        assert polisher.raw_intensity(0.0) == 0.0

    def test_smoothing_first_step(self):
        polisher = IntensityPolisher(smoothing=0.1)

        assert polisher.smooth(0.0, 0.8) == pytest.approx(0.08)

    @pytest.mark.parametrize("alpha", [0.05, 0.3, 0.9])
    @pytest.mark.parametrize("start, target", [(0.0, 0.7), (1.0, 0.2), (0.4, 0.4)])
    def test_smoothing_is_monotone_contraction(self, alpha, start, target):
        """Repeated smoothing approaches the input without overshoot."""
        polisher = IntensityPolisher(smoothing=alpha)
        value = start
        gaps = []
        for _ in range(400):
            value = polisher.smooth(value, target)
            assert 0.0 <= value <= 1.0
            gaps.append(abs(target - value))

        assert all(b <= a for a, b in zip(gaps, gaps[1:]))
        assert value == pytest.approx(target, abs=1e-6)
        if start <= target:
            assert value <= target
        else:
            assert value >= target
