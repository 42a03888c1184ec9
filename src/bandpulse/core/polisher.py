"""
Intensity shaping module.

Turns averaged spectrum magnitudes into perceptually compressed,
smoothed intensities and maps them onto the output scale range used
by band values and event strengths.
"""

import math
from dataclasses import dataclass


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def lerp(current: float, target: float, factor: float) -> float:
    return current + (target - current) * factor


def remap(
    value: float,
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
) -> float:
    """
    Linearly map value from [in_min, in_max] onto [out_min, out_max].

    The result is not clamped. A zero-width input range maps everything
    to out_min.
    """
    span = in_max - in_min
    if span == 0:
        return out_min
    t = (value - in_min) / span
    if t == 1.0:
        return out_max
    return out_min + t * (out_max - out_min)


def compress(magnitude: float) -> float:
    """Square-root loudness curve. Negative magnitudes read as silence."""
    if magnitude <= 0.0:
        return 0.0
    return math.sqrt(magnitude)


@dataclass(frozen=True)
class ScaleRange:
    """Output range for band scale values and event strengths."""

    min_scale: float = 1.0
    max_scale: float = 3.0

    def map(self, intensity: float) -> float:
        """Map a [0, 1] intensity onto the scale range."""
        value = self.min_scale + intensity * (self.max_scale - self.min_scale)
        return clamp(value, self.min_scale, self.max_scale)

    def strength(self, value: float, in_min: float = 0.0, in_max: float = 1.0) -> float:
        """Remap value from [in_min, in_max] into the range, clamped."""
        return clamp(
            remap(value, in_min, in_max, self.min_scale, self.max_scale),
            self.min_scale,
            self.max_scale,
        )


class IntensityPolisher:
    """
    Converts band magnitudes into smoothed [0, 1] intensities.

    Raw intensity is sqrt(magnitude) scaled by sensitivity and the
    intensity multiplier. Smoothing is a first-order exponential moving
    average: a factor near 1 follows the raw signal closely, a factor
    near 0 smooths heavily.
    """

    def __init__(
        self,
        smoothing: float = 0.2,
        sensitivity: float = 1.0,
        intensity_multiplier: float = 1.0,
    ):
        """
        Initialize the polisher.

        Args:
            smoothing: Exponential smoothing factor in (0, 1).
            sensitivity: Gain applied after compression.
            intensity_multiplier: Second gain stage, kept separate so the
                two can be tuned independently.
        """
        self.smoothing = smoothing
        self.sensitivity = sensitivity
        self.intensity_multiplier = intensity_multiplier

    def raw_intensity(self, avg_magnitude: float) -> float:
        intensity = compress(avg_magnitude) * self.sensitivity * self.intensity_multiplier
        return clamp(intensity, 0.0, 1.0)

    def smooth(self, previous: float, raw: float) -> float:
        return clamp(lerp(previous, raw, self.smoothing), 0.0, 1.0)
