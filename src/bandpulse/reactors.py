"""
Engine-free consumers of analyzer events.

Reactors turn beat and shake events into plain numbers a host can apply
to its own scene: a decaying camera shake offset and a beat-stepped
color. They hold their own state and never touch the analyzer.
"""

import colorsys
from typing import Optional, Tuple

import numpy as np

from bandpulse.core.analyzer import Beat, Shake, SpectralAnalyzer
from bandpulse.core.polisher import clamp, lerp, remap


class ShakeReactor:
    """
    Trauma-based camera shake.

    Each shake adds trauma in [0, 1] proportional to its strength within
    the analyzer's scale range. Offsets scale with trauma squared so
    small shakes stay subtle, and trauma decays linearly over time.
    """

    def __init__(
        self,
        max_offset: Tuple[float, float, float] = (1.0, 1.0, 0.5),
        decay: float = 1.5,
        seed: Optional[int] = None,
    ):
        self.max_offset = np.asarray(max_offset, dtype=float)
        self.decay = decay
        self.rng = np.random.default_rng(seed)
        self.trauma = 0.0

    def on_shake(self, event: Shake, min_scale: float, max_scale: float):
        if max_scale > min_scale:
            amount = remap(event.strength, min_scale, max_scale, 0.0, 1.0)
        else:
            amount = 1.0
        self.trauma = clamp(self.trauma + clamp(amount, 0.0, 1.0), 0.0, 1.0)

    def update(self, delta_seconds: float) -> Tuple[float, float, float]:
        """Decay trauma and return the (x, y, z) offset for this tick."""
        self.trauma = max(0.0, self.trauma - self.decay * delta_seconds)
        if self.trauma == 0.0:
            return (0.0, 0.0, 0.0)
        jitter = self.rng.uniform(-1.0, 1.0, size=3)
        offset = jitter * self.max_offset * self.trauma ** 2
        return tuple(float(v) for v in offset)


class ColorCycler:
    """Steps a target hue on every beat and eases the current hue toward it."""

    def __init__(
        self,
        hue_step: float = 0.1,
        saturation: float = 0.6,
        value: float = 0.8,
        follow: float = 0.1,
        start_hue: float = 0.0,
    ):
        self.hue_step = hue_step
        self.saturation = saturation
        self.value = value
        self.follow = follow
        self.hue = start_hue % 1.0
        self.target_hue = self.hue

    def on_beat(self, event: Beat):
        self.target_hue = (self.target_hue + self.hue_step) % 1.0

    def update(self) -> Tuple[float, float, float]:
        """Ease toward the target hue the short way round; return RGB in [0, 1]."""
        diff = (self.target_hue - self.hue + 0.5) % 1.0 - 0.5
        self.hue = lerp(self.hue, self.hue + diff, self.follow) % 1.0
        return colorsys.hsv_to_rgb(self.hue, self.saturation, self.value)


class ReactorHub:
    """Listens to an analyzer and forwards beats and shakes to reactors."""

    def __init__(
        self,
        analyzer: SpectralAnalyzer,
        shake: Optional[ShakeReactor] = None,
        color: Optional[ColorCycler] = None,
    ):
        self.analyzer = analyzer
        self.shake = shake
        self.color = color
        analyzer.add_listener(self.dispatch)

    def dispatch(self, event):
        if isinstance(event, Shake) and self.shake is not None:
            cfg = self.analyzer.config
            self.shake.on_shake(event, cfg.min_scale, cfg.max_scale)
        elif isinstance(event, Beat) and self.color is not None:
            self.color.on_beat(event)

    def detach(self):
        self.analyzer.remove_listener(self.dispatch)
