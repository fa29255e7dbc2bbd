"""
Secondary audio-reactive effects layered on the main cloud.

- CameraJitter: bass-triggered random displacement of the whole group,
  damped back towards the origin every tick.
- AmbientDustLayer: a sparse shell of motes that fades in once the cloud
  has mostly gathered, with a breathing hue and a high-band sparkle.
"""

import math
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from sonosphere.core.material import MaterialParams

JITTER_DAMPING = 0.1


@dataclass(frozen=True)
class CameraJitter:
    """Group offset driven by bass above a threshold."""

    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def step(
        self,
        bass: float,
        enabled: bool,
        active: bool,
        threshold: float,
        intensity: float,
        rng: np.random.Generator,
    ) -> "CameraJitter":
        offset = np.asarray(self.offset, dtype=np.float64)
        if enabled and active:
            amp = max(0.0, (bass - threshold) * intensity * 1.5)
            if amp > 0:
                offset = offset + (rng.random(3) - 0.5) * amp
        # Lerp towards the origin.
        offset = offset * (1.0 - JITTER_DAMPING)
        return replace(self, offset=tuple(float(v) for v in offset))


@dataclass(frozen=True)
class AmbientDustLayer:
    """Rotation state of the dust shell; its positions never change."""

    rotation_x: float = 0.0
    rotation_y: float = 0.0

    @property
    def rotation(self) -> Tuple[float, float, float]:
        return (self.rotation_x, self.rotation_y, 0.0)

    def step(
        self,
        time: float,
        gather: float,
        high: float,
        base_hue: float,
        particle_size: float,
        spin: float,
    ) -> Tuple["AmbientDustLayer", MaterialParams]:
        """
        Advance one tick.

        Args:
            time: Simulated time.
            gather: Raw (un-eased) gather progress.
            high: Smoothed high-band energy.
            base_hue: Colour theme hue.
            particle_size: User size multiplier.
            spin: This tick's main rotation increment; dust turns at half of it.
        """
        breathe = math.sin(time * 0.5) * 0.1
        material = MaterialParams(
            hue=(base_hue + 0.1 + breathe) % 1.0,
            saturation=0.8,
            lightness=0.8,
            size=(0.15 + high * 0.2) * particle_size,
            opacity=0.0,
        )
        if gather <= 0.5:
            return self, material

        layer = replace(
            self,
            rotation_y=self.rotation_y + spin * 0.5,
            rotation_x=math.sin(time * 0.1) * 0.05,
        )
        return layer, replace(material, opacity=(gather - 0.5) * 2.0 * 0.5)
