"""Shared per-set material parameters handed to the renderer."""

import colorsys
from dataclasses import dataclass
from typing import Tuple

GLOW_POINT_SIZE = 0.3
DOT_POINT_SIZE = 0.12


@dataclass(frozen=True)
class MaterialParams:
    """
    One colour/size/opacity shared by every particle in a set.

    Colour is HSL in ``[0, 1]``; ``texture`` is ``"glow"`` for the soft
    sprite or ``"dot"`` for plain points.
    """

    hue: float
    saturation: float
    lightness: float
    size: float
    opacity: float
    texture: str = "glow"

    @property
    def rgb(self) -> Tuple[float, float, float]:
        # colorsys orders the arguments hue, lightness, saturation.
        return colorsys.hls_to_rgb(self.hue, self.lightness, self.saturation)

    def as_dict(self) -> dict:
        return {
            "hue": self.hue,
            "saturation": self.saturation,
            "lightness": self.lightness,
            "size": self.size,
            "opacity": self.opacity,
            "texture": self.texture,
            "rgb": list(self.rgb),
        }


def _clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def main_material(
    base_hue: float,
    bass: float,
    gather: float,
    particle_size: float,
    high_quality: bool,
) -> MaterialParams:
    """
    Material for the main cloud.

    Args:
        base_hue: Colour theme hue.
        bass: Smoothed bass energy.
        gather: Eased gather progress.
        particle_size: User size multiplier.
        high_quality: Glow sprite (larger base size) instead of plain dots.
    """
    base_size = GLOW_POINT_SIZE if high_quality else DOT_POINT_SIZE
    return MaterialParams(
        hue=(base_hue + bass * 0.15 * gather) % 1.0,
        saturation=0.8,
        lightness=_clamp01(0.4 + bass * 0.4 * gather),
        size=(base_size * max(0.5, gather) + bass * 0.15) * particle_size,
        opacity=0.4 + gather * 0.4,
        texture="glow" if high_quality else "dot",
    )
