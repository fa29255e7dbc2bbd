"""
Diagnostic point-cloud snapshots.

Rotates one engine frame into view, projects it orthographically, splats
both particle sets into a float buffer and adds a gaussian bloom scaled by
the bloom-strength setting. Meant for eyeballing exported runs, not as a
compositor.
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image
from scipy.ndimage import gaussian_filter

from sonosphere.core.material import MaterialParams
from sonosphere.engine import FrameOutput


@dataclass
class PreviewConfig:
    width: int = 640
    height: int = 480
    view_extent: float = 12.0  # world units from centre to top edge
    glow_sigma: float = 2.5
    show_dust: bool = True


def _rotation_matrix(rx: float, ry: float, rz: float) -> np.ndarray:
    """Euler XYZ rotation (X applied last)."""
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    Rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    Ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    Rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return Rx @ Ry @ Rz


def _splat(
    accum: np.ndarray,
    points: np.ndarray,
    rotation: Tuple[float, float, float],
    offset: Tuple[float, float, float],
    material: MaterialParams,
    cfg: PreviewConfig,
):
    if material.opacity <= 0 or len(points) == 0:
        return
    world = points.astype(np.float64) @ _rotation_matrix(*rotation).T + np.asarray(offset)

    scale = (cfg.height / 2.0) / cfg.view_extent
    px = np.round(cfg.width / 2.0 + world[:, 0] * scale).astype(np.int64)
    py = np.round(cfg.height / 2.0 - world[:, 1] * scale).astype(np.int64)
    inside = (px >= 0) & (px < cfg.width) & (py >= 0) & (py < cfg.height)
    if not np.any(inside):
        return

    weight = material.opacity * material.size * 4.0
    colour = np.asarray(material.rgb, dtype=np.float64) * weight
    for c in range(3):
        np.add.at(accum[:, :, c], (py[inside], px[inside]), colour[c])


def render_preview(output: FrameOutput, config: PreviewConfig | None = None) -> np.ndarray:
    """
    Render one frame.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    cfg = config or PreviewConfig()
    accum = np.zeros((cfg.height, cfg.width, 3), dtype=np.float64)

    _splat(accum, output.positions, output.rotation, output.group_offset, output.material, cfg)
    if cfg.show_dust:
        _splat(accum, output.dust_positions, output.dust_rotation, output.group_offset,
               output.dust_material, cfg)

    # Exposure curve keeps dense cores from clipping flat
    frame = 1.0 - np.exp(-accum)

    if output.bloom_strength > 0:
        glow = np.stack(
            [gaussian_filter(frame[:, :, c], sigma=cfg.glow_sigma) for c in range(3)],
            axis=-1,
        )
        b = np.clip(glow * output.bloom_strength, 0, 1)
        # Screen blend
        frame = 1.0 - (1.0 - frame) * (1.0 - b)

    return (np.clip(frame, 0, 1) * 255).astype(np.uint8)


def save_preview(
    output: FrameOutput,
    output_path: Union[str, Path],
    config: PreviewConfig | None = None,
) -> Path:
    """Render ``output`` and write it as PNG."""
    output_path = Path(output_path)
    Image.fromarray(render_preview(output, config)).save(output_path)
    return output_path
