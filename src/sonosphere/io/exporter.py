"""
Frame manifest serialization.

Exports engine outputs to a JSON manifest (per-frame globals) and a
compressed NumPy archive (per-particle positions) for offline renderers.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence, Union

import numpy as np

from sonosphere.engine import FrameOutput
from sonosphere.shapes import SHAPE_ORDER


@dataclass
class ManifestMetadata:
    """Metadata header for the frame manifest."""

    fps: int
    n_frames: int
    particle_count: int
    dust_count: int
    schema_version: str = "1.0"


class FrameExporter:
    """
    Exports engine frames.

    The JSON manifest holds everything except particle positions, which go
    to ``.npz`` because they dominate the payload.
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

    def _vec(self, values: Sequence[float]) -> list[float]:
        return [self._round(v) for v in values]

    def _material(self, material) -> dict[str, Any]:
        data = material.as_dict()
        return {
            key: (self._vec(value) if isinstance(value, list) else
                  self._round(value) if isinstance(value, float) else value)
            for key, value in data.items()
        }

    def _build_frame(self, output: FrameOutput) -> dict[str, Any]:
        """Build a single frame's data dictionary."""
        return {
            "frame_index": output.frame_index,
            "time": self._round(output.time),
            "shape": output.shape.value,
            "shape_changed": output.shape_changed,
            "bands": {k: self._round(v) for k, v in output.bands.as_dict().items()},
            "smoothed": {k: self._round(v) for k, v in output.smoothed.as_dict().items()},
            "gather": self._round(output.gather),
            "gather_eased": self._round(output.gather_eased),
            "morph": self._round(output.morph),
            "morph_eased": self._round(output.morph_eased),
            "material": self._material(output.material),
            "dust_material": self._material(output.dust_material),
            "rotation": self._vec(output.rotation),
            "dust_rotation": self._vec(output.dust_rotation),
            "group_offset": self._vec(output.group_offset),
            "bloom_strength": self._round(output.bloom_strength),
        }

    def build_manifest(self, outputs: Sequence[FrameOutput], fps: int) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            outputs: Engine outputs in frame order.
            fps: Frame rate the outputs were produced at.

        Returns:
            Complete manifest dictionary ready for serialization.
        """
        if not outputs:
            raise ValueError("Cannot build a manifest from zero frames")
        metadata = ManifestMetadata(
            fps=fps,
            n_frames=len(outputs),
            particle_count=len(outputs[0].positions),
            dust_count=len(outputs[0].dust_positions),
        )
        return {
            "metadata": {
                "fps": metadata.fps,
                "n_frames": metadata.n_frames,
                "particle_count": metadata.particle_count,
                "dust_count": metadata.dust_count,
                "shape_order": [kind.value for kind in SHAPE_ORDER],
                "schema_version": metadata.schema_version,
            },
            "frames": [self._build_frame(o) for o in outputs],
        }

    def export_json(
        self,
        outputs: Sequence[FrameOutput],
        fps: int,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """Write the manifest to ``output_path`` and return it."""
        manifest = self.build_manifest(outputs, fps)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        outputs: Sequence[FrameOutput],
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export particle positions as a NumPy .npz archive.

        ``positions`` has shape ``(frames, N, 3)``; the dust shell is fixed so
        it is stored once.
        """
        if not outputs:
            raise ValueError("Cannot export zero frames")
        output_path = Path(output_path)

        np.savez_compressed(
            output_path,
            positions=np.stack([o.positions for o in outputs]).astype(np.float32),
            dust_positions=np.asarray(outputs[0].dust_positions, dtype=np.float32),
            rotation=np.asarray([o.rotation for o in outputs], dtype=np.float32),
            group_offset=np.asarray([o.group_offset for o in outputs], dtype=np.float32),
        )

        return output_path
