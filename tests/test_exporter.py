"""Tests for the FrameExporter module."""

import json

import numpy as np
import pytest

from sonosphere.audio import SilentSource
from sonosphere.engine import ParticleEngine
from sonosphere.io.exporter import FrameExporter


class TestFrameExporter:
    """Tests for manifest serialization."""

    @pytest.fixture
    def outputs(self, small_config):
        engine = ParticleEngine(small_config, seed=8)
        return list(engine.run(SilentSource(activated=True), 10))

    def test_build_manifest_structure(self, outputs):
        manifest = FrameExporter().build_manifest(outputs, fps=60)
        assert set(manifest) == {"metadata", "frames"}
        assert len(manifest["frames"]) == 10

    def test_metadata_fields(self, outputs):
        meta = FrameExporter().build_manifest(outputs, fps=60)["metadata"]
        assert meta["fps"] == 60
        assert meta["n_frames"] == 10
        assert meta["particle_count"] == 400
        assert meta["dust_count"] == 50
        assert meta["shape_order"][0] == "sphere"
        assert meta["schema_version"] == "1.0"

    def test_frame_structure(self, outputs):
        frame = FrameExporter().build_manifest(outputs, fps=60)["frames"][0]
        for key in [
            "frame_index", "time", "shape", "shape_changed", "bands", "smoothed",
            "gather", "gather_eased", "morph", "morph_eased", "material",
            "dust_material", "rotation", "dust_rotation", "group_offset",
            "bloom_strength",
        ]:
            assert key in frame
        assert frame["shape"] == "sphere"
        assert set(frame["bands"]) == {"bass", "mid", "high"}
        assert len(frame["material"]["rgb"]) == 3

    def test_precision(self, outputs):
        frame = FrameExporter(precision=2).build_manifest(outputs, fps=60)["frames"][3]
        assert frame["gather"] == round(outputs[3].gather, 2)

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            FrameExporter().build_manifest([], fps=60)

    def test_export_json(self, outputs, tmp_path):
        path = FrameExporter().export_json(outputs, 60, tmp_path / "manifest.json")
        with open(path) as f:
            data = json.load(f)
        assert data["metadata"]["n_frames"] == 10
        assert [fr["frame_index"] for fr in data["frames"]] == list(range(10))

    def test_export_numpy(self, outputs, tmp_path):
        path = FrameExporter().export_numpy(outputs, tmp_path / "positions.npz")
        with np.load(path) as data:
            assert data["positions"].shape == (10, 400, 3)
            assert data["dust_positions"].shape == (50, 3)
            assert data["rotation"].shape == (10, 3)
            assert data["group_offset"].shape == (10, 3)
            np.testing.assert_array_equal(data["positions"][-1], outputs[-1].positions)
