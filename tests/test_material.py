"""Tests for main-cloud material parameters."""

import pytest

from sonosphere.core.material import MaterialParams, main_material


class TestMainMaterial:
    def test_scattered_silence(self):
        m = main_material(0.6, 0.0, 0.0, 1.0, True)
        assert m.hue == pytest.approx(0.6)
        assert m.lightness == pytest.approx(0.4)
        assert m.opacity == pytest.approx(0.4)
        assert m.size == pytest.approx(0.15)
        assert m.texture == "glow"

    def test_gathered_bass(self):
        m = main_material(0.6, 1.0, 1.0, 2.0, True)
        assert m.hue == pytest.approx(0.75)
        assert m.lightness == pytest.approx(0.8)
        assert m.opacity == pytest.approx(0.8)
        assert m.size == pytest.approx((0.3 + 0.15) * 2.0)

    def test_lightness_clamped(self):
        m = main_material(0.0, 2.0, 1.0, 1.0, True)
        assert m.lightness == 1.0

    def test_hue_wraps(self):
        m = main_material(0.95, 1.0, 1.0, 1.0, True)
        assert 0.0 <= m.hue < 1.0
        assert m.hue == pytest.approx(0.1)

    def test_dot_texture(self):
        m = main_material(0.6, 0.0, 1.0, 1.0, False)
        assert m.texture == "dot"
        assert m.size == pytest.approx(0.12)


class TestMaterialParams:
    def test_rgb(self):
        red = MaterialParams(hue=0.0, saturation=1.0, lightness=0.5, size=1.0, opacity=1.0)
        assert red.rgb == pytest.approx((1.0, 0.0, 0.0))

    def test_as_dict(self):
        data = MaterialParams(0.5, 0.8, 0.4, 0.3, 0.6).as_dict()
        assert data["texture"] == "glow"
        assert len(data["rgb"]) == 3
