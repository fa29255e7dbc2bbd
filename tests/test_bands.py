"""Tests for band extraction and smoothing."""

import numpy as np
import pytest

from sonosphere.core.bands import (
    SILENCE,
    BandEnergy,
    BandSmoother,
    band_sums,
    extract_bands,
)


class TestBandSums:
    def test_silence(self, silent_spectrum):
        assert band_sums(silent_spectrum) == BandEnergy(0.0, 0.0, 0.0)

    def test_none_is_silence(self):
        assert band_sums(None) == SILENCE

    def test_bass_weighting(self):
        spectrum = np.zeros(512, dtype=np.uint8)
        spectrum[0] = 100
        spectrum[19] = 100
        sums = band_sums(spectrum)
        assert sums.bass == pytest.approx(100 * 1.0 + 100 * (1.0 - 19 / 40))
        assert sums.mid == 0.0
        assert sums.high == 0.0

    def test_band_edges(self):
        spectrum = np.zeros(1024, dtype=np.uint8)
        spectrum[20] = 10
        spectrum[99] = 10
        spectrum[100] = 7
        spectrum[499] = 7
        spectrum[500] = 200  # beyond the high band
        sums = band_sums(spectrum)
        assert sums.bass == 0.0
        assert sums.mid == 20.0
        assert sums.high == 14.0

    def test_short_buffer_rejected(self):
        with pytest.raises(ValueError):
            band_sums(np.zeros(256, dtype=np.uint8))


class TestExtractBands:
    def test_full_scale_bass_is_unity(self, bass_spectrum):
        bands = extract_bands(bass_spectrum, sensitivity=1.0, bass_boost=1.0)
        assert bands.bass == pytest.approx(1.0)
        assert bands.mid == 0.0
        assert bands.high == 0.0

    def test_full_scale_mid_high(self, full_spectrum):
        bands = extract_bands(full_spectrum, sensitivity=1.0)
        assert bands.mid == pytest.approx(1.0)
        assert bands.high == pytest.approx(1.0)

    def test_sensitivity_scales(self, bass_spectrum):
        bands = extract_bands(bass_spectrum, sensitivity=0.5)
        assert bands.bass == pytest.approx(0.5)

    def test_ceilings(self, full_spectrum):
        bands = extract_bands(full_spectrum, sensitivity=3.0, bass_boost=3.0)
        assert bands.bass == pytest.approx(2.0)
        assert bands.mid == pytest.approx(1.5)
        assert bands.high == pytest.approx(1.5)

    def test_bass_boost(self, bass_spectrum):
        bands = extract_bands(bass_spectrum, sensitivity=1.0, bass_boost=1.5)
        assert bands.bass == pytest.approx(1.5)

    def test_silence_is_zero(self):
        assert extract_bands(None, sensitivity=2.0, bass_boost=3.0) == SILENCE


class TestBandSmoother:
    def test_single_step_uses_alphas(self):
        out = BandSmoother().step(SILENCE, BandEnergy(1.0, 1.0, 1.0))
        assert out.bass == pytest.approx(0.4)
        assert out.mid == pytest.approx(0.15)
        assert out.high == pytest.approx(0.1)

    def test_bass_reacts_fastest(self):
        out = BandSmoother().step(SILENCE, BandEnergy(1.0, 1.0, 1.0))
        assert out.bass > out.mid > out.high

    def test_converges_to_constant_target(self):
        smoother = BandSmoother()
        target = BandEnergy(1.2, 0.8, 0.5)
        value = SILENCE
        for _ in range(200):
            value = smoother.step(value, target)
        assert value.bass == pytest.approx(1.2, abs=1e-6)
        assert value.mid == pytest.approx(0.8, abs=1e-6)
        assert value.high == pytest.approx(0.5, abs=1e-6)

    def test_monotonic_decay(self):
        smoother = BandSmoother()
        value = BandEnergy(1.0, 1.0, 1.0)
        previous = value
        for _ in range(50):
            value = smoother.step(value, SILENCE)
            assert value.bass < previous.bass
            assert value.mid < previous.mid
            assert value.high < previous.high
            assert value.bass >= 0.0
            previous = value

    def test_bass_approaches_but_does_not_jump(self, bass_spectrum):
        target = extract_bands(bass_spectrum, sensitivity=1.0, bass_boost=1.0)
        smoother = BandSmoother()
        value = smoother.step(SILENCE, target)
        assert value.bass < target.bass
        values = [value.bass]
        for _ in range(10):
            value = smoother.step(value, target)
            values.append(value.bass)
        assert np.all(np.diff(values) > 0)
        assert values[-1] == pytest.approx(1.0, abs=0.01)
