"""
Frequency band extraction and smoothing.

Reduces a byte spectrum (one magnitude per analyser bin, 0-255) to three
scalar energies and smooths them across frames so the particle cloud
breathes rather than flickers.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

MIN_SPECTRUM_BINS = 512

BASS_BINS = (0, 20)
MID_BINS = (20, 100)
HIGH_BINS = (100, 500)

BASS_CEILING = 2.0
MID_CEILING = 1.5
HIGH_CEILING = 1.5

# Bass weights fall linearly from 1.0 towards 0.5 across the band.
_BASS_WEIGHTS = 1.0 - np.arange(BASS_BINS[1] - BASS_BINS[0]) / 40.0
_BASS_WEIGHT_SUM = float(_BASS_WEIGHTS.sum())


@dataclass(frozen=True)
class BandEnergy:
    """Bass / mid / high energies for one frame."""

    bass: float = 0.0
    mid: float = 0.0
    high: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {"bass": self.bass, "mid": self.mid, "high": self.high}


SILENCE = BandEnergy()


def band_sums(spectrum: Optional[np.ndarray]) -> BandEnergy:
    """
    Raw (un-normalized) band sums of a spectrum sample.

    Args:
        spectrum: Byte magnitudes, at least 512 bins. ``None`` means silence.

    Returns:
        BandEnergy holding the weighted bass sum and plain mid/high sums.
    """
    if spectrum is None:
        return SILENCE
    data = np.asarray(spectrum, dtype=np.float64)
    if data.ndim != 1 or data.shape[0] < MIN_SPECTRUM_BINS:
        raise ValueError(
            f"Spectrum must be a 1-D buffer of at least {MIN_SPECTRUM_BINS} bins, "
            f"got shape {data.shape}"
        )
    bass = float(np.dot(data[BASS_BINS[0]:BASS_BINS[1]], _BASS_WEIGHTS))
    mid = float(data[MID_BINS[0]:MID_BINS[1]].sum())
    high = float(data[HIGH_BINS[0]:HIGH_BINS[1]].sum())
    return BandEnergy(bass, mid, high)


def extract_bands(
    spectrum: Optional[np.ndarray],
    sensitivity: float = 1.0,
    bass_boost: float = 1.0,
) -> BandEnergy:
    """
    Normalized, clamped band energies for one spectrum sample.

    Each sum is scaled by ``sensitivity`` and divided by its full-scale value
    (255 per bin, weighted for bass). Bass is then multiplied by
    ``bass_boost``; bass is clamped to 2.0 and mid/high to 1.5.
    """
    sums = band_sums(spectrum)
    bass = sums.bass * sensitivity / (_BASS_WEIGHT_SUM * 255.0)
    mid = sums.mid * sensitivity / ((MID_BINS[1] - MID_BINS[0]) * 255.0)
    high = sums.high * sensitivity / ((HIGH_BINS[1] - HIGH_BINS[0]) * 255.0)
    return BandEnergy(
        bass=min(max(bass * bass_boost, 0.0), BASS_CEILING),
        mid=min(max(mid, 0.0), MID_CEILING),
        high=min(max(high, 0.0), HIGH_CEILING),
    )


@dataclass(frozen=True)
class BandSmoother:
    """Per-band exponential moving average; bass reacts fastest."""

    bass_alpha: float = 0.4
    mid_alpha: float = 0.15
    high_alpha: float = 0.1

    @staticmethod
    def _lerp(current: float, target: float, factor: float) -> float:
        return current + (target - current) * factor

    def step(self, current: BandEnergy, target: BandEnergy) -> BandEnergy:
        """Move ``current`` one frame towards ``target``."""
        return BandEnergy(
            bass=self._lerp(current.bass, target.bass, self.bass_alpha),
            mid=self._lerp(current.mid, target.mid, self.mid_alpha),
            high=self._lerp(current.high, target.high, self.high_alpha),
        )
