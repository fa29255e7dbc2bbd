"""
Audio analysis providers.

The engine only needs a byte spectrum per tick plus two flags. Sources here
follow the browser analyser-node contract: ``fill_frequency_data(buffer)``
writes magnitudes 0-255 (one per bin) and silence is an all-zero buffer,
never an error.
"""

import abc
from pathlib import Path
from typing import Optional, Sequence, Union

import librosa
import numpy as np
from scipy import signal as scipy_signal

DEFAULT_SAMPLE_RATE = 44100


class AudioSource(abc.ABC):
    """Minimal contract the particle engine samples once per tick."""

    is_playing: bool = False
    has_been_activated: bool = False

    @abc.abstractmethod
    def fill_frequency_data(self, buffer: np.ndarray):
        """Write the latest byte spectrum into ``buffer`` in place."""
        pass

    def advance(self, dt: float):
        """Move playback forward by ``dt`` seconds (no-op by default)."""
        pass


class SilentSource(AudioSource):
    """No audio at all; optionally marked as activated by the user."""

    def __init__(self, activated: bool = True):
        self.is_playing = False
        self.has_been_activated = activated

    def fill_frequency_data(self, buffer: np.ndarray):
        buffer[:] = 0


class FixedSpectrumSource(AudioSource):
    """
    Replays pre-computed spectra, one per ``advance`` call.

    The last spectrum is held once the sequence is exhausted.
    """

    def __init__(
        self,
        spectra: Union[np.ndarray, Sequence[np.ndarray]],
        is_playing: bool = True,
        has_been_activated: bool = True,
    ):
        frames = np.asarray(spectra, dtype=np.uint8)
        if frames.ndim == 1:
            frames = frames[None, :]
        self.frames = frames
        self.index = 0
        self.is_playing = is_playing
        self.has_been_activated = has_been_activated

    def fill_frequency_data(self, buffer: np.ndarray):
        spectrum = self.frames[min(self.index, len(self.frames) - 1)]
        n = min(len(buffer), len(spectrum))
        buffer[:] = 0
        buffer[:n] = spectrum[:n]

    def advance(self, dt: float):
        self.index += 1


class SpectrumAnalyser:
    """
    Byte spectrum with analyser-node semantics.

    Blackman window, magnitude smoothing across calls, then decibels mapped
    linearly from ``[min_decibels, max_decibels]`` onto 0-255.
    """

    def __init__(
        self,
        fft_size: int = 2048,
        smoothing_time_constant: float = 0.85,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0,
    ):
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if not 0.0 <= smoothing_time_constant <= 1.0:
            raise ValueError("smoothing_time_constant must be in [0, 1]")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be below max_decibels")
        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        # Periodic window, as the analyser node uses
        self._window = scipy_signal.get_window("blackman", fft_size, fftbins=True)
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self):
        self._smoothed[:] = 0.0

    def analyse(self, block: np.ndarray) -> np.ndarray:
        """
        Spectrum of the most recent ``fft_size`` samples of ``block``.

        Shorter blocks are zero-padded at the front.

        Returns:
            uint8 array of ``frequency_bin_count`` magnitudes.
        """
        block = np.asarray(block, dtype=np.float64)
        frame = np.zeros(self.fft_size, dtype=np.float64)
        tail = block[-self.fft_size:]
        if len(tail):
            frame[-len(tail):] = tail

        spectrum = np.fft.rfft(frame * self._window)[: self.frequency_bin_count]
        magnitude = np.abs(spectrum) / self.fft_size
        tau = self.smoothing_time_constant
        self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitude

        with np.errstate(divide="ignore"):
            db = 20.0 * np.log10(self._smoothed)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.floor((db - self.min_decibels) * scale)
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)


class AudioFileSource(AudioSource):
    """
    Offline playback of a decoded signal with a seekable cursor.

    The host advances the cursor once per tick; each spectrum covers the
    analyser window ending at the cursor.
    """

    def __init__(
        self,
        samples: np.ndarray,
        sample_rate: int,
        analyser: Optional[SpectrumAnalyser] = None,
    ):
        self.samples = np.asarray(samples, dtype=np.float32)
        self.sample_rate = int(sample_rate)
        self.analyser = analyser or SpectrumAnalyser()
        self.cursor = 0.0
        self.has_been_activated = True

    @classmethod
    def load(
        cls,
        audio_path: Union[str, Path],
        sr: int = DEFAULT_SAMPLE_RATE,
        analyser: Optional[SpectrumAnalyser] = None,
    ) -> "AudioFileSource":
        """Decode an audio file to mono at ``sr`` with librosa."""
        audio_path = Path(audio_path)
        if not audio_path.exists():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")
        y, sr_out = librosa.load(audio_path, sr=sr, mono=True)
        return cls(y, sr_out, analyser)

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    @property
    def is_playing(self) -> bool:
        return self.cursor < self.duration

    def seek(self, seconds: float):
        self.cursor = min(max(float(seconds), 0.0), self.duration)

    def advance(self, dt: float):
        self.seek(self.cursor + dt)

    def fill_frequency_data(self, buffer: np.ndarray):
        if not self.is_playing:
            buffer[:] = 0
            return
        end = int(round(self.cursor * self.sample_rate))
        start = max(0, end - self.analyser.fft_size)
        spectrum = self.analyser.analyse(self.samples[start:end])
        n = min(len(buffer), len(spectrum))
        buffer[:] = 0
        buffer[:n] = spectrum[:n]
