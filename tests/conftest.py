"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from sonosphere.core.settings import Settings
from sonosphere.engine import EngineConfig

# Default sample rate for test audio
TEST_SR = 44100
N_BINS = 1024


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def silent_spectrum() -> np.ndarray:
    return np.zeros(N_BINS, dtype=np.uint8)


@pytest.fixture
def bass_spectrum() -> np.ndarray:
    """Bins [0, 20) at full scale, everything else silent."""
    spectrum = np.zeros(N_BINS, dtype=np.uint8)
    spectrum[:20] = 255
    return spectrum


@pytest.fixture
def full_spectrum() -> np.ndarray:
    return np.full(N_BINS, 255, dtype=np.uint8)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def small_config() -> EngineConfig:
    """Small particle budget so multi-second runs stay fast."""
    return EngineConfig(particle_count=400, dust_count=50)


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a pure 440Hz sine wave (A4 note).

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0  # 2 seconds
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    frequency = 440.0  # A4
    y = 0.5 * np.sin(2 * np.pi * frequency * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def low_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """60Hz sine: lands in the bass bins of a 2048-point analyser."""
    duration = 1.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    y = 0.8 * np.sin(2 * np.pi * 60.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path
