"""Shared fixtures for mpm_pitch tests."""

import pytest
import numpy as np


SAMPLE_RATE = 44100


def make_sine(frequency, n_samples, sample_rate=SAMPLE_RATE, amplitude=1.0, phase=0.0):
    """Synthesize a pure tone."""
    t = np.arange(n_samples) / sample_rate
    return amplitude * np.sin(2 * np.pi * frequency * t + phase)


def make_harmonic(frequency, n_samples, amplitudes, sample_rate=SAMPLE_RATE):
    """Synthesize a tone with harmonics (amplitudes[0] is the fundamental)."""
    t = np.arange(n_samples) / sample_rate
    x = np.zeros(n_samples)
    for i, amplitude in enumerate(amplitudes):
        x += amplitude * np.sin(2 * np.pi * frequency * (i + 1) * t)
    return x


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(12345)


@pytest.fixture
def sine_220():
    """220 Hz tone, 4096 samples at 44.1 kHz."""
    return make_sine(220.0, 4096)


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Run without config files or MPM_PITCH_* variables from the host."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("MPM_PITCH_THRESHOLD", raising=False)
    monkeypatch.delenv("MPM_PITCH_MAX_LAG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
