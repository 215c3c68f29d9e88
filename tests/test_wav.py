from __future__ import annotations

import wave
from pathlib import Path

import numpy as np
import pytest

from windowscribe.audio.wav import read_wav_mono_16k


def _write_wav(path: Path, data: np.ndarray, *, sample_rate: int = 16000, channels: int = 1) -> None:
    with wave.open(str(path), "wb") as handle:
        handle.setnchannels(channels)
        handle.setsampwidth(2)
        handle.setframerate(sample_rate)
        handle.writeframes(data.astype(np.int16).tobytes())


def test_reads_pcm16_as_float(tmp_path: Path) -> None:
    wav_path = tmp_path / "audio.wav"
    _write_wav(wav_path, np.array([0, 16384, -32768], dtype=np.int16))

    waveform = read_wav_mono_16k(wav_path)

    assert waveform.dtype == np.float32
    assert waveform.tolist() == [0.0, 0.5, -1.0]


def test_rejects_stereo(tmp_path: Path) -> None:
    wav_path = tmp_path / "stereo.wav"
    _write_wav(wav_path, np.zeros(200, dtype=np.int16), channels=2)

    with pytest.raises(ValueError, match="mono"):
        read_wav_mono_16k(wav_path)


def test_rejects_other_sample_rates(tmp_path: Path) -> None:
    wav_path = tmp_path / "8k.wav"
    _write_wav(wav_path, np.zeros(100, dtype=np.int16), sample_rate=8000)

    with pytest.raises(ValueError, match="16000Hz"):
        read_wav_mono_16k(wav_path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_wav_mono_16k(tmp_path / "missing.wav")
