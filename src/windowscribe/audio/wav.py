from __future__ import annotations

import wave
from pathlib import Path

import numpy as np

SAMPLE_RATE = 16_000


def read_wav_mono_16k(audio_path: Path, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Read a mono 16 kHz PCM WAV file into float32 samples in [-1, 1]."""

    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    with wave.open(str(audio_path), "rb") as handle:
        channels = handle.getnchannels()
        frame_rate = handle.getframerate()
        sample_width = handle.getsampwidth()
        frames = handle.readframes(handle.getnframes())

    if channels != 1:
        raise ValueError(f"Expected mono WAV input, got channels={channels}")
    if frame_rate != sample_rate:
        raise ValueError(f"Expected {sample_rate}Hz WAV input, got {frame_rate}Hz")

    if sample_width == 1:
        waveform = np.frombuffer(frames, dtype=np.uint8).astype(np.float32)
        return (waveform - 128.0) / 128.0
    if sample_width == 2:
        waveform = np.frombuffer(frames, dtype=np.int16).astype(np.float32)
        return waveform / 32768.0
    if sample_width == 4:
        waveform = np.frombuffer(frames, dtype=np.int32).astype(np.float32)
        return waveform / 2147483648.0

    raise ValueError(f"Unsupported WAV sample width: {sample_width * 8} bits")
