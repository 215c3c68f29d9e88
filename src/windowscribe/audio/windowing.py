from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class Window:
    data: np.ndarray
    offset_seconds: float


def _pad_to_min_length(samples: np.ndarray, min_samples: int) -> np.ndarray:
    if samples.shape[0] >= min_samples:
        return samples
    padded = np.zeros(min_samples, dtype=np.float32)
    padded[: samples.shape[0]] = samples
    return padded


def _window_sizes(
    sample_rate: int,
    window_length_s: float,
    stride_s: float,
    min_window_s: float,
) -> tuple[int, int, int]:
    window_samples = int(round(window_length_s * sample_rate))
    jump_samples = int(round((window_length_s - 2 * stride_s) * sample_rate))
    min_samples = int(round(min_window_s * sample_rate))
    if jump_samples <= 0:
        raise ValueError(
            f"Window length {window_length_s}s leaves no forward jump with stride {stride_s}s"
        )
    return window_samples, jump_samples, min_samples


def estimate_window_count(
    length: int,
    *,
    sample_rate: int = 16_000,
    window_length_s: float = 30.0,
    stride_s: float = 5.0,
) -> int:
    """Number of windows ``plan_windows`` yields for ``length`` samples."""

    window_samples, jump_samples, _ = _window_sizes(sample_rate, window_length_s, stride_s, 0.0)
    if length <= window_samples:
        return 1
    return math.ceil((length - window_samples) / jump_samples) + 1


def plan_windows(
    waveform: np.ndarray,
    *,
    sample_rate: int = 16_000,
    window_length_s: float = 30.0,
    stride_s: float = 5.0,
    min_window_s: float = 1.0,
) -> list[Window]:
    """Slice a waveform into overlapping windows advancing by ``length - 2 * stride``.

    Each window owns a copy of its samples. Windows shorter than ``min_window_s``
    are right-padded with silence, so an empty waveform still yields one window.
    """

    window_samples, jump_samples, min_samples = _window_sizes(
        sample_rate, window_length_s, stride_s, min_window_s
    )
    samples = np.asarray(waveform, dtype=np.float32).reshape(-1)
    length = samples.shape[0]

    windows: list[Window] = []
    offset = 0
    while True:
        end = min(offset + window_samples, length)
        data = _pad_to_min_length(samples[offset:end].copy(), min_samples)
        windows.append(Window(data=data, offset_seconds=offset / sample_rate))
        if end >= length:
            break
        offset += jump_samples
    return windows
