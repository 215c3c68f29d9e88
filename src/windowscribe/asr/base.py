from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

import numpy as np


@dataclass(slots=True)
class TranscriptSegment:
    text: str
    start: float
    end: float

    def to_dict(self) -> dict[str, float | str]:
        return {"text": self.text, "start": self.start, "end": self.end}


@dataclass(frozen=True, slots=True)
class WindowChunk:
    """Timestamped text with offsets relative to the start of its window."""

    text: str
    start: float
    end: float


@dataclass(slots=True)
class RawChunkResult:
    text: str
    chunks: list[WindowChunk] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not self.chunks


class ActiveDevice(str, Enum):
    GPU = "gpu"
    CPU = "cpu"
    UNKNOWN = "unknown"

    @classmethod
    def from_device_name(cls, device: str | None) -> "ActiveDevice":
        if device == "cuda":
            return cls.GPU
        if device == "cpu":
            return cls.CPU
        return cls.UNKNOWN


class InferenceBackend(Protocol):
    def transcribe(self, audio: np.ndarray, language: str | None = None) -> RawChunkResult:
        """Transcribe one bounded window of 16 kHz float32 samples."""
