"""Typed commands consumed by and events produced by the orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Union

import numpy as np

from windowscribe.asr.base import TranscriptSegment
from windowscribe.config import Language


class Status(str, Enum):
    LOADING = "loading"
    TRANSCRIBING = "transcribing"
    READY = "ready"
    ERROR = "error"


class ProgressPhase(str, Enum):
    DOWNLOAD = "download"
    TRANSCRIBING = "transcribing"


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True, slots=True)
class StatusEvent:
    status: Status
    request_id: int | None = None
    detail: str | None = None
    device: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"type": "status", **asdict(self), "status": self.status.value})


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    phase: ProgressPhase
    percent: float
    request_id: int | None = None
    processed: int | None = None
    total: int | None = None
    eta_seconds: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"type": "progress", **asdict(self), "phase": self.phase.value})


@dataclass(frozen=True, slots=True)
class PartialEvent:
    request_id: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "partial", "request_id": self.request_id, "text": self.text}


@dataclass(frozen=True, slots=True)
class SegmentsEvent:
    request_id: int
    text: str
    segments: list[TranscriptSegment] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "segments",
            "request_id": self.request_id,
            "text": self.text,
            "segments": [segment.to_dict() for segment in self.segments],
        }


@dataclass(frozen=True, slots=True)
class ResultEvent:
    request_id: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "result", "request_id": self.request_id, "text": self.text}


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    message: str
    request_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"type": "error", "message": self.message, "request_id": self.request_id})


Event = Union[StatusEvent, ProgressEvent, PartialEvent, SegmentsEvent, ResultEvent, ErrorEvent]
EventSink = Callable[[Event], None]


@dataclass(frozen=True, slots=True)
class TranscribeCommand:
    request_id: int
    audio: np.ndarray
    language: Language = Language.AUTO


@dataclass(frozen=True, slots=True)
class CancelCommand:
    pass


@dataclass(frozen=True, slots=True)
class LoadCommand:
    pass


Command = Union[TranscribeCommand, CancelCommand, LoadCommand]
