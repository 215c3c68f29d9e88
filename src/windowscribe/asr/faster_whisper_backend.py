from __future__ import annotations

import math
from pathlib import Path

import numpy as np

from windowscribe.asr.base import RawChunkResult, WindowChunk


def cuda_device_count() -> int:
    try:
        import ctranslate2  # type: ignore

        return int(getattr(ctranslate2, "get_cuda_device_count", lambda: 0)())
    except Exception:
        return 0


def _safe_timestamp(value: object, fallback: float) -> float:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return fallback
    return max(0.0, float(value))


class FasterWhisperBackend:
    """faster-whisper model bound to a single device/compute type."""

    def __init__(self, model_path: Path, *, device: str, compute_type: str) -> None:
        if not model_path.exists():
            raise FileNotFoundError(
                f"Model path not found: {model_path}. "
                "Download manually and place it under ./models/faster-whisper/."
            )
        self.model_path = model_path
        self.device = device
        self.compute_type = compute_type
        self._model = self._whisper_model_class()(
            str(model_path),
            device=device,
            compute_type=compute_type,
            local_files_only=True,
        )

    @staticmethod
    def _whisper_model_class():
        try:
            from faster_whisper import WhisperModel  # type: ignore
        except Exception as exc:
            raise RuntimeError(
                "faster-whisper is not installed. Install project dependencies first."
            ) from exc

        return WhisperModel

    def transcribe(self, audio: np.ndarray, language: str | None = None) -> RawChunkResult:
        # Greedy decoding: one forward pass per window.
        segments_iter, _info = self._model.transcribe(
            audio,
            language=language,
            beam_size=1,
            temperature=0.0,
            condition_on_previous_text=False,
            vad_filter=False,
        )

        chunks: list[WindowChunk] = []
        texts: list[str] = []
        for item in segments_iter:
            text = item.text.strip()
            if not text:
                continue
            start = _safe_timestamp(item.start, 0.0)
            end = _safe_timestamp(item.end, start)
            chunks.append(WindowChunk(text=text, start=start, end=max(start, end)))
            texts.append(text)

        return RawChunkResult(text=" ".join(texts), chunks=chunks)
