from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest

from windowscribe.asr.faster_whisper_backend import FasterWhisperBackend


def _patch_model(monkeypatch, model_class) -> None:
    monkeypatch.setattr(
        FasterWhisperBackend,
        "_whisper_model_class",
        staticmethod(lambda: model_class),
    )


def test_model_is_bound_to_requested_device(monkeypatch, tmp_path: Path) -> None:
    model_dir = tmp_path / "model"
    model_dir.mkdir()
    calls: list[tuple[str, str, bool]] = []

    class FakeWhisperModel:
        def __init__(self, model_path: str, *, device: str, compute_type: str, local_files_only: bool):
            calls.append((device, compute_type, local_files_only))

    _patch_model(monkeypatch, FakeWhisperModel)
    backend = FasterWhisperBackend(model_dir, device="cuda", compute_type="float16")

    assert calls == [("cuda", "float16", True)]
    assert backend.device == "cuda"


def test_init_error_propagates(monkeypatch, tmp_path: Path) -> None:
    model_dir = tmp_path / "model"
    model_dir.mkdir()

    class FakeWhisperModel:
        def __init__(self, model_path: str, *, device: str, compute_type: str, local_files_only: bool):
            raise RuntimeError("cublas missing")

    _patch_model(monkeypatch, FakeWhisperModel)

    with pytest.raises(RuntimeError, match="cublas missing"):
        FasterWhisperBackend(model_dir, device="cuda", compute_type="float16")


def test_missing_model_dir_is_reported(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Model path not found"):
        FasterWhisperBackend(tmp_path / "absent", device="cpu", compute_type="int8")


def test_transcribe_maps_segments_to_window_chunks(monkeypatch, tmp_path: Path) -> None:
    model_dir = tmp_path / "model"
    model_dir.mkdir()
    seen: dict[str, object] = {}

    class FakeWhisperModel:
        def __init__(self, model_path: str, **kwargs):
            pass

        def transcribe(self, audio, **kwargs):
            seen["audio"] = audio
            seen["kwargs"] = kwargs
            segments = [
                SimpleNamespace(text=" Hello ", start=0.0, end=1.2),
                SimpleNamespace(text="   ", start=1.2, end=1.4),
                SimpleNamespace(text="world", start=1.4, end=None),
            ]
            return iter(segments), SimpleNamespace(language="en")

    _patch_model(monkeypatch, FakeWhisperModel)
    backend = FasterWhisperBackend(model_dir, device="cpu", compute_type="int8")
    audio = np.zeros(16_000, dtype=np.float32)
    result = backend.transcribe(audio, language="en")

    assert result.text == "Hello world"
    assert [(chunk.text, chunk.start, chunk.end) for chunk in result.chunks] == [
        ("Hello", 0.0, 1.2),
        ("world", 1.4, 1.4),
    ]
    assert seen["audio"] is audio
    kwargs = seen["kwargs"]
    assert isinstance(kwargs, dict)
    assert kwargs["language"] == "en"
    assert kwargs["beam_size"] == 1
    assert kwargs["condition_on_previous_text"] is False
