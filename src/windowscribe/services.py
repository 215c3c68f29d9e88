from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from windowscribe.asr.adapter import InferenceBackendAdapter
from windowscribe.asr.base import TranscriptSegment
from windowscribe.audio.wav import read_wav_mono_16k
from windowscribe.config import ASR_MODEL_ALIASES, Settings, get_settings, parse_language
from windowscribe.events import Event, EventSink
from windowscribe.orchestrator import Phase, TranscriptionOrchestrator


@dataclass(slots=True)
class TranscriptionOutcome:
    request_id: int
    text: str
    segments: list[TranscriptSegment]
    device: str
    window_count: int
    skipped_windows: list[int]


def _ignore_event(event: Event) -> None:
    return None


class TranscriptionService:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_adapter(self, model_name: str) -> InferenceBackendAdapter:
        model_path = self.settings.resolve_asr_model_path(model_name)
        if not model_path.exists():
            installed = [
                alias
                for alias in ASR_MODEL_ALIASES
                if self.settings.resolve_asr_model_path(alias).exists()
            ]
            raise FileNotFoundError(
                f"ASR model '{model_name}' is not installed (expected {model_path}). "
                f"Installed models: {', '.join(installed) or 'none'}.\n"
                "windowscribe will not auto-download models. Download manually or set "
                "WINDOWSCRIBE_MODELS_DIR, then rerun."
            )
        return InferenceBackendAdapter.from_settings(self.settings, model_name)

    def transcribe_waveform(
        self,
        waveform: np.ndarray,
        *,
        adapter: InferenceBackendAdapter,
        language: str = "auto",
        on_event: EventSink | None = None,
    ) -> TranscriptionOutcome:
        language_hint = parse_language(language)
        sink = on_event or _ignore_event

        async def _run() -> TranscriptionOutcome:
            orchestrator = TranscriptionOrchestrator(adapter, sink, settings=self.settings)
            try:
                job = await orchestrator.transcribe(orchestrator.next_request_id(), waveform, language_hint)
            finally:
                orchestrator.close()
            if job.phase is not Phase.READY:
                raise RuntimeError(job.error or f"Transcription ended in phase '{job.phase.value}'")
            return TranscriptionOutcome(
                request_id=job.request_id,
                text=job.text,
                segments=job.segments,
                device=adapter.active_device.value,
                window_count=job.total,
                skipped_windows=list(job.skipped_windows),
            )

        return asyncio.run(_run())

    def transcribe_file(
        self,
        audio_file: Path,
        *,
        model_name: str,
        language: str,
        on_event: EventSink | None = None,
    ) -> TranscriptionOutcome:
        if not audio_file.exists():
            raise FileNotFoundError(f"Input audio file does not exist: {audio_file}")

        waveform = read_wav_mono_16k(audio_file, sample_rate=self.settings.sample_rate)
        adapter = self.build_adapter(model_name)
        return self.transcribe_waveform(waveform, adapter=adapter, language=language, on_event=on_event)
