"""
Windowed transcription orchestrator.

Drives one transcription request through the phases

    idle -> loading-backend -> windowing -> processing(i/N) -> merging -> ready

with ``error`` and ``cancelled`` reachable from any non-terminal phase.

Threading model:
    - All bookkeeping runs on the asyncio event loop.
    - Backend initialization and per-window inference run on a single-worker
      ThreadPoolExecutor, so at most one call ever touches the model.

Cancellation is cooperative: ``cancel()`` (or submitting a newer request) bumps
the active request id, and every event of a job whose id no longer matches is
dropped. Backend calls already in flight run to completion and their output is
ignored.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import numpy as np

from windowscribe.asr.adapter import InferenceBackendAdapter
from windowscribe.asr.base import ActiveDevice, InferenceBackend, RawChunkResult, TranscriptSegment
from windowscribe.audio.windowing import Window, plan_windows
from windowscribe.config import Language, Settings, get_settings
from windowscribe.events import (
    CancelCommand,
    Command,
    ErrorEvent,
    Event,
    EventSink,
    LoadCommand,
    PartialEvent,
    ProgressEvent,
    ProgressPhase,
    ResultEvent,
    SegmentsEvent,
    Status,
    StatusEvent,
    TranscribeCommand,
)
from windowscribe.progress import ProgressEstimator
from windowscribe.text.normalize import collapse_repeated_ngrams
from windowscribe.transcript.merge import build_canonical_text, merge_segments

logger = logging.getLogger("windowscribe.orchestrator")


class Phase(str, Enum):
    IDLE = "idle"
    LOADING_BACKEND = "loading-backend"
    WINDOWING = "windowing"
    PROCESSING = "processing"
    MERGING = "merging"
    READY = "ready"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class TranscriptionJob:
    request_id: int
    language: Language = Language.AUTO
    phase: Phase = Phase.IDLE
    processed: int = 0
    total: int = 0
    window_texts: list[str] = field(default_factory=list)
    raw_segments: list[TranscriptSegment] = field(default_factory=list)
    skipped_windows: list[int] = field(default_factory=list)
    segments: list[TranscriptSegment] = field(default_factory=list)
    text: str = ""
    error: str | None = None


class TranscriptionOrchestrator:
    def __init__(
        self,
        adapter: InferenceBackendAdapter,
        emit: EventSink,
        *,
        settings: Settings | None = None,
        executor: ThreadPoolExecutor | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.adapter = adapter
        self.settings = settings or get_settings()
        self._sink = emit
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="windowscribe-backend"
        )
        self._clock = clock
        self._active_request_id = 0
        self._last_submitted_id = 0
        self._backend: InferenceBackend | None = None
        self._backend_init: asyncio.Future[InferenceBackend] | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_request_id(self) -> int:
        return self._active_request_id

    @property
    def active_device(self) -> ActiveDevice:
        return self.adapter.active_device

    def next_request_id(self) -> int:
        return max(self._active_request_id, self._last_submitted_id + 1)

    def cancel(self) -> None:
        self._active_request_id += 1
        logger.debug("Cancelled; active request id is now %d", self._active_request_id)

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def _is_active(self, job: TranscriptionJob) -> bool:
        return job.request_id == self._active_request_id

    def _emit(self, job: TranscriptionJob | None, event: Event) -> None:
        if job is not None and not self._is_active(job):
            logger.debug("Dropping stale %s for request %d", type(event).__name__, job.request_id)
            return
        self._sink(event)

    def _fail(self, job: TranscriptionJob | None, message: str) -> None:
        request_id = job.request_id if job is not None else None
        self._emit(job, StatusEvent(Status.ERROR, request_id=request_id, detail=message))
        self._emit(job, ErrorEvent(message, request_id=request_id))

    async def _ensure_backend(self, job: TranscriptionJob | None) -> InferenceBackend:
        if self._backend is not None:
            return self._backend

        request_id = job.request_id if job is not None else None
        if self._backend_init is None:
            self._emit(job, StatusEvent(Status.LOADING, request_id=request_id, detail="Initialising model"))
            loop = asyncio.get_running_loop()
            self._backend_init = loop.run_in_executor(self._executor, self.adapter.initialize)

        pending = self._backend_init
        try:
            backend = await pending
        except Exception:
            # Clear the memoized attempt so the next request retries from scratch.
            if self._backend_init is pending:
                self._backend_init = None
                self.adapter.reset()
            raise

        self._backend = backend
        device = self.adapter.active_device.value
        self._emit(
            job,
            StatusEvent(
                Status.READY,
                request_id=request_id,
                detail=f"Model ready ({device.upper()}).",
                device=device,
            ),
        )
        return backend

    async def load(self) -> bool:
        """Warm the backend without transcribing. Returns False if initialization failed."""

        try:
            await self._ensure_backend(None)
        except Exception as exc:
            logger.error("Backend initialization failed: %s", exc)
            self._fail(None, str(exc))
            return False
        return True

    def submit(
        self,
        request_id: int,
        audio: np.ndarray,
        language: Language = Language.AUTO,
    ) -> asyncio.Task[TranscriptionJob]:
        """Start a request; it supersedes (and thereby cancels) any earlier one."""

        if request_id <= self._last_submitted_id or request_id < self._active_request_id:
            raise ValueError(
                f"Request id {request_id} is stale (next usable id is {self.next_request_id()})"
            )
        self._last_submitted_id = request_id
        self._active_request_id = request_id
        job = TranscriptionJob(request_id=request_id, language=language)
        return self._track(asyncio.get_running_loop().create_task(self._run(job, audio)))

    async def transcribe(
        self,
        request_id: int,
        audio: np.ndarray,
        language: Language = Language.AUTO,
    ) -> TranscriptionJob:
        return await self.submit(request_id, audio, language)

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def serve(self, commands: asyncio.Queue[Command | None]) -> None:
        """Consume commands until a ``None`` sentinel, then wait for running jobs.

        Loads and transcriptions run as background tasks so a queued cancel is
        seen immediately. A rejected command is reported as an ``ErrorEvent``
        and the loop keeps going.
        """

        while True:
            command = await commands.get()
            if command is None:
                break
            try:
                self._dispatch(command)
            except (TypeError, ValueError) as exc:
                request_id = getattr(command, "request_id", None)
                logger.warning("Rejected command %s: %s", type(command).__name__, exc)
                self._sink(ErrorEvent(str(exc), request_id=request_id))

        if self._tasks:
            await asyncio.gather(*self._tasks)

    def _dispatch(self, command: Command) -> None:
        if isinstance(command, CancelCommand):
            self.cancel()
        elif isinstance(command, LoadCommand):
            self._track(asyncio.get_running_loop().create_task(self.load()))
        elif isinstance(command, TranscribeCommand):
            self.submit(command.request_id, command.audio, command.language)
        else:
            raise TypeError(f"Unsupported command: {command!r}")

    def _cancelled(self, job: TranscriptionJob) -> bool:
        if self._is_active(job):
            return False
        if job.phase not in (Phase.READY, Phase.ERROR):
            logger.info("Request %d cancelled during %s", job.request_id, job.phase.value)
            job.phase = Phase.CANCELLED
        return True

    async def _run(self, job: TranscriptionJob, audio: np.ndarray) -> TranscriptionJob:
        try:
            return await self._process(job, audio)
        except Exception as exc:
            logger.exception("Request %d failed", job.request_id)
            job.error = str(exc)
            if self._cancelled(job):
                return job
            job.phase = Phase.ERROR
            self._fail(job, job.error)
            return job

    async def _process(self, job: TranscriptionJob, audio: np.ndarray) -> TranscriptionJob:
        settings = self.settings

        if self._backend is None:
            job.phase = Phase.LOADING_BACKEND
        await self._ensure_backend(job)
        if self._cancelled(job):
            return job

        self._emit(
            job,
            StatusEvent(Status.TRANSCRIBING, request_id=job.request_id, device=self.active_device.value),
        )

        job.phase = Phase.WINDOWING
        windows = plan_windows(
            audio,
            sample_rate=settings.sample_rate,
            window_length_s=settings.window_length_s,
            stride_s=settings.stride_s,
            min_window_s=settings.min_window_s,
        )
        job.total = len(windows)
        estimator = ProgressEstimator(job.total, clock=self._clock)
        self._emit(
            job,
            ProgressEvent(
                ProgressPhase.TRANSCRIBING,
                percent=0.0,
                request_id=job.request_id,
                processed=0,
                total=job.total,
            ),
        )
        estimator.start()

        job.phase = Phase.PROCESSING
        for index, window in enumerate(windows):
            if self._cancelled(job):
                return job

            result = await self._invoke_window(job, index, window)
            if self._cancelled(job):
                return job
            if result is not None:
                self._collect(job, window, result)

            job.processed = index + 1
            estimator.update(job.processed)
            self._emit(
                job,
                ProgressEvent(
                    ProgressPhase.TRANSCRIBING,
                    percent=estimator.percent,
                    request_id=job.request_id,
                    processed=job.processed,
                    total=job.total,
                    eta_seconds=estimator.eta_seconds(),
                ),
            )

        job.phase = Phase.MERGING
        self._merge(job)

        job.phase = Phase.READY
        self._emit(job, SegmentsEvent(job.request_id, job.text, list(job.segments)))
        self._emit(job, ResultEvent(job.request_id, job.text))
        self._emit(job, StatusEvent(Status.READY, request_id=job.request_id))
        logger.info(
            "Request %d done: %d windows, %d skipped, %d segments",
            job.request_id,
            job.total,
            len(job.skipped_windows),
            len(job.segments),
        )
        return job

    async def _invoke_window(
        self, job: TranscriptionJob, index: int, window: Window
    ) -> RawChunkResult | None:
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                self._executor, self.adapter.invoke, window, job.language.code
            )
        except Exception as exc:
            logger.warning("Window %d/%d failed, skipping: %s", index + 1, job.total, exc)
            job.skipped_windows.append(index)
            return None

        if not isinstance(result, RawChunkResult) or result.is_empty:
            logger.warning("Window %d/%d produced no tokens, skipping", index + 1, job.total)
            job.skipped_windows.append(index)
            return None
        return result

    def _collapse(self, text: str) -> str:
        return collapse_repeated_ngrams(
            text,
            max_gram_size=self.settings.max_gram_size,
            min_gram_size=self.settings.min_gram_size,
            min_words=self.settings.min_words,
        )

    def _collect(self, job: TranscriptionJob, window: Window, result: RawChunkResult) -> None:
        offset = window.offset_seconds
        for chunk in result.chunks:
            text = chunk.text.strip()
            if not text:
                continue
            start = max(0.0, chunk.start)
            end = max(start, chunk.end)
            job.raw_segments.append(TranscriptSegment(text=text, start=start + offset, end=end + offset))

        window_text = self._collapse(result.text)
        if window_text:
            job.window_texts.append(window_text)
            self._emit(job, PartialEvent(job.request_id, " ".join(job.window_texts)))

    def _merge(self, job: TranscriptionJob) -> None:
        settings = self.settings
        collapse_options = {
            "max_gram_size": settings.max_gram_size,
            "min_gram_size": settings.min_gram_size,
            "min_words": settings.min_words,
        }
        segments = merge_segments(job.raw_segments, epsilon_s=settings.merge_epsilon_s, **collapse_options)
        fallback_text = " ".join(job.window_texts)

        # Backends that return text without timestamps still get one segment.
        full_text = self._collapse(fallback_text)
        if not segments and full_text:
            segments = [TranscriptSegment(text=full_text, start=0.0, end=0.0)]

        job.segments = segments
        job.text = build_canonical_text(segments, fallback_text, **collapse_options)
