from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from windowscribe.asr.base import ActiveDevice, InferenceBackend, RawChunkResult
from windowscribe.asr.faster_whisper_backend import FasterWhisperBackend, cuda_device_count
from windowscribe.audio.windowing import Window
from windowscribe.config import Settings

logger = logging.getLogger("windowscribe.asr")

BackendFactory = Callable[..., InferenceBackend]


class BackendInitError(RuntimeError):
    """Raised when every backend configuration failed to initialize."""

    def __init__(self, attempts: list["InitAttempt"]) -> None:
        self.attempts = attempts
        tried = ", ".join(attempt.config.label for attempt in attempts) or "none"
        details = " | ".join(f"{attempt.config.label}: {attempt.error}" for attempt in attempts)
        super().__init__(
            f"Failed to initialize inference backend. Tried: {tried}. Errors: {details}"
        )


@dataclass(frozen=True, slots=True)
class BackendConfig:
    device: str
    compute_type: str

    @property
    def label(self) -> str:
        return f"{self.device}/{self.compute_type}"


@dataclass(slots=True)
class InitAttempt:
    config: BackendConfig
    backend: InferenceBackend | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.backend is not None


def backend_configs(
    device: str = "auto",
    *,
    gpu_compute_type: str = "float16",
    cpu_compute_type: str = "int8",
    cuda_devices: Callable[[], int] = cuda_device_count,
) -> list[BackendConfig]:
    """Ordered configurations to try: GPU first when wanted, CPU always last."""

    normalized = device.strip().lower()
    configs: list[BackendConfig] = []
    if normalized == "cuda" or (normalized == "auto" and cuda_devices() > 0):
        configs.append(BackendConfig("cuda", gpu_compute_type))
    configs.append(BackendConfig("cpu", cpu_compute_type))
    return configs


class InferenceBackendAdapter:
    """Builds a backend from an ordered fallback chain and runs windows through it."""

    def __init__(
        self,
        model_path: Path,
        configs: list[BackendConfig],
        *,
        backend_factory: BackendFactory = FasterWhisperBackend,
    ) -> None:
        if not configs:
            raise ValueError("At least one backend configuration is required")
        self.model_path = model_path
        self.configs = list(configs)
        self._backend_factory = backend_factory
        self._backend: InferenceBackend | None = None
        self._active: BackendConfig | None = None

    @classmethod
    def from_settings(cls, settings: Settings, model_name: str | None = None) -> "InferenceBackendAdapter":
        model_path = settings.resolve_asr_model_path(model_name or settings.default_asr_model)
        configs = backend_configs(
            settings.device,
            gpu_compute_type=settings.gpu_compute_type,
            cpu_compute_type=settings.cpu_compute_type,
        )
        return cls(model_path, configs)

    @property
    def active_device(self) -> ActiveDevice:
        if self._active is None:
            return ActiveDevice.UNKNOWN
        return ActiveDevice.from_device_name(self._active.device)

    @property
    def active_config(self) -> BackendConfig | None:
        return self._active

    def _attempt(self, config: BackendConfig) -> InitAttempt:
        try:
            backend = self._backend_factory(
                self.model_path,
                device=config.device,
                compute_type=config.compute_type,
            )
        except Exception as exc:
            return InitAttempt(config=config, error=str(exc) or exc.__class__.__name__)
        return InitAttempt(config=config, backend=backend)

    def initialize(self) -> InferenceBackend:
        """Try each configuration in order; the first success becomes the active backend."""

        if self._backend is not None:
            return self._backend

        attempts: list[InitAttempt] = []
        for config in self.configs:
            logger.debug("Initializing backend %s from %s", config.label, self.model_path)
            attempt = self._attempt(config)
            attempts.append(attempt)
            if attempt.ok:
                self._backend = attempt.backend
                self._active = config
                logger.info("Backend ready on %s", config.label)
                return attempt.backend
            logger.warning("Backend %s unavailable, falling back: %s", config.label, attempt.error)

        raise BackendInitError(attempts)

    def reset(self) -> None:
        self._backend = None
        self._active = None

    def invoke(self, window: Window, language: str | None = None) -> RawChunkResult:
        if self._backend is None:
            raise RuntimeError("Backend is not initialized. Call initialize() first.")
        return self._backend.transcribe(window.data, language=language)
