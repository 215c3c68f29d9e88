from __future__ import annotations

from dataclasses import dataclass

from windowscribe.asr.adapter import backend_configs
from windowscribe.asr.faster_whisper_backend import cuda_device_count
from windowscribe.config import ASR_MODEL_ALIASES, Settings


@dataclass(slots=True)
class DoctorCheck:
    name: str
    status: str
    detail: str


def _detect_compute_mode(settings: Settings) -> DoctorCheck:
    count = cuda_device_count()
    configs = backend_configs(
        settings.device,
        gpu_compute_type=settings.gpu_compute_type,
        cpu_compute_type=settings.cpu_compute_type,
        cuda_devices=lambda: count,
    )
    chain = " -> ".join(config.label for config in configs)
    if count > 0:
        return DoctorCheck("Compute mode", "ok", f"CUDA devices: {count}; fallback chain: {chain}")
    if settings.device == "cuda":
        return DoctorCheck(
            "Compute mode",
            "warn",
            f"WINDOWSCRIBE_DEVICE=cuda but no CUDA device detected; fallback chain: {chain}",
        )
    return DoctorCheck("Compute mode", "warn", f"No CUDA device detected; fallback chain: {chain}")


def _check_faster_whisper() -> DoctorCheck:
    try:
        import faster_whisper  # type: ignore
    except Exception as exc:  # pragma: no cover - environment dependent
        return DoctorCheck("faster-whisper", "fail", f"Cannot import faster-whisper: {exc}")
    version = getattr(faster_whisper, "__version__", "unknown version")
    return DoctorCheck("faster-whisper", "ok", f"Installed ({version})")


def _check_model_paths(settings: Settings) -> list[DoctorCheck]:
    checks: list[DoctorCheck] = []
    for alias in ASR_MODEL_ALIASES:
        model_dir = settings.resolve_asr_model_path(alias)
        if model_dir.exists():
            checks.append(DoctorCheck(f"ASR model ({alias})", "ok", f"Found: {model_dir}"))
        else:
            checks.append(
                DoctorCheck(
                    f"ASR model ({alias})",
                    "warn",
                    f"Missing: {model_dir} (manual download required; no auto-download).",
                )
            )
    default_dir = settings.resolve_asr_model_path(settings.default_asr_model)
    if not default_dir.exists():
        checks.append(
            DoctorCheck(
                "Default model",
                "fail",
                f"Default model '{settings.default_asr_model}' is missing at {default_dir}",
            )
        )
    return checks


def run_doctor(settings: Settings) -> list[DoctorCheck]:
    checks = [_check_faster_whisper(), _detect_compute_mode(settings)]
    checks.extend(_check_model_paths(settings))
    return checks
