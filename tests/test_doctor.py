from __future__ import annotations

from pathlib import Path

from windowscribe import doctor
from windowscribe.config import Settings


def _by_name(checks):
    return {check.name: check for check in checks}


def test_reports_cpu_only_chain_without_cuda(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(doctor, "cuda_device_count", lambda: 0)
    checks = _by_name(doctor.run_doctor(Settings(models_dir=tmp_path)))

    assert checks["Compute mode"].status == "warn"
    assert checks["Compute mode"].detail.endswith("cpu/int8")


def test_reports_gpu_chain_and_present_models(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(doctor, "cuda_device_count", lambda: 1)
    (tmp_path / "faster-whisper" / "small").mkdir(parents=True)
    checks = _by_name(doctor.run_doctor(Settings(models_dir=tmp_path)))

    assert checks["Compute mode"].status == "ok"
    assert "cuda/float16 -> cpu/int8" in checks["Compute mode"].detail
    assert checks["ASR model (small)"].status == "ok"
    assert checks["ASR model (large)"].status == "warn"
    assert "Default model" not in checks


def test_missing_default_model_fails(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(doctor, "cuda_device_count", lambda: 0)
    checks = _by_name(doctor.run_doctor(Settings(models_dir=tmp_path)))

    assert checks["Default model"].status == "fail"
