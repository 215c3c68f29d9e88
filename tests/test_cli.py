from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from windowscribe import cli
from windowscribe.asr.base import TranscriptSegment
from windowscribe.doctor import DoctorCheck
from windowscribe.services import TranscriptionOutcome, TranscriptionService

runner = CliRunner()


def test_format_timestamp() -> None:
    assert cli.format_timestamp(0.0) == "00:00"
    assert cli.format_timestamp(65.9) == "01:05"
    assert cli.format_timestamp(3723.0) == "01:02:03"


def test_format_eta() -> None:
    assert cli.format_eta(None) == "ETA unknown"
    assert cli.format_eta(42) == "ETA 00:42"


def test_transcribe_prints_text_and_segments(monkeypatch, tmp_path: Path) -> None:
    audio = tmp_path / "talk.wav"
    audio.write_bytes(b"RIFF")

    def fake_transcribe_file(self, audio_file, *, model_name, language, on_event=None):
        assert audio_file == audio
        assert (model_name, language) == ("small", "english")
        return TranscriptionOutcome(
            request_id=1,
            text="hello there",
            segments=[TranscriptSegment("hello there", 0.0, 1.5)],
            device="cpu",
            window_count=2,
            skipped_windows=[1],
        )

    monkeypatch.setattr(TranscriptionService, "transcribe_file", fake_transcribe_file)
    result = runner.invoke(cli.app, ["transcribe", str(audio), "--language", "english"])

    assert result.exit_code == 0, result.output
    assert "hello there" in result.output
    assert "1 skipped" in result.output


def test_transcribe_failure_exits_with_code_2(monkeypatch, tmp_path: Path) -> None:
    audio = tmp_path / "talk.wav"
    audio.write_bytes(b"RIFF")

    def failing_transcribe_file(self, audio_file, **kwargs):
        raise RuntimeError("Failed to initialize inference backend")

    monkeypatch.setattr(TranscriptionService, "transcribe_file", failing_transcribe_file)
    result = runner.invoke(cli.app, ["transcribe", str(audio)])

    assert result.exit_code == 2
    assert "transcribe failed" in result.output


def test_doctor_exit_code_reflects_failures(monkeypatch) -> None:
    monkeypatch.setattr(
        cli,
        "run_doctor",
        lambda settings: [DoctorCheck("faster-whisper", "ok", "Installed"), DoctorCheck("Default model", "fail", "missing")],
    )
    result = runner.invoke(cli.app, ["doctor"])

    assert result.exit_code == 1
    assert "Default model" in result.output


def test_transcribe_device_override_reaches_service(monkeypatch, tmp_path: Path) -> None:
    audio = tmp_path / "talk.wav"
    audio.write_bytes(b"RIFF")
    seen: list[str] = []

    def fake_transcribe_file(self, audio_file, **kwargs):
        seen.append(self.settings.device)
        return TranscriptionOutcome(1, "ok", [], "cpu", 1, [])

    monkeypatch.setattr(TranscriptionService, "transcribe_file", fake_transcribe_file)
    result = runner.invoke(cli.app, ["transcribe", str(audio), "--device", "cpu"])

    assert result.exit_code == 0, result.output
    assert seen == ["cpu"]


def test_transcribe_rejects_unknown_device(tmp_path: Path) -> None:
    audio = tmp_path / "talk.wav"
    audio.write_bytes(b"RIFF")

    result = runner.invoke(cli.app, ["transcribe", str(audio), "--device", "tpu"])

    assert result.exit_code == 2
    assert "Unsupported device" in result.output
