from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from windowscribe.config import Settings, get_settings
from windowscribe.doctor import run_doctor
from windowscribe.events import Event, PartialEvent, ProgressEvent, Status, StatusEvent
from windowscribe.logging import configure_logging
from windowscribe.services import TranscriptionService

app = typer.Typer(help="windowscribe - long-form transcription with overlapping windows")
console = Console()


def format_timestamp(seconds: float) -> str:
    safe_seconds = max(0, int(seconds))
    hours, remainder = divmod(safe_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_eta(eta_seconds: int | None) -> str:
    if eta_seconds is None:
        return "ETA unknown"
    return f"ETA {format_timestamp(eta_seconds)}"


@app.command()
def doctor() -> None:
    """Check local runtime prerequisites."""

    settings = get_settings()
    checks = run_doctor(settings)

    table = Table(title="windowscribe doctor")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Detail")

    failed = False
    for check in checks:
        status = check.status.upper()
        color = {"ok": "green", "warn": "yellow", "fail": "red"}.get(check.status, "white")
        table.add_row(check.name, f"[{color}]{status}[/{color}]", check.detail)
        if check.status == "fail":
            failed = True

    console.print(table)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def transcribe(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    model: str = typer.Option("small", "--model", help="small|medium|large"),
    language: str = typer.Option("auto", "--language", help="auto|english|german|..."),
    device: Optional[str] = typer.Option(None, "--device", help="auto|cuda|cpu (overrides WINDOWSCRIBE_DEVICE)"),
    timestamps: bool = typer.Option(True, "--timestamps/--no-timestamps"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Transcribe a mono 16 kHz WAV file of any length."""

    configure_logging(verbose)
    settings = get_settings()
    if device is not None:
        try:
            settings = Settings(**{**settings.model_dump(), "device": device})
        except ValueError as exc:
            console.print(f"[red]transcribe failed:[/red] {exc}")
            raise typer.Exit(code=2) from exc
    service = TranscriptionService(settings)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("{task.fields[eta]}"),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Loading model", total=100, eta="")

        def on_event(event: Event) -> None:
            if isinstance(event, StatusEvent) and event.status is Status.LOADING:
                progress.update(task_id, description=event.detail or "Loading model")
            elif isinstance(event, ProgressEvent):
                description = f"Transcribing {event.processed or 0}/{event.total or '?'}"
                progress.update(
                    task_id,
                    completed=event.percent,
                    description=description,
                    eta=format_eta(event.eta_seconds),
                )
            elif isinstance(event, PartialEvent) and verbose:
                progress.console.print(f"[dim]{event.text[-120:]}[/dim]")

        try:
            outcome = service.transcribe_file(
                file_path,
                model_name=model,
                language=language,
                on_event=on_event,
            )
        except (FileNotFoundError, RuntimeError, ValueError) as exc:
            progress.stop()
            console.print(f"[red]transcribe failed:[/red] {exc}")
            raise typer.Exit(code=2) from exc

    console.print(f"[green]Device:[/green] {outcome.device}")
    console.print(
        f"[green]Windows:[/green] {outcome.window_count} "
        f"({len(outcome.skipped_windows)} skipped)"
    )
    if timestamps and outcome.segments:
        table = Table(title="Segments")
        table.add_column("Start")
        table.add_column("End")
        table.add_column("Text")
        for segment in outcome.segments:
            table.add_row(format_timestamp(segment.start), format_timestamp(segment.end), segment.text)
        console.print(table)
    console.print("")
    console.print(outcome.text)


if __name__ == "__main__":
    app()
