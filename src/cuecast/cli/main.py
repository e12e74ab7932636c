from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from pydantic import ValidationError

from cuecast.config.settings import Settings
from cuecast.core.registry import JobStatus
from cuecast.core.runner import JobRunner
from cuecast.domain.plan import resolve_plan
from cuecast.domain.request import CuesPayload, RenderRequest
from cuecast.domain.timeline import Timeline
from cuecast.exceptions import ConfigurationError, CueCastError, InputValidationError, ResourceError
from cuecast.pipeline import choreograph
from cuecast.services.assets import AssetFetcher
from cuecast.services.background import compose_background
from cuecast.services.probe import probe_durations
from cuecast.services.subtitles import write_document
from cuecast.utils.doctor import run_doctor
from cuecast.utils.logging import configure_logging, get_logger

app = typer.Typer(add_completion=False, help="Timed-text overlays and background compositing for narrated video.")
log = get_logger(__name__)


@contextmanager
def _cli_errors() -> Iterator[None]:
    try:
        yield
    except CueCastError as exc:
        typer.echo(f"{exc.label()}: {exc}", err=True)
        raise typer.Exit(code=exc.exit_code or 1)


def _load_settings(workdir: str | None = None, log_level: str | None = None) -> Settings:
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc.error_count()} error(s)") from exc
    updates = {}
    if workdir is not None:
        updates["workdir"] = workdir
    if log_level is not None:
        updates["log_level"] = log_level
    if updates:
        settings = settings.model_copy(update=updates)
    configure_logging(settings.log_level)
    return settings


def _load_request(path: Path) -> RenderRequest:
    """Read a render request; a `{"render": {...}}` job envelope is accepted too."""
    if not path.is_file():
        raise ResourceError(f"Request file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InputValidationError(f"{path} is not valid JSON: {exc.msg}") from exc
    if isinstance(data, dict) and isinstance(data.get("render"), dict):
        data = data["render"]
    try:
        return RenderRequest.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first["loc"])
        raise InputValidationError(f"invalid render request at {where}: {first['msg']}") from exc


def _resolve_cues(request: RenderRequest, settings: Settings) -> CuesPayload:
    if request.cues is not None:
        return request.cues
    if request.cues_url is None:
        raise ResourceError("cuesUrl is required when cues is null")
    return AssetFetcher(timeout_s=settings.fetch_timeout_s).fetch_cues(request.cues_url)


def _timeline(request: RenderRequest, settings: Settings, total_ms: int | None) -> Timeline:
    timeline = _resolve_cues(request, settings).to_timeline(request.lines)
    if total_ms is not None:
        timeline = timeline.extended_to(total_ms)
    return timeline


@app.command()
def config() -> None:
    """Print resolved config."""
    with _cli_errors():
        s = _load_settings()
        typer.echo(json.dumps(s.to_public_dict(), indent=2))


@app.command()
def doctor() -> None:
    """Check required binaries and the workdir."""
    with _cli_errors():
        code = run_doctor(_load_settings())
    raise typer.Exit(code=code)


@app.command()
def overlay(
    request_path: Path = typer.Argument(..., help="Render request JSON."),
    out: Path = typer.Option(Path("overlay.ass"), "--out", "-o", help="Where to write the ASS document."),
    total_ms: Optional[int] = typer.Option(None, help="Extend the timeline to this total (e.g. audio length)."),
) -> None:
    """Write the ASS overlay for a request without rendering video."""
    with _cli_errors():
        settings = _load_settings()
        request = _load_request(request_path)
        plan = resolve_plan(request, min_wrap_chars=settings.min_wrap_chars)
        timeline = _timeline(request, settings, total_ms)
        events = choreograph(timeline, plan)
        out.parent.mkdir(parents=True, exist_ok=True)
        write_document(out, events, plan, timeline.total_ms)
        typer.echo(f"{plan.layout.value}: {len(events)} events -> {out}")


@app.command()
def graph(
    request_path: Path = typer.Argument(..., help="Render request JSON."),
    total_ms: Optional[int] = typer.Option(None, help="Extend the timeline to this total."),
) -> None:
    """Print the background inputs and filter graph for a request."""
    with _cli_errors():
        settings = _load_settings()
        request = _load_request(request_path)
        plan = resolve_plan(request, min_wrap_chars=settings.min_wrap_chars)
        timeline = _timeline(request, settings, total_ms)
        spans = [(span.anchor_idx, span.image_url) for span in request.background_spans]
        if not spans and request.background.image_url:
            spans = [(0, request.background.image_url)]
        composition = compose_background(spans, timeline, plan)
        if composition is None:
            typer.echo(f"no background composition; solid color {plan.background_color}")
            return
        typer.echo(json.dumps(composition.summary(), indent=2))
        typer.echo(" ".join(composition.input_args()))
        typer.echo(composition.filter_complex)


@app.command()
def render(
    request_path: Path = typer.Argument(..., help="Render request JSON."),
    workdir: Optional[str] = typer.Option(None, help="Workdir for outputs (overrides config)."),
    log_level: Optional[str] = typer.Option(None, help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    """Render a request end to end through the job runner."""
    with _cli_errors():
        settings = _load_settings(workdir, log_level)
        request = _load_request(request_path)
        with JobRunner(settings) as runner:
            job_id = runner.submit(request)
            typer.echo(f"job_id={job_id}")
            snapshot = runner.wait(job_id)
            artifact = runner.artifact(job_id)

    if snapshot is None or snapshot.status is not JobStatus.SUCCEEDED:
        message = snapshot.message if snapshot is not None else "unknown job"
        typer.echo(f"Render failed: {message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"✅ Done in {snapshot.duration_ms} ms")
    typer.echo(f"📦 Output: {artifact}")


@app.command()
def probe(
    files: List[Path] = typer.Argument(..., help="Audio files, in playback order."),
) -> None:
    """Print per-file and total durations in milliseconds."""
    with _cli_errors():
        settings = _load_settings()
        result = probe_durations(files, ffprobe_bin=settings.ffprobe_bin)
        typer.echo(json.dumps(result.to_dict(), indent=2))


def _main() -> None:
    app()


if __name__ == "__main__":
    _main()
