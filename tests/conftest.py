from __future__ import annotations

import inspect
import json

import pytest
import typer.testing

from cuecast.domain.plan import RenderPlan, resolve_plan
from cuecast.domain.request import RenderRequest
from cuecast.domain.timeline import Timeline


def _patch_clirunner() -> None:
    if "mix_stderr" in inspect.signature(typer.testing.CliRunner).parameters:
        return

    class PatchedCliRunner(typer.testing.CliRunner):
        def __init__(self, *args, **kwargs):  # noqa: ANN002, ANN003
            kwargs.pop("mix_stderr", None)
            super().__init__(*args, **kwargs)

    typer.testing.CliRunner = PatchedCliRunner


_patch_clirunner()


def request_payload(spans, lines, *, total_ms=0, **overrides) -> dict:
    items = [{"idx": i, "startMs": s, "endMs": e} for i, (s, e) in enumerate(spans)]
    payload = {
        "audioUrl": "audio.mp3",
        "cues": {"items": items, "totalMs": total_ms},
        "lines": list(lines),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_request():
    def _make(spans, lines, *, total_ms=0, **overrides) -> RenderRequest:
        return RenderRequest.model_validate(request_payload(spans, lines, total_ms=total_ms, **overrides))

    return _make


@pytest.fixture
def make_case(make_request):
    """(timeline, plan) for the given cues, lines and request overrides."""

    def _make(spans, lines, *, total_ms=0, **overrides) -> tuple[Timeline, RenderPlan]:
        request = make_request(spans, lines, total_ms=total_ms, **overrides)
        return request.cues.to_timeline(request.lines), resolve_plan(request)

    return _make


@pytest.fixture
def write_request(tmp_path):
    """Write a request JSON under tmp_path and return its path."""

    def _write(spans, lines, *, name="request.json", envelope=False, **overrides):
        payload = request_payload(spans, lines, **overrides)
        if envelope:
            payload = {"render": payload}
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
