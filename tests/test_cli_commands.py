from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

import cuecast.cli.main as cli_main
from cuecast.cli.main import app
from cuecast.core.registry import JobSnapshot, JobStatus
from cuecast.services.probe import ProbeResult

TWO_CUES = ([(0, 1000), (1000, 2500)], ["first line", "second line"])


def test_config_prints_public_settings(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CUECAST_WORKDIR", str(tmp_path / "w"))
    result = CliRunner(mix_stderr=False).invoke(app, ["config"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["workdir"] == str(tmp_path / "w")
    assert data["max_workers"] >= 1


def test_overlay_writes_document(tmp_path: Path, write_request) -> None:
    out = tmp_path / "nested" / "overlay.ass"
    result = CliRunner(mix_stderr=False).invoke(app, ["overlay", str(write_request(*TWO_CUES)), "--out", str(out)])

    assert result.exit_code == 0, result.stdout
    assert result.stdout.startswith("triptych:")
    text = out.read_text(encoding="utf-8")
    assert "[Events]" in text
    assert "second line" in text


def test_overlay_accepts_job_envelope(tmp_path: Path, write_request) -> None:
    envelope = write_request([(0, 1000)], ["solo"], name="job.json", envelope=True, vertical=True)
    out = tmp_path / "overlay.ass"
    result = CliRunner(mix_stderr=False).invoke(app, ["overlay", str(envelope), "--out", str(out)])
    assert result.exit_code == 0
    assert result.stdout.startswith("single_line: 1 events")


def test_graph_prints_filter_chain(tmp_path: Path, write_request) -> None:
    request = write_request(
        *TWO_CUES,
        backgroundSpans=[
            {"anchorIdx": 0, "imageUrl": "a.jpg"},
            {"anchorIdx": 1, "imageUrl": "b.jpg"},
        ],
    )
    result = CliRunner(mix_stderr=False).invoke(app, ["graph", str(request), "--total-ms", "3000"])

    assert result.exit_code == 0, result.stdout
    assert "xfade" in result.stdout
    assert "[bg]" in result.stdout
    assert '"clip_count": 2' in result.stdout


def test_graph_without_images_reports_solid_color(tmp_path: Path, write_request) -> None:
    result = CliRunner(mix_stderr=False).invoke(app, ["graph", str(write_request(*TWO_CUES))])
    assert result.exit_code == 0
    assert "solid color #000000" in result.stdout


def test_render_reports_failed_job(monkeypatch, tmp_path: Path, write_request) -> None:
    class FailingRunner:
        def __init__(self, settings):  # noqa: ANN001
            self.settings = settings

        def __enter__(self):
            return self

        def __exit__(self, *exc):  # noqa: ANN002
            return None

        def submit(self, request):  # noqa: ANN001
            return "abc123"

        def wait(self, job_id, timeout=None):  # noqa: ANN001
            return JobSnapshot(job_id=job_id, status=JobStatus.FAILED, message="ffmpeg exit=1")

        def artifact(self, job_id):  # noqa: ANN001
            return None

    monkeypatch.setattr(cli_main, "JobRunner", FailingRunner)
    result = CliRunner(mix_stderr=False).invoke(
        app, ["render", str(write_request(*TWO_CUES)), "--workdir", str(tmp_path / "w")]
    )

    assert result.exit_code == 1
    assert "job_id=abc123" in result.stdout
    assert "Render failed: ffmpeg exit=1" in result.stderr


def test_probe_prints_durations(monkeypatch, tmp_path: Path) -> None:
    seen = {}

    def fake_probe(files, *, ffprobe_bin):  # noqa: ANN001
        seen["files"] = [Path(f).name for f in files]
        return ProbeResult(durations_ms=[1000, 2000], total_ms=3000)

    monkeypatch.setattr(cli_main, "probe_durations", fake_probe)
    result = CliRunner(mix_stderr=False).invoke(app, ["probe", str(tmp_path / "a.mp3"), str(tmp_path / "b.mp3")])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"durationsMs": [1000, 2000], "totalMs": 3000}
    assert seen["files"] == ["a.mp3", "b.mp3"]
