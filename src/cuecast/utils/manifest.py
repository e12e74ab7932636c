from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from cuecast.domain.job import Job
from cuecast.utils.timing import StepTiming


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def _file_entry(path: Path | None) -> dict[str, Any] | None:
    if path is None:
        return None
    size = path.stat().st_size if path.exists() else None
    return {"path": str(path), "size_bytes": size}


def build_run_manifest(
    *,
    job: Job,
    steps: Iterable[StepTiming],
    started_at: datetime,
    finished_at: datetime,
    error: BaseException | None = None,
) -> dict[str, Any]:
    artifacts = job.artifacts
    overlay = artifacts.overlay
    background = artifacts.background
    video = artifacts.video
    plan = job.plan

    return {
        "job_id": job.job_id,
        "started_at": _iso(started_at),
        "finished_at": _iso(finished_at),
        "duration_seconds_total": (finished_at - started_at).total_seconds(),
        "ok": error is None,
        "error": str(error) if error is not None else None,
        "settings_public": job.settings.to_public_dict(),
        "steps": [step.to_dict() for step in steps],
        "plan": {
            "text_layout": plan.text_layout.value,
            "change_mode": plan.change_mode.value,
            "layout": plan.layout.value,
            "visible_lines": plan.visible_lines,
            "resolution": f"{plan.canvas.width}x{plan.canvas.height}",
            "fps": plan.canvas.fps,
        },
        "total_ms": job.total_ms,
        "overlay": (
            {
                **(_file_entry(overlay.path) or {}),
                "event_count": overlay.event_count,
                "sha256": overlay.sha256,
            }
            if overlay
            else None
        ),
        "background": (
            {
                "kind": background.kind,
                "clip_count": background.clip_count,
                "merges": background.merges,
                "chain_duration_s": background.chain_duration_s,
            }
            if background
            else None
        ),
        "ffmpeg_cmd": video.ffmpeg_cmd if video else None,
        "ffmpeg_stderr_path": str(job.workspace.ffmpeg_stderr) if video or error else None,
        "video": _file_entry(video.path) if video else None,
    }


def write_run_manifest(
    *,
    job: Job,
    steps: Iterable[StepTiming],
    started_at: datetime,
    finished_at: datetime,
    error: BaseException | None = None,
) -> Path:
    payload = build_run_manifest(
        job=job,
        steps=steps,
        started_at=started_at,
        finished_at=finished_at,
        error=error,
    )
    out = job.workspace.run_manifest
    out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out
