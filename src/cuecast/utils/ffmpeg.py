from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

from cuecast.exceptions import DependencyMissingError, EncoderError, ResourceError
from cuecast.utils.text import truncate_tail


def ensure_ffmpeg(binary: str = "ffmpeg") -> str:
    """Resolve `binary` on PATH or raise DependencyMissingError."""
    resolved = shutil.which(binary)
    if resolved is None:
        raise DependencyMissingError(
            f"Missing required dependency '{binary}'. Install ffmpeg and try again."
        )
    return resolved


def escape_filter_value(value: str) -> str:
    return (
        value.replace("\\", r"\\")
        .replace(":", r"\:")
        .replace(",", r"\,")
        .replace("'", r"\'")
    )


def escape_filter_path(value: str) -> str:
    return escape_filter_value(value).replace("[", r"\[").replace("]", r"\]")


def format_seconds(value: float) -> str:
    return f"{value:.3f}"


def ffmpeg_color(hex_color: str, opacity: float | None = None) -> str:
    """#RRGGBB -> 0xRRGGBB, optionally with an @alpha suffix."""
    value = "0x" + hex_color.removeprefix("#").upper()
    if opacity is not None:
        value += f"@{opacity:.2f}"
    return value


def format_ass_time(ms: int) -> str:
    """Milliseconds -> H:MM:SS.cc, centiseconds truncated."""
    ms = max(0, int(ms))
    h = ms // 3_600_000
    m = (ms % 3_600_000) // 60_000
    s = (ms % 60_000) // 1000
    cs = (ms % 1000) // 10
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


def run_ffmpeg(
    cmd: list[str],
    *,
    stderr_path: Path | None = None,
    timeout_s: float | None = None,
) -> subprocess.CompletedProcess[str]:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout_s)
    except subprocess.TimeoutExpired as exc:
        stderr = exc.stderr.decode("utf-8", "replace") if isinstance(exc.stderr, bytes) else (exc.stderr or "")
        if stderr_path is not None:
            stderr_path.write_text(stderr, encoding="utf-8")
        raise EncoderError(
            f"ffmpeg timed out after {timeout_s:.0f}s.\n{truncate_tail(stderr)}"
        ) from exc
    except FileNotFoundError as exc:
        raise EncoderError(f"ffmpeg could not be started: {exc}") from exc
    if stderr_path is not None:
        stderr_path.write_text(proc.stderr or "", encoding="utf-8")
    if proc.returncode != 0:
        raise EncoderError(
            f"ffmpeg exit={proc.returncode}\n{truncate_tail(proc.stderr)}",
            returncode=proc.returncode,
        )
    return proc


def probe_duration(path: str | Path, *, ffprobe_bin: str = "ffprobe") -> float | None:
    ffprobe = shutil.which(ffprobe_bin)
    if not ffprobe:
        return None
    proc = subprocess.run(
        [
            ffprobe,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ],
        capture_output=True,
        text=True,
    )
    if proc.returncode != 0:
        return None
    try:
        return float(proc.stdout.strip())
    except ValueError:
        return None


def probe_samples_and_rate(path: str | Path, *, ffprobe_bin: str = "ffprobe") -> tuple[int | None, int | None]:
    """First audio stream's sample count and sample rate, as reported by ffprobe."""
    ffprobe = ensure_ffmpeg(ffprobe_bin)
    proc = subprocess.run(
        [
            ffprobe,
            "-v",
            "error",
            "-select_streams",
            "a:0",
            "-show_entries",
            "stream=nb_samples,sample_rate",
            "-of",
            "json",
            str(path),
        ],
        capture_output=True,
        text=True,
    )
    if proc.returncode != 0:
        raise ResourceError(f"ffprobe failed for {path}: {truncate_tail(proc.stderr, 500)}")
    try:
        data = json.loads(proc.stdout or "{}")
    except json.JSONDecodeError as exc:
        raise ResourceError(f"ffprobe returned invalid JSON for {path}") from exc
    streams = data.get("streams") or []
    if not streams:
        raise ResourceError(f"no audio stream in {path}")
    stream = streams[0]

    def _int(value) -> int | None:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    return _int(stream.get("nb_samples")), _int(stream.get("sample_rate"))
