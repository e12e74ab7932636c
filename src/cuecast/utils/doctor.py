from __future__ import annotations

import importlib.metadata
import subprocess
import sys
import tempfile
from pathlib import Path

from cuecast.config.settings import Settings


def _run_cmd(cmd: list[str]) -> tuple[int, str]:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except (FileNotFoundError, PermissionError):
        return 1, ""
    return proc.returncode, proc.stdout.strip() or proc.stderr.strip()


def _check_writable(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path, delete=True):
            return True
    except OSError:
        return False


def _get_version() -> str:
    try:
        return importlib.metadata.version("cuecast")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _status_line(ok: bool, label: str, detail: str = "") -> str:
    icon = "✅" if ok else "❌"
    return f"{icon} {label}{detail}"


def _binary_line(binary: str) -> tuple[bool, str]:
    code, out = _run_cmd([binary, "-version"])
    if code != 0:
        return False, _status_line(False, binary, " (not found)")
    first_line = out.splitlines()[0] if out else "available"
    return True, _status_line(True, binary, f": {first_line}")


def doctor_report(settings: Settings) -> tuple[bool, list[str]]:
    required_ok = True
    lines: list[str] = ["cuecast doctor", ""]

    lines.append(_status_line(True, "Python", f": {sys.version.split()[0]}"))
    lines.append(_status_line(True, "cuecast version", f": {_get_version()}"))

    workdir = Path(settings.workdir).expanduser().resolve()
    writable = _check_writable(workdir)
    required_ok = required_ok and writable
    lines.append(_status_line(writable, "Workdir writable", f": {workdir}"))

    for binary in (settings.ffmpeg_bin, settings.ffprobe_bin):
        ok, line = _binary_line(binary)
        required_ok = required_ok and ok
        lines.append(line)

    lines.append(
        _status_line(
            True,
            "Workers / shards",
            f": {settings.max_workers} / {settings.registry_shards}",
        )
    )
    return required_ok, lines


def run_doctor(settings: Settings) -> int:
    ok, lines = doctor_report(settings)
    print("\n".join(lines))
    return 0 if ok else 1
