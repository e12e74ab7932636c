from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import uuid


@dataclass(frozen=True)
class Workspace:
    """Per-job directory holding downloaded assets and rendered outputs."""

    root: Path
    job_id: str

    @classmethod
    def create(cls, workdir: str | Path, job_id: str | None = None) -> "Workspace":
        jid = job_id or uuid.uuid4().hex[:12]
        root = Path(workdir).expanduser().resolve() / jid
        root.mkdir(parents=True, exist_ok=True)
        (root / "images").mkdir(exist_ok=True)
        return cls(root=root, job_id=jid)

    def path(self, name: str) -> Path:
        p = self.root / name
        p.parent.mkdir(parents=True, exist_ok=True)
        return p

    @property
    def audio(self) -> Path:
        return self.path("audio.mp3")

    @property
    def cues_json(self) -> Path:
        return self.path("cues.json")

    @property
    def overlay_ass(self) -> Path:
        return self.path("overlay.ass")

    @property
    def output_mp4(self) -> Path:
        return self.path("out.mp4")

    @property
    def run_manifest(self) -> Path:
        return self.path("run.json")

    @property
    def ffmpeg_stderr(self) -> Path:
        return self.path("ffmpeg.stderr.txt")

    def image(self, position: int, suffix: str = ".img") -> Path:
        return self.path(f"images/bg_{position:03d}{suffix}")
