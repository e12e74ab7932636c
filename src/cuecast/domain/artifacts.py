from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class AssetBundle:
    """Local copies of everything a render needs."""

    audio: Path
    images: dict[str, Path] = field(default_factory=dict)


@dataclass(frozen=True)
class OverlayArtifact:
    path: Path
    layout: str
    event_count: int
    sha256: str


@dataclass(frozen=True)
class BackgroundArtifact:
    kind: str  # "color" | "image" | "spans"
    clip_count: int = 0
    merges: int = 0
    chain_duration_s: float | None = None


@dataclass(frozen=True)
class VideoArtifact:
    path: Path
    format: str = "mp4"
    ffmpeg_cmd: str | None = None


@dataclass
class Artifacts:
    assets: Optional[AssetBundle] = None
    overlay: Optional[OverlayArtifact] = None
    background: Optional[BackgroundArtifact] = None
    video: Optional[VideoArtifact] = None
