from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration for cuecast.

    All settings are loaded from environment variables with the
    `CUECAST_` prefix and optional `.env` support.

    Request-level knobs (style, layout, effects) are not settings; they
    travel with each render request and are resolved into a RenderPlan.
    """

    model_config = SettingsConfigDict(
        env_prefix="CUECAST_",
        env_file=".env",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Runtime
    # ------------------------------------------------------------------
    workdir: str = Field(
        default=".cuecast",
        description="Root directory for per-job workspaces.",
    )
    max_workers: int = Field(
        default=2,
        ge=1,
        description="Number of render jobs executed concurrently.",
    )
    registry_shards: int = Field(
        default=16,
        ge=1,
        description="Number of independently locked shards in the job registry.",
    )

    # ------------------------------------------------------------------
    # External binaries
    # ------------------------------------------------------------------
    ffmpeg_bin: str = Field(
        default="ffmpeg",
        description="ffmpeg executable used for the final encode.",
    )
    ffprobe_bin: str = Field(
        default="ffprobe",
        description="ffprobe executable used for duration probing.",
    )

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------
    fetch_timeout_s: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for each asset download, in seconds.",
    )
    encode_timeout_s: float = Field(
        default=1800.0,
        gt=0,
        description="Timeout for the ffmpeg encode, in seconds.",
    )

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------
    x264_preset: str = Field(
        default="veryfast",
        description="libx264 preset.",
    )
    x264_crf: int = Field(
        default=18,
        ge=0,
        le=51,
        description="libx264 constant rate factor.",
    )

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    min_wrap_chars: int = Field(
        default=12,
        ge=1,
        description="Lower clamp for the per-line character budget.",
    )
    extend_to_audio: bool = Field(
        default=True,
        description="Extend the last cue to the probed audio duration when it is longer.",
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )

    # ------------------------------------------------------------------
    # Public / safe export
    # ------------------------------------------------------------------
    def to_public_dict(self) -> dict:
        """
        Return a dictionary of settings suitable for logging or CLI display.
        """
        return {
            "workdir": self.workdir,
            "max_workers": self.max_workers,
            "registry_shards": self.registry_shards,
            "ffmpeg_bin": self.ffmpeg_bin,
            "ffprobe_bin": self.ffprobe_bin,
            "fetch_timeout_s": self.fetch_timeout_s,
            "encode_timeout_s": self.encode_timeout_s,
            "x264_preset": self.x264_preset,
            "x264_crf": self.x264_crf,
            "min_wrap_chars": self.min_wrap_chars,
            "extend_to_audio": self.extend_to_audio,
            "log_level": self.log_level,
        }
