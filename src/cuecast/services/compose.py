"""
Video composition service for cuecast.

This module renders the final MP4 by combining:
- a background (solid color, or a composed image chain)
- narration audio
- the burned-in ASS overlay

Responsibilities:
- Assemble the encoder command (inputs, filter graph, codec flags)
- Invoke ffmpeg with a timeout and verify the output artifact

Does NOT:
- Lay out or time any text (choreographers + emitter)
- Decide clip durations or transitions (background compositor)
- Download assets
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cuecast.config.settings import Settings
from cuecast.domain.artifacts import VideoArtifact
from cuecast.domain.plan import RenderPlan
from cuecast.domain.request import TextLayout
from cuecast.exceptions import EncoderError
from cuecast.services.background import (
    BackgroundComposition,
    Filter,
    FilterGraph,
    FilterStage,
)
from cuecast.utils import ffmpeg
from cuecast.utils.logging import get_logger

log = get_logger(__name__)

VIDEO_LABEL = "[vout]"
DIVIDER_WIDTH_PX = 2
DIVIDER_COLOR = "#FFFFFF"
DIVIDER_OPACITY = 0.12
PAD_EPSILON_S = 0.001


def panel_filters(plan: RenderPlan) -> list[Filter]:
    """drawbox filters for the left panel and its optional divider."""
    if plan.text_layout is not TextLayout.PANEL_LEFT or plan.panel is None:
        return []
    bg = plan.panel.background
    width = plan.panel_width()
    height = plan.canvas.height
    filters = [
        Filter(
            "drawbox",
            ("x=0", "y=0", f"w={width}", f"h={height}", f"color={ffmpeg.ffmpeg_color(bg.color_hex, bg.opacity)}", "t=fill"),
        )
    ]
    if bg.divider_right:
        color = bg.divider_color_hex or DIVIDER_COLOR
        opacity = bg.divider_opacity if bg.divider_opacity is not None else DIVIDER_OPACITY
        filters.append(
            Filter(
                "drawbox",
                (
                    f"x={max(0, width - DIVIDER_WIDTH_PX)}",
                    "y=0",
                    f"w={DIVIDER_WIDTH_PX}",
                    f"h={height}",
                    f"color={ffmpeg.ffmpeg_color(color, opacity)}",
                    "t=fill",
                ),
            )
        )
    return filters


@dataclass
class ComposeService:
    """
    ffmpeg-based video renderer.

    Notes:
    - Background inputs are numbered first; audio is always the last input.
    - A chain shorter than the timeline is padded by cloning its last frame.
    """

    settings: Settings = field(default_factory=Settings)

    def build_graph(
        self,
        *,
        plan: RenderPlan,
        total_ms: int,
        overlay: Path,
        background: BackgroundComposition | None,
    ) -> FilterGraph:
        total_s = total_ms / 1000.0
        filters: list[Filter] = []
        if background is None:
            graph = FilterGraph()
            source = "[0:v]"
        else:
            graph = background.graph
            source = background.out_label
            shortfall = total_s - background.chain_duration_s
            if shortfall > PAD_EPSILON_S:
                filters.append(
                    Filter("tpad", ("stop_mode=clone", f"stop_duration={ffmpeg.format_seconds(shortfall)}"))
                )
        filters.extend(panel_filters(plan))
        filters.append(Filter("ass", (ffmpeg.escape_filter_path(str(overlay)),)))
        return graph.then(FilterStage((source,), tuple(filters), VIDEO_LABEL))

    def build_command(
        self,
        *,
        plan: RenderPlan,
        total_ms: int,
        audio: Path,
        overlay: Path,
        output: Path,
        background: BackgroundComposition | None = None,
    ) -> list[str]:
        total = ffmpeg.format_seconds(total_ms / 1000.0)
        canvas = plan.canvas
        cmd: list[str] = [self.settings.ffmpeg_bin, "-y"]

        if background is None:
            color = ffmpeg.ffmpeg_color(plan.background_color)
            cmd += [
                "-f", "lavfi",
                "-t", total,
                "-i", f"color=c={color}:s={canvas.width}x{canvas.height}:r={canvas.fps}",
            ]
            audio_index = 1
        else:
            cmd += background.input_args()
            audio_index = len(background.inputs)
        cmd += ["-i", str(audio)]

        graph = self.build_graph(plan=plan, total_ms=total_ms, overlay=overlay, background=background)
        cmd += ["-filter_complex", graph.serialize()]
        cmd += ["-map", VIDEO_LABEL, "-map", f"{audio_index}:a"]
        cmd += [
            "-c:v", "libx264",
            "-preset", self.settings.x264_preset,
            "-crf", str(self.settings.x264_crf),
            "-pix_fmt", "yuv420p",
            "-r", str(canvas.fps),
        ]
        cmd += ["-c:a", "aac", "-b:a", f"{plan.audio_bitrate_kbps}k"]
        cmd += ["-movflags", "+faststart", "-t", total, str(output)]
        return cmd

    def render(
        self,
        *,
        plan: RenderPlan,
        total_ms: int,
        audio: Path,
        overlay: Path,
        output: Path,
        background: BackgroundComposition | None = None,
        stderr_path: Path | None = None,
    ) -> VideoArtifact:
        ffmpeg.ensure_ffmpeg(self.settings.ffmpeg_bin)

        if not audio.exists():
            raise EncoderError(f"Audio not found: {audio}")
        if not overlay.exists():
            raise EncoderError(f"Overlay not found: {overlay}")

        cmd = self.build_command(
            plan=plan,
            total_ms=total_ms,
            audio=audio,
            overlay=overlay,
            output=output,
            background=background,
        )
        cmd_str = " ".join(cmd)
        log.info("Rendering video -> %s", output)
        log.debug("ffmpeg cmd: %s", cmd_str)

        ffmpeg.run_ffmpeg(cmd, stderr_path=stderr_path, timeout_s=self.settings.encode_timeout_s)

        if not output.exists() or output.stat().st_size == 0:
            raise EncoderError(f"ffmpeg produced no output: {output}")

        return VideoArtifact(path=output, format="mp4", ffmpeg_cmd=cmd_str)
