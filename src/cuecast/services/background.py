"""
Background compositor.

Turns (anchor cue, image) spans into ffmpeg input arguments and a filter
graph whose final output label is `[bg]`.

Responsibilities:
- Normalize spans (clamp, sort, de-duplicate, anchor the first at cue 0)
- Derive per-clip durations from cue boundaries
- Build one scale/letterbox (or slow zoom) stage per clip
- Chain clips pairwise with xfade transitions

Does NOT:
- Download images (the asset fetcher does)
- Run ffmpeg or add audio, subtitles or codec flags (ComposeService does)

The graph is modelled as FilterStage records and serialized once, so it can
be inspected in tests without string diffing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence, TypeVar

from cuecast.domain.plan import RenderPlan
from cuecast.domain.timeline import Timeline
from cuecast.utils.ffmpeg import format_seconds
from cuecast.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

MIN_OVERLAP_S = 0.05
OVERSCAN = 1.06
MAX_ZOOM_CEILING = 1.10
BG_LABEL = "[bg]"


@dataclass(frozen=True)
class Filter:
    name: str
    args: tuple[str, ...] = ()

    def serialize(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}={':'.join(self.args)}"


@dataclass(frozen=True)
class FilterStage:
    inputs: tuple[str, ...]
    filters: tuple[Filter, ...]
    output: str

    def serialize(self) -> str:
        chain = ",".join(f.serialize() for f in self.filters)
        return f"{''.join(self.inputs)}{chain}{self.output}"


@dataclass(frozen=True)
class FilterGraph:
    stages: tuple[FilterStage, ...] = ()

    def then(self, stage: FilterStage) -> "FilterGraph":
        return FilterGraph(self.stages + (stage,))

    def serialize(self) -> str:
        return ";".join(stage.serialize() for stage in self.stages)


@dataclass(frozen=True)
class InputSource:
    """One `-i` input plus the options that precede it."""

    path: str
    options: tuple[str, ...] = ()

    def args(self) -> list[str]:
        return [*self.options, "-i", self.path]


@dataclass(frozen=True)
class Clip:
    anchor_idx: int
    image: str
    start_ms: int
    duration_ms: int

    @property
    def duration_s(self) -> float:
        return self.duration_ms / 1000.0


@dataclass(frozen=True)
class BackgroundComposition:
    inputs: tuple[InputSource, ...]
    graph: FilterGraph
    clips: tuple[Clip, ...]
    chain_duration_s: float
    merges: int
    out_label: str = BG_LABEL

    @property
    def clip_count(self) -> int:
        return len(self.clips)

    @property
    def durations_s(self) -> list[float]:
        return [clip.duration_s for clip in self.clips]

    def input_args(self) -> list[str]:
        args: list[str] = []
        for source in self.inputs:
            args.extend(source.args())
        return args

    @property
    def filter_complex(self) -> str:
        return self.graph.serialize()

    def summary(self) -> dict:
        return {
            "clip_count": self.clip_count,
            "merges": self.merges,
            "durations_s": self.durations_s,
            "chain_duration_s": round(self.chain_duration_s, 3),
        }


def normalize_spans(spans: Iterable[tuple[int, T]], cue_count: int) -> list[tuple[int, T]]:
    """
    Clamp anchors into [0, cue_count-1], sort by anchor, keep the first span
    per anchor, and make sure one span starts at cue 0.
    """
    if cue_count <= 0:
        return []
    last = cue_count - 1
    clamped = [(min(max(int(anchor), 0), last), image) for anchor, image in spans]
    clamped.sort(key=lambda span: span[0])
    seen: set[int] = set()
    result: list[tuple[int, T]] = []
    for anchor, image in clamped:
        if anchor in seen:
            continue
        seen.add(anchor)
        result.append((anchor, image))
    if result and result[0][0] > 0:
        result.insert(0, (0, result[0][1]))
    return result


def span_clips(spans: Sequence[tuple[int, T]], timeline: Timeline) -> list[Clip]:
    """Clips with positive duration; the first starts at 0, the last ends at total_ms."""
    normalized = normalize_spans(spans, len(timeline))
    clips: list[Clip] = []
    for i, (anchor, image) in enumerate(normalized):
        start = 0 if i == 0 else timeline.cues[anchor].start_ms
        if i + 1 < len(normalized):
            end = timeline.cues[normalized[i + 1][0]].start_ms
        else:
            end = timeline.total_ms
        duration = end - start
        if duration <= 0:
            log.debug("Skipping background span at cue %d: duration %d ms", anchor, duration)
            continue
        clips.append(Clip(anchor, str(image), start, duration))
    return clips


def _even(value: int) -> int:
    return value if value % 2 == 0 else value + 1


def static_stage(index: int, plan: RenderPlan) -> FilterStage:
    w, h, fps = plan.canvas.width, plan.canvas.height, plan.canvas.fps
    return FilterStage(
        inputs=(f"[{index}:v]",),
        filters=(
            Filter("scale", (f"w={w}", f"h={h}", "force_original_aspect_ratio=decrease")),
            Filter("pad", (str(w), str(h), "(ow-iw)/2", "(oh-ih)/2", "color=black")),
            Filter("fps", (str(fps),)),
            Filter("format", ("yuv420p",)),
            Filter("setsar", ("1",)),
        ),
        output=f"[v{index}]",
    )


def motion_stage(index: int, clip: Clip, plan: RenderPlan) -> FilterStage:
    w, h, fps = plan.canvas.width, plan.canvas.height, plan.canvas.fps
    over_w = _even(math.ceil(w * OVERSCAN))
    over_h = _even(math.ceil(h * OVERSCAN))
    frames = int(max(1.0, clip.duration_s * fps))
    z_max = min(max(plan.effects.motion.max_zoom, 1.0), MAX_ZOOM_CEILING)
    ease = f"0.5*(1-cos(PI*on/{frames}))"
    z_expr = f"1+({format_seconds(z_max - 1.0)})*({ease})"
    return FilterStage(
        inputs=(f"[{index}:v]",),
        filters=(
            Filter("scale", (f"w={over_w}", f"h={over_h}", "force_original_aspect_ratio=decrease")),
            Filter(
                "zoompan",
                (
                    f"z='{z_expr}'",
                    "x='(iw-ow)/2'",
                    "y='(ih-oh)/2'",
                    "d=1",
                    f"s={w}x{h}",
                    f"fps={fps}",
                ),
            ),
            Filter("format", ("yuv420p",)),
            Filter("setsar", ("1",)),
        ),
        output=f"[v{index}]",
    )


def clip_stage(index: int, clip: Clip, plan: RenderPlan) -> FilterStage:
    motion = plan.effects.motion
    if motion.enabled and clip.duration_s >= motion.min_span_sec:
        return motion_stage(index, clip, plan)
    return static_stage(index, plan)


def transition_overlap(transition_s: float, prev_s: float, cur_s: float) -> float:
    return min(transition_s, max(min(prev_s, cur_s), MIN_OVERLAP_S))


def transition_offset(virtual_s: float, overlap_s: float, *, centered: bool) -> float:
    raw = virtual_s - overlap_s / 2.0 if centered else virtual_s - overlap_s
    return max(0.0, raw)


def compose_background(
    spans: Sequence[tuple[int, str | Path]],
    timeline: Timeline,
    plan: RenderPlan,
) -> BackgroundComposition | None:
    """
    Build the background chain, or None when no span has a positive duration.

    Inputs are numbered from 0, so the caller must add its own inputs
    (audio, color sources) after these.
    """
    clips = span_clips(spans, timeline)
    if not clips:
        return None

    inputs = tuple(
        InputSource(clip.image, ("-loop", "1", "-t", format_seconds(clip.duration_s)))
        for clip in clips
    )
    graph = FilterGraph()
    for i, clip in enumerate(clips):
        graph = graph.then(clip_stage(i, clip, plan))

    if len(clips) == 1:
        graph = graph.then(FilterStage(("[v0]",), (Filter("copy"),), BG_LABEL))
        return BackgroundComposition(
            inputs=inputs,
            graph=graph,
            clips=tuple(clips),
            chain_duration_s=clips[0].duration_s,
            merges=0,
        )

    transition = plan.effects.transition
    prev_label = "[v0]"
    virtual = clips[0].duration_s
    for i in range(1, len(clips)):
        prev_s = clips[i - 1].duration_s
        cur_s = clips[i].duration_s
        overlap = transition_overlap(transition.duration_sec, prev_s, cur_s)
        offset = transition_offset(virtual, overlap, centered=transition.center_on_boundary)
        out_label = BG_LABEL if i == len(clips) - 1 else f"[x{i}]"
        graph = graph.then(
            FilterStage(
                (prev_label, f"[v{i}]"),
                (
                    Filter(
                        "xfade",
                        (
                            f"transition={transition.type}",
                            f"duration={format_seconds(overlap)}",
                            f"offset={format_seconds(offset)}",
                        ),
                    ),
                ),
                out_label,
            )
        )
        prev_label = out_label
        virtual = virtual + cur_s - overlap

    log.debug("Background chain: %d clips, %.3fs", len(clips), virtual)
    return BackgroundComposition(
        inputs=inputs,
        graph=graph,
        clips=tuple(clips),
        chain_duration_s=virtual,
        merges=len(clips) - 1,
    )
