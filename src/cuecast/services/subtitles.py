"""
ASS overlay document emitter.

This module turns choreographed PresentationEvents plus the resolved
overlay style into an ASS (v4.00+) document that ffmpeg burns in.

Responsibilities:
- Resolve named prominence levels into packed &HAABBGGRR style entries
- Format timestamps (H:MM:SS.cc) clamped to the timeline
- Escape text and render placement/animation override tags
- Drop empty or zero-length events at emission time

Does NOT:
- Decide where or when text appears (choreographers do)
- Touch the filesystem except in `write_document`
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from cuecast.choreographers.base import (
    STYLE_CURRENT,
    STYLE_DIMMED,
    STYLE_META,
    STYLE_NEXT,
    STYLE_PREVIOUS,
    STYLE_TITLE,
)
from cuecast.choreographers.panel import meta_font_size, title_font_size
from cuecast.domain.events import Move, Position, PresentationEvent
from cuecast.domain.plan import LayoutKind, RenderPlan
from cuecast.domain.request import Align, LineStyle
from cuecast.utils.ffmpeg import format_ass_time
from cuecast.utils.logging import get_logger

log = get_logger(__name__)

STYLE_FORMAT = (
    "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, "
    "OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, "
    "ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, "
    "Alignment, MarginL, MarginR, MarginV, Encoding"
)
EVENT_FORMAT = "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"

BORDER_OUTLINE = 1
BORDER_BOX = 3


def ass_color(hex_color: str, opacity: float = 1.0) -> str:
    """#RRGGBB + opacity -> &HAABBGGRR (ASS alpha is inverted: 00 is opaque)."""
    raw = hex_color.removeprefix("#")
    r = int(raw[0:2], 16)
    g = int(raw[2:4], 16)
    b = int(raw[4:6], 16)
    alpha = int(min(255.0, max(0.0, 255 - opacity * 255)))
    return f"&H{alpha:02X}{b:02X}{g:02X}{r:02X}"


def alignment_code(plan: RenderPlan) -> int:
    """
    Numpad alignment. Positioned layouts anchor at the top of the text
    block; the single-line layout sits on the bottom margin.
    """
    left = plan.style.align is Align.LEFT
    if plan.layout is LayoutKind.SINGLE_LINE:
        return 1 if left else 2
    return 7 if left else 8


WORD_JOINER = "\u2060"


def escape_text(text: str) -> str:
    # libass has no backslash escape; a word joiner stops "\n" and friends parsing as tags.
    return (
        text.replace("\\", "\\" + WORD_JOINER)
        .replace("{", r"\{")
        .replace("}", r"\}")
        .replace("\r\n", "\n")
        .replace("\n", r"\N")
    )


@dataclass(frozen=True)
class AssStyle:
    name: str
    font: str
    size: int
    primary: str
    outline_colour: str
    back_colour: str
    bold: bool
    border_style: int
    outline: int
    shadow: int
    alignment: int
    margin_l: int
    margin_r: int
    margin_v: int

    def to_line(self) -> str:
        return (
            f"Style: {self.name},{self.font},{self.size},"
            f"{self.primary},&H000000FF,{self.outline_colour},{self.back_colour},"
            f"{-1 if self.bold else 0},0,0,0,100,100,0,0,"
            f"{self.border_style},{self.outline},{self.shadow},"
            f"{self.alignment},{self.margin_l},{self.margin_r},{self.margin_v},1"
        )


def build_styles(plan: RenderPlan) -> list[AssStyle]:
    style = plan.style
    boxed = style.box_opacity > 0
    border_style = BORDER_BOX if boxed else BORDER_OUTLINE
    outline_colour = ass_color(style.box_color, style.box_opacity) if boxed else "&H00000000"
    back_colour = ass_color(style.box_color, style.box_opacity) if boxed else "&H64000000"
    shadow = 2 if style.shadow else 0
    align = alignment_code(plan)

    def make(name: str, level: LineStyle, size: int, *, bold: bool | None = None) -> AssStyle:
        return AssStyle(
            name=name,
            font=style.font_family,
            size=size,
            primary=ass_color(level.color_hex, level.opacity),
            outline_colour=outline_colour,
            back_colour=back_colour,
            bold=level.bold if bold is None else bold,
            border_style=border_style,
            outline=style.outline_px,
            shadow=shadow,
            alignment=align,
            margin_l=style.padding_left,
            margin_r=style.padding_right,
            margin_v=style.padding_bottom,
        )

    size = style.font_size_px
    return [
        make(STYLE_PREVIOUS, style.previous, size),
        make(STYLE_CURRENT, style.current, size),
        make(STYLE_NEXT, style.next, size),
        make(STYLE_DIMMED, style.dimmed, size),
        make(STYLE_TITLE, style.current, title_font_size(size), bold=True),
        make(STYLE_META, style.previous, meta_font_size(size), bold=False),
    ]


def override_tags(event: PresentationEvent) -> str:
    tags: list[str] = []
    placement = event.placement
    if isinstance(placement, Move):
        tags.append(
            f"\\move({placement.x1},{placement.y1},{placement.x2},{placement.y2},"
            f"{placement.t1_ms},{placement.t2_ms})"
        )
    elif isinstance(placement, Position):
        tags.append(f"\\pos({placement.x},{placement.y})")
    if event.fade is not None:
        tags.append(f"\\fad({event.fade[0]},{event.fade[1]})")
    if not tags:
        return ""
    return "{" + "".join(tags) + "}"


def dialogue_line(event: PresentationEvent, total_ms: int) -> str | None:
    """One `Dialogue:` line, or None when the event would be invisible."""
    if not event.text.strip():
        return None
    start = min(max(event.start_ms, 0), total_ms)
    end = min(max(event.end_ms, 0), total_ms)
    start_ts = format_ass_time(start)
    end_ts = format_ass_time(end)
    if end <= start or start_ts == end_ts:
        return None
    return (
        f"Dialogue: {event.layer},{start_ts},{end_ts},{event.style},,0,0,0,,"
        f"{override_tags(event)}{escape_text(event.text)}"
    )


def render_document(
    events: Iterable[PresentationEvent],
    plan: RenderPlan,
    total_ms: int,
) -> str:
    lines = [
        "[Script Info]",
        "ScriptType: v4.00+",
        f"PlayResX: {plan.canvas.width}",
        f"PlayResY: {plan.canvas.height}",
        "WrapStyle: 2",
        "ScaledBorderAndShadow: yes",
        "",
        "[V4+ Styles]",
        STYLE_FORMAT,
    ]
    lines.extend(s.to_line() for s in build_styles(plan))
    lines.extend(["", "[Events]", EVENT_FORMAT])

    emitted = 0
    dropped = 0
    for event in events:
        line = dialogue_line(event, total_ms)
        if line is None:
            dropped += 1
            continue
        lines.append(line)
        emitted += 1
    if dropped:
        log.debug("Dropped %d empty or zero-length events", dropped)
    return "\n".join(lines) + "\n"


def write_document(
    path: Path,
    events: Iterable[PresentationEvent],
    plan: RenderPlan,
    total_ms: int,
) -> Path:
    path.write_text(render_document(events, plan, total_ms), encoding="utf-8")
    return path
