from __future__ import annotations

from typing import Protocol

from cuecast.domain.events import PresentationEvent
from cuecast.domain.plan import RenderPlan
from cuecast.domain.request import Align
from cuecast.domain.timeline import Timeline
from cuecast.layout.wrap import char_budget

STYLE_PREVIOUS = "prev"
STYLE_CURRENT = "cur"
STYLE_NEXT = "next"
STYLE_DIMMED = "dim"
STYLE_TITLE = "title"
STYLE_META = "meta"


class Choreographer(Protocol):
    def choreograph(self, timeline: Timeline, plan: RenderPlan) -> list[PresentationEvent]: ...


def text_budget(plan: RenderPlan, available_px: int, *, bold: bool) -> int:
    return char_budget(
        available_px,
        plan.style.font_size_px,
        bold=bold,
        outline_px=plan.style.outline_px,
        min_chars=plan.min_wrap_chars,
    )


def anchor_x(plan: RenderPlan, left: int, width: int) -> int:
    """x of the text anchor for a band starting at `left`, honoring alignment."""
    if plan.style.align is Align.LEFT:
        return left
    return left + width // 2


def line_height(plan: RenderPlan) -> int:
    return plan.style.font_size_px + plan.style.line_spacing_px


def sort_events(events: list[PresentationEvent]) -> list[PresentationEvent]:
    return sorted(events, key=lambda e: (e.start_ms, e.layer, e.end_ms, e.style, e.text))
