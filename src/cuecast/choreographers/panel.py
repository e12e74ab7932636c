"""
Paginated-panel layout.

Text is shown a page at a time in a fixed region (the left panel, or the
bottom band for the replace-style underlay). Every wrapped physical line is
a segment with its own time slice inside its cue; the active segment is
highlighted while the rest of the page stays dimmed. Pages turn instead of
scrolling.
"""

from __future__ import annotations

from dataclasses import dataclass

from cuecast.choreographers.base import (
    STYLE_CURRENT,
    STYLE_DIMMED,
    STYLE_META,
    STYLE_TITLE,
    anchor_x,
    line_height,
    sort_events,
    text_budget,
)
from cuecast.domain.events import Position, PresentationEvent, timed_event
from cuecast.domain.plan import Region, RenderPlan
from cuecast.domain.request import TextLayout
from cuecast.domain.timeline import Cue, Timeline
from cuecast.exceptions import InputValidationError
from cuecast.layout.wrap import char_budget, wrap_lines

TITLE_SCALE = 1.2
META_SCALE = 0.75
LAYER_DIMMED = 0
LAYER_HIGHLIGHT = 1
LAYER_HEADER = 2


def title_font_size(font_size: int) -> int:
    return int(round(font_size * TITLE_SCALE))


def meta_font_size(font_size: int) -> int:
    return int(round(font_size * META_SCALE))


@dataclass(frozen=True)
class Segment:
    cue_index: int
    line_index: int
    start_ms: int
    end_ms: int
    text: str


@dataclass(frozen=True)
class Page:
    segments: tuple[Segment, ...]

    @property
    def start_ms(self) -> int:
        return self.segments[0].start_ms

    @property
    def end_ms(self) -> int:
        return max(segment.end_ms for segment in self.segments)


def cue_segments(cue: Cue, lines: list[str]) -> list[Segment]:
    """Slice a cue's interval across its lines in proportion to their length."""
    total_chars = sum(len(line) for line in lines)
    if total_chars == 0:
        return []
    duration = cue.duration_ms
    segments: list[Segment] = []
    consumed = 0
    start = cue.start_ms
    for k, line in enumerate(lines):
        consumed += len(line)
        if k == len(lines) - 1:
            end = cue.end_ms
        else:
            end = cue.start_ms + int(round(duration * consumed / total_chars))
        segments.append(Segment(cue.index, k, start, end, line))
        start = end
    return segments


def paginate(groups: list[list[Segment]], visible_lines: int) -> list[Page]:
    """
    Greedy pagination over per-cue segment groups.

    A cue that does not fit on one page gets pages of its own; otherwise
    whole cues are packed while the page stays within `visible_lines`.
    """
    if visible_lines <= 0:
        raise InputValidationError(f"visibleLines must be positive, got {visible_lines}")
    pages: list[Page] = []
    current: list[Segment] = []
    for group in groups:
        if not group:
            continue
        if len(group) > visible_lines:
            if current:
                pages.append(Page(tuple(current)))
                current = []
            for k in range(0, len(group), visible_lines):
                pages.append(Page(tuple(group[k : k + visible_lines])))
            continue
        if len(current) + len(group) > visible_lines:
            pages.append(Page(tuple(current)))
            current = []
        current.extend(group)
    if current:
        pages.append(Page(tuple(current)))
    return pages


class PanelChoreographer:
    def header_lines(self, plan: RenderPlan, region: Region) -> tuple[list[str], str]:
        header = plan.meta_header
        if plan.text_layout is not TextLayout.PANEL_LEFT or not header.visible:
            return [], ""
        title_budget = char_budget(
            region.width,
            title_font_size(plan.style.font_size_px),
            bold=True,
            outline_px=plan.style.outline_px,
            min_chars=plan.min_wrap_chars,
        )
        title = wrap_lines(header.story_title or "", title_budget)
        meta = " · ".join(part for part in (header.level, header.language_name) if part)
        return title, meta

    def segments(self, timeline: Timeline, plan: RenderPlan) -> list[list[Segment]]:
        region = plan.text_region()
        budget = text_budget(plan, region.width, bold=True)
        return [cue_segments(cue, wrap_lines(line, budget)) for cue, line in timeline.pairs()]

    def pages(self, timeline: Timeline, plan: RenderPlan) -> list[Page]:
        return paginate(self.segments(timeline, plan), plan.visible_lines)

    def choreograph(self, timeline: Timeline, plan: RenderPlan) -> list[PresentationEvent]:
        region = plan.text_region()
        step = line_height(plan)
        x = anchor_x(plan, region.x, region.width)
        events: list[PresentationEvent | None] = []

        title, meta = self.header_lines(plan, region)
        top = region.y
        if title:
            events.append(
                timed_event(
                    layer=LAYER_HEADER,
                    start_ms=0,
                    end_ms=timeline.total_ms,
                    style=STYLE_TITLE,
                    text="\n".join(title),
                    placement=Position(x, top),
                )
            )
            top += len(title) * (title_font_size(plan.style.font_size_px) + plan.style.line_spacing_px)
        if meta:
            events.append(
                timed_event(
                    layer=LAYER_HEADER,
                    start_ms=0,
                    end_ms=timeline.total_ms,
                    style=STYLE_META,
                    text=meta,
                    placement=Position(x, top),
                )
            )
            top += meta_font_size(plan.style.font_size_px) + plan.style.line_spacing_px
        if title or meta:
            top += step

        for page in self.pages(timeline, plan):
            page_start = page.start_ms
            page_end = page.end_ms
            for row, segment in enumerate(page.segments):
                where = Position(x, top + row * step)
                events.append(
                    timed_event(
                        layer=LAYER_DIMMED,
                        start_ms=page_start,
                        end_ms=segment.start_ms,
                        style=STYLE_DIMMED,
                        text=segment.text,
                        placement=where,
                    )
                )
                events.append(
                    timed_event(
                        layer=LAYER_HIGHLIGHT,
                        start_ms=segment.start_ms,
                        end_ms=segment.end_ms,
                        style=STYLE_CURRENT,
                        text=segment.text,
                        placement=where,
                    )
                )
                events.append(
                    timed_event(
                        layer=LAYER_DIMMED,
                        start_ms=segment.end_ms,
                        end_ms=page_end,
                        style=STYLE_DIMMED,
                        text=segment.text,
                        placement=where,
                    )
                )

        return sort_events([e for e in events if e is not None])
