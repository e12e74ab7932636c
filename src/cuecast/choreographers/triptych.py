"""
Scrolling-triptych layout.

Text climbs through three slots in a band near the bottom of the frame:
it enters from below, settles as the highlighted current line, is promoted
to the dimmed previous slot when the next line arrives, holds there, and
finally exits upward while fading out. The next line's entry runs during
the current line's promotion, so motion is continuous.

Per slot i, with p(i) the start of slot i+1 (or the timeline end):

    enter     [s(i), s(i)+S)        ENTER   -> CURRENT
    settle    [s(i)+S, p(i))        CURRENT
    promote   [p(i), p(i)+S)        CURRENT -> PREVIOUS
    hold      [p(i)+S, p(i+1))      PREVIOUS
    exit      [p(i+1), p(i+1)+S)    PREVIOUS -> EXIT (fading)

Windows are clipped to the following state's start; empty windows are
dropped here rather than passed on.
"""

from __future__ import annotations

from dataclasses import dataclass

from cuecast.choreographers.base import (
    STYLE_CURRENT,
    STYLE_PREVIOUS,
    anchor_x,
    line_height,
    sort_events,
    text_budget,
)
from cuecast.domain.events import Move, Position, PresentationEvent, timed_event
from cuecast.domain.plan import RenderPlan
from cuecast.domain.timeline import TimedText, Timeline
from cuecast.layout.split import SHIFT_MS, expand_timeline
from cuecast.layout.wrap import wrap_text

LAYER_PREVIOUS = 0
LAYER_CURRENT = 1
SLOT_LINES = 2


@dataclass(frozen=True)
class TriptychTracks:
    x: int
    enter_y: int
    current_y: int
    previous_y: int
    exit_y: int


def triptych_tracks(plan: RenderPlan) -> TriptychTracks:
    canvas = plan.canvas
    style = plan.style
    slot_height = line_height(plan) * SLOT_LINES
    current_y = max(0, canvas.height - style.padding_bottom - slot_height)
    previous_y = current_y - slot_height
    return TriptychTracks(
        x=anchor_x(plan, style.padding_left, plan.text_width),
        enter_y=canvas.height,
        current_y=current_y,
        previous_y=previous_y,
        exit_y=previous_y - slot_height,
    )


class TriptychChoreographer:
    def __init__(self, *, shift_ms: int = SHIFT_MS) -> None:
        self.shift_ms = shift_ms

    def slots(self, timeline: Timeline, plan: RenderPlan) -> list[TimedText]:
        budget = text_budget(plan, plan.text_width, bold=True)
        return expand_timeline(timeline.pairs(), budget, shift_ms=self.shift_ms)

    def choreograph(self, timeline: Timeline, plan: RenderPlan) -> list[PresentationEvent]:
        slots = self.slots(timeline, plan)
        if not slots:
            return []
        tracks = triptych_tracks(plan)
        budget = text_budget(plan, plan.text_width, bold=True)
        shift = self.shift_ms
        total = timeline.total_ms

        starts: list[int] = []
        for slot in slots:
            starts.append(max(slot.start_ms, starts[-1]) if starts else slot.start_ms)
        # p[i]: when slot i leaves the current slot; p[n-1] is the end.
        promotions = starts[1:] + [total]

        x = tracks.x
        events: list[PresentationEvent | None] = []
        count = len(slots)
        for i, slot in enumerate(slots):
            text = wrap_text(slot.text, budget)
            start = starts[i]
            promote_at = promotions[i]

            enter_end = min(start + shift, promote_at)
            events.append(
                timed_event(
                    layer=LAYER_CURRENT,
                    start_ms=start,
                    end_ms=enter_end,
                    style=STYLE_CURRENT,
                    text=text,
                    placement=Move(x, tracks.enter_y, x, tracks.current_y, 0, enter_end - start),
                )
            )
            events.append(
                timed_event(
                    layer=LAYER_CURRENT,
                    start_ms=enter_end,
                    end_ms=promote_at,
                    style=STYLE_CURRENT,
                    text=text,
                    placement=Position(x, tracks.current_y),
                )
            )
            if i + 1 >= count:
                continue

            leave_at = promotions[i + 1]
            promote_end = min(promote_at + shift, leave_at)
            events.append(
                timed_event(
                    layer=LAYER_PREVIOUS,
                    start_ms=promote_at,
                    end_ms=promote_end,
                    style=STYLE_PREVIOUS,
                    text=text,
                    placement=Move(x, tracks.current_y, x, tracks.previous_y, 0, promote_end - promote_at),
                )
            )
            events.append(
                timed_event(
                    layer=LAYER_PREVIOUS,
                    start_ms=promote_end,
                    end_ms=leave_at,
                    style=STYLE_PREVIOUS,
                    text=text,
                    placement=Position(x, tracks.previous_y),
                )
            )
            if i + 2 >= count:
                continue

            exit_end = min(leave_at + shift, total)
            events.append(
                timed_event(
                    layer=LAYER_PREVIOUS,
                    start_ms=leave_at,
                    end_ms=exit_end,
                    style=STYLE_PREVIOUS,
                    text=text,
                    placement=Move(x, tracks.previous_y, x, tracks.exit_y, 0, exit_end - leave_at),
                    fade=(0, exit_end - leave_at),
                )
            )

        return sort_events([e for e in events if e is not None])
