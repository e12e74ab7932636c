from __future__ import annotations

from cuecast.choreographers.base import STYLE_CURRENT, sort_events, text_budget
from cuecast.domain.events import PresentationEvent, timed_event
from cuecast.domain.plan import RenderPlan
from cuecast.domain.timeline import Timeline
from cuecast.layout.wrap import wrap_text


class SingleLineChoreographer:
    """
    One cue on screen at a time, placed by the style's own alignment.

    A cue stays up until the next one starts; changes are instant.
    """

    def choreograph(self, timeline: Timeline, plan: RenderPlan) -> list[PresentationEvent]:
        budget = text_budget(plan, plan.text_width, bold=plan.style.current.bold)
        events = []
        for i, (cue, line) in enumerate(timeline.pairs()):
            event = timed_event(
                layer=0,
                start_ms=cue.start_ms,
                end_ms=timeline.next_start(i),
                style=STYLE_CURRENT,
                text=wrap_text(line, budget),
            )
            if event is not None:
                events.append(event)
        return sort_events(events)
