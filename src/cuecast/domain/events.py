from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Position:
    x: int
    y: int


@dataclass(frozen=True)
class Move:
    """Animated move between two points, times relative to the event start."""

    x1: int
    y1: int
    x2: int
    y2: int
    t1_ms: int
    t2_ms: int


Placement = Union[Position, Move, None]


@dataclass(frozen=True)
class PresentationEvent:
    layer: int
    start_ms: int
    end_ms: int
    style: str
    placement: Placement
    text: str
    fade: tuple[int, int] | None = None

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


def timed_event(
    *,
    layer: int,
    start_ms: int,
    end_ms: int,
    style: str,
    text: str,
    placement: Placement = None,
    fade: tuple[int, int] | None = None,
) -> PresentationEvent | None:
    """Build an event, or None when the window is empty."""
    if end_ms <= start_ms:
        return None
    return PresentationEvent(
        layer=layer,
        start_ms=start_ms,
        end_ms=end_ms,
        style=style,
        placement=placement,
        text=text,
        fade=fade,
    )
