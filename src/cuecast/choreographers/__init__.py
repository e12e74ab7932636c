from __future__ import annotations

from cuecast.choreographers.base import Choreographer
from cuecast.choreographers.panel import PanelChoreographer
from cuecast.choreographers.single_line import SingleLineChoreographer
from cuecast.choreographers.triptych import TriptychChoreographer
from cuecast.domain.plan import LayoutKind

CHOREOGRAPHERS: dict[LayoutKind, type] = {
    LayoutKind.TRIPTYCH: TriptychChoreographer,
    LayoutKind.SINGLE_LINE: SingleLineChoreographer,
    LayoutKind.PAGINATED: PanelChoreographer,
}

# Adding a LayoutKind without a choreographer fails at import time.
if set(CHOREOGRAPHERS) != set(LayoutKind):
    raise RuntimeError("every LayoutKind needs a choreographer")


def choreographer_for(kind: LayoutKind) -> Choreographer:
    return CHOREOGRAPHERS[kind]()


__all__ = [
    "CHOREOGRAPHERS",
    "Choreographer",
    "PanelChoreographer",
    "SingleLineChoreographer",
    "TriptychChoreographer",
    "choreographer_for",
]
