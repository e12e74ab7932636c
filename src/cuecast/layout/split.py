from __future__ import annotations

from typing import Iterable

from cuecast.domain.timeline import Cue, TimedText
from cuecast.layout.wrap import wrap_lines

SHIFT_MS = 240
MIN_SHARE = 0.35
MAX_SHARE = 0.65


def _chars(words: list[str]) -> int:
    return len(" ".join(words))


def balance_chunks(first: list[str], rest: list[str]) -> tuple[list[str], list[str]]:
    """Move trailing words of A into B until B is at least two words and 35% of the text."""
    a = list(first)
    b = list(rest)
    while len(a) > 2:
        total = _chars(a) + _chars(b)
        share = _chars(b) / total if total else 1.0
        if len(b) >= 2 and share >= MIN_SHARE:
            break
        b.insert(0, a.pop())
    return a, b


def split_midpoint(start_ms: int, end_ms: int, len_a: int, len_b: int, *, shift_ms: int = SHIFT_MS) -> int:
    duration = end_ms - start_ms
    ratio = len_a / (len_a + len_b) if (len_a + len_b) else 0.5
    ratio = min(MAX_SHARE, max(MIN_SHARE, ratio))
    offset = int(round(duration * ratio))
    offset = min(duration - shift_ms, max(shift_ms, offset))
    return start_ms + offset


def split_cue(
    text: str,
    start_ms: int,
    end_ms: int,
    budget: int,
    *,
    shift_ms: int = SHIFT_MS,
) -> list[TimedText]:
    """
    Present one cue as one part, or as two temporally offset parts A then B.

    The split happens only when the text wraps to more than one line at
    `budget` and the cue is long enough for two full animation windows.
    """
    whole = [TimedText(start_ms, end_ms, text)]
    if end_ms - start_ms < 2 * shift_ms:
        return whole
    lines = wrap_lines(text, budget)
    if len(lines) <= 1:
        return whole

    a, b = balance_chunks(lines[0].split(), " ".join(lines[1:]).split())
    if not a or not b:
        return whole
    chunk_a = " ".join(a)
    chunk_b = " ".join(b)
    mid = split_midpoint(start_ms, end_ms, len(chunk_a), len(chunk_b), shift_ms=shift_ms)
    return [
        TimedText(start_ms, mid, chunk_a),
        TimedText(mid, end_ms, chunk_b),
    ]


def expand_timeline(
    pairs: Iterable[tuple[Cue, str]],
    budget: int,
    *,
    shift_ms: int = SHIFT_MS,
) -> list[TimedText]:
    """Flatten cues into slots; each cue contributes one or two."""
    slots: list[TimedText] = []
    for cue, text in pairs:
        slots.extend(split_cue(text, cue.start_ms, cue.end_ms, budget, shift_ms=shift_ms))
    return slots
