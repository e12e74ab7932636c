"""
Pixel-budget-aware word wrapping.

Widths are estimated from the font size with a fixed average glyph width
per weight; there is no font metrics lookup, so the same text and style
always wrap the same way.
"""

from __future__ import annotations

import math

GLYPH_WIDTH_NORMAL = 0.52
GLYPH_WIDTH_BOLD = 0.56
MIN_CHARS_PER_LINE = 12
LINE_BREAK = "\n"


def glyph_width(font_size: int, *, bold: bool = False) -> float:
    return font_size * (GLYPH_WIDTH_BOLD if bold else GLYPH_WIDTH_NORMAL)


def char_budget(
    available_px: int,
    font_size: int,
    *,
    bold: bool = False,
    outline_px: int = 0,
    min_chars: int = MIN_CHARS_PER_LINE,
) -> int:
    usable = available_px - outline_px * 2
    per_glyph = glyph_width(font_size, bold=bold)
    if usable <= 0 or per_glyph <= 0:
        return max(1, min_chars)
    return max(max(1, min_chars), int(math.floor(usable / per_glyph)))


def _hard_split(word: str, budget: int) -> list[str]:
    return [word[i : i + budget] for i in range(0, len(word), budget)]


def wrap_lines(text: str, budget: int) -> list[str]:
    budget = max(1, budget)
    lines: list[str] = []
    current = ""
    for word in text.split():
        if len(word) > budget:
            if current:
                lines.append(current)
            chunks = _hard_split(word, budget)
            lines.extend(chunks[:-1])
            current = chunks[-1]
            continue
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= budget:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def wrap_text(text: str, budget: int) -> str:
    return LINE_BREAK.join(wrap_lines(text, budget))
