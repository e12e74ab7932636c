from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from cuecast.exceptions import InputValidationError


@dataclass(frozen=True)
class Cue:
    index: int
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class TimedText:
    """A piece of text bound to an absolute interval."""

    start_ms: int
    end_ms: int
    text: str

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class Timeline:
    cues: tuple[Cue, ...]
    lines: tuple[str, ...]
    total_ms: int

    @classmethod
    def build(
        cls,
        cues: Iterable[Cue],
        lines: Sequence[str],
        total_ms: int | None = None,
    ) -> "Timeline":
        cue_list = tuple(cues)
        line_list = tuple(str(line) for line in lines)
        validate_pairing(len(cue_list), len(line_list))

        previous_start = 0
        for cue in cue_list:
            if cue.start_ms < 0:
                raise InputValidationError(f"cue {cue.index} starts before 0 ms")
            if cue.end_ms < cue.start_ms:
                raise InputValidationError(
                    f"cue {cue.index} ends before it starts ({cue.start_ms} > {cue.end_ms})"
                )
            if cue.start_ms < previous_start:
                raise InputValidationError(
                    f"cue {cue.index} starts before the previous cue ({cue.start_ms} < {previous_start})"
                )
            previous_start = cue.start_ms

        last_end = max(cue.end_ms for cue in cue_list)
        total = max(int(total_ms or 0), last_end)
        return cls(cues=cue_list, lines=line_list, total_ms=total)

    def __len__(self) -> int:
        return len(self.cues)

    def pairs(self) -> Iterable[tuple[Cue, str]]:
        return zip(self.cues, self.lines)

    def next_start(self, index: int) -> int:
        """Start of the following cue, or the timeline end for the last cue."""
        if index + 1 < len(self.cues):
            return self.cues[index + 1].start_ms
        return self.total_ms

    def extended_to(self, total_ms: int) -> "Timeline":
        """
        Stretch the timeline to an externally known total (e.g. audio length).

        The last cue's end moves with it; shorter totals are ignored so the
        ordering invariants never break.
        """
        if total_ms <= self.total_ms:
            return self
        last = self.cues[-1]
        cues = self.cues[:-1] + (replace(last, end_ms=max(last.end_ms, total_ms)),)
        return Timeline(cues=cues, lines=self.lines, total_ms=total_ms)


def validate_pairing(cue_count: int, line_count: int) -> None:
    if cue_count == 0:
        raise InputValidationError("timeline is empty; at least one cue is required")
    if cue_count != line_count:
        raise InputValidationError(
            f"lines count ({line_count}) must match cues ({cue_count})"
        )
