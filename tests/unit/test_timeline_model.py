from __future__ import annotations

import pytest

from cuecast.domain.timeline import Cue, Timeline, validate_pairing
from cuecast.exceptions import ErrorCategory, InputValidationError


def _cues(*spans: tuple[int, int]) -> list[Cue]:
    return [Cue(i, s, e) for i, (s, e) in enumerate(spans)]


def test_total_is_at_least_the_last_end() -> None:
    tl = Timeline.build(_cues((0, 1000), (1000, 2500)), ["a", "b"], total_ms=2000)
    assert tl.total_ms == 2500
    tl = Timeline.build(_cues((0, 1000)), ["a"], total_ms=4000)
    assert tl.total_ms == 4000


def test_mismatched_lengths_rejected() -> None:
    with pytest.raises(InputValidationError) as exc:
        Timeline.build(_cues((0, 1000), (1000, 2000)), ["only one"])
    assert exc.value.category == ErrorCategory.VALIDATION
    assert str(exc.value) == "lines count (1) must match cues (2)"


def test_empty_timeline_rejected() -> None:
    with pytest.raises(InputValidationError):
        validate_pairing(0, 0)


@pytest.mark.parametrize(
    "spans",
    [
        [(-1, 100)],
        [(500, 100)],
        [(1000, 2000), (500, 2500)],
    ],
)
def test_ordering_violations_rejected(spans) -> None:
    with pytest.raises(InputValidationError):
        Timeline.build(_cues(*spans), ["x"] * len(spans))


def test_next_start_and_extension() -> None:
    tl = Timeline.build(_cues((0, 1000), (1000, 2000)), ["a", "b"])
    assert tl.next_start(0) == 1000
    assert tl.next_start(1) == 2000

    extended = tl.extended_to(3500)
    assert extended.total_ms == 3500
    assert extended.cues[-1].end_ms == 3500
    assert extended.cues[0] == tl.cues[0]
    assert tl.extended_to(1500) is tl
