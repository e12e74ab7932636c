from __future__ import annotations

from cuecast.choreographers.triptych import TriptychChoreographer, triptych_tracks
from cuecast.domain.events import Move, Position


def _three_lines(make_case):
    return make_case([(0, 1000), (1000, 2000), (2000, 3000)], ["one", "two", "three"])


def test_state_windows_for_three_slots(make_case) -> None:
    timeline, plan = _three_lines(make_case)
    events = TriptychChoreographer().choreograph(timeline, plan)
    windows = {(e.text, e.start_ms, e.end_ms, e.style) for e in events}
    assert windows == {
        ("one", 0, 240, "cur"),
        ("one", 240, 1000, "cur"),
        ("one", 1000, 1240, "prev"),
        ("one", 1240, 2000, "prev"),
        ("one", 2000, 2240, "prev"),
        ("two", 1000, 1240, "cur"),
        ("two", 1240, 2000, "cur"),
        ("two", 2000, 2240, "prev"),
        ("two", 2240, 3000, "prev"),
        ("three", 2000, 2240, "cur"),
        ("three", 2240, 3000, "cur"),
    }


def test_edge_slots_omit_tracks(make_case) -> None:
    timeline, plan = _three_lines(make_case)
    events = TriptychChoreographer().choreograph(timeline, plan)
    last = [e for e in events if e.text == "three"]
    assert all(e.style == "cur" for e in last)
    faded = [e for e in events if e.fade is not None]
    assert [e.text for e in faded] == ["one"]
    assert faded[0].fade == (0, 240)


def test_placements_follow_tracks(make_case) -> None:
    timeline, plan = _three_lines(make_case)
    tracks = triptych_tracks(plan)
    events = TriptychChoreographer().choreograph(timeline, plan)
    enter = next(e for e in events if e.text == "one" and e.start_ms == 0)
    assert enter.placement == Move(tracks.x, tracks.enter_y, tracks.x, tracks.current_y, 0, 240)
    hold = next(e for e in events if e.text == "one" and e.start_ms == 1240)
    assert hold.placement == Position(tracks.x, tracks.previous_y)
    assert tracks.exit_y < tracks.previous_y < tracks.current_y < tracks.enter_y


def test_every_event_has_positive_duration_on_dense_input(make_case) -> None:
    spans = [(i * 100, i * 100 + 100) for i in range(12)] + [(1200, 1200), (1200, 9000)]
    lines = [f"line {i}" for i in range(len(spans))]
    timeline, plan = make_case(spans, lines)
    events = TriptychChoreographer().choreograph(timeline, plan)
    assert events
    assert all(e.end_ms > e.start_ms for e in events)


def test_long_cue_contributes_two_slots(make_case) -> None:
    text = " ".join(["word"] * 40)
    timeline, plan = make_case([(0, 6000)], [text])
    chor = TriptychChoreographer()
    slots = chor.slots(timeline, plan)
    assert len(slots) == 2
    events = chor.choreograph(timeline, plan)
    # The first chunk is promoted when the second enters; nothing exits.
    assert {e.style for e in events if e.text == events[0].text} == {"cur", "prev"}
    assert all(e.fade is None for e in events)


def test_output_is_deterministic(make_case) -> None:
    timeline, plan = _three_lines(make_case)
    assert TriptychChoreographer().choreograph(timeline, plan) == TriptychChoreographer().choreograph(
        timeline, plan
    )
