from __future__ import annotations

import pytest

from cuecast.domain.timeline import Cue, Timeline
from cuecast.services.background import (
    compose_background,
    normalize_spans,
    span_clips,
    transition_overlap,
)


def _timeline(starts: list[int], total_ms: int) -> Timeline:
    ends = starts[1:] + [total_ms]
    cues = [Cue(i, s, e) for i, (s, e) in enumerate(zip(starts, ends))]
    return Timeline.build(cues, ["x"] * len(cues), total_ms)


def _six_cues() -> Timeline:
    return _timeline([0, 1000, 2000, 3000, 4000, 5000], 6000)


def test_normalize_clamps_sorts_dedupes_and_anchors_at_zero() -> None:
    spans = [(5, "c"), (2, "b"), (2, "dup"), (9, "z")]
    assert normalize_spans(spans, 6) == [(0, "b"), (2, "b"), (5, "c")]
    assert normalize_spans([(-3, "a")], 6) == [(0, "a")]
    assert normalize_spans(spans, 0) == []


def test_clip_durations_come_from_cue_starts() -> None:
    clips = span_clips([(0, "a"), (2, "b"), (5, "c")], _six_cues())
    assert [(c.start_ms, c.duration_ms) for c in clips] == [(0, 2000), (2000, 3000), (5000, 1000)]


def test_three_span_scenario(make_case) -> None:
    _, plan = make_case([(0, 1000)], ["a"])
    comp = compose_background([(0, "a.jpg"), (2, "b.jpg"), (5, "c.jpg")], _six_cues(), plan)
    assert comp is not None
    assert comp.merges == 2
    assert comp.chain_duration_s == pytest.approx(6.0 - 0.8)
    assert comp.chain_duration_s < sum(comp.durations_s)
    assert comp.input_args()[:6] == ["-loop", "1", "-t", "2.000", "-i", "a.jpg"]

    graph = comp.filter_complex
    assert "[v0][v1]xfade=transition=fade:duration=0.400:offset=1.800[x1]" in graph
    assert "[x1][v2]xfade=transition=fade:duration=0.400:offset=4.400[bg]" in graph
    assert graph.count("xfade=") == 2
    first_stage = graph.split(";")[0]
    assert first_stage == (
        "[0:v]scale=w=1080:h=1920:force_original_aspect_ratio=decrease,"
        "pad=1080:1920:(ow-iw)/2:(oh-ih)/2:color=black,fps=30,format=yuv420p,setsar=1[v0]"
    )


def test_trailing_transition_offsets(make_case) -> None:
    _, plan = make_case([(0, 1000)], ["a"], effects={"transition": {"centerOnBoundary": False}})
    comp = compose_background([(0, "a"), (2, "b"), (5, "c")], _six_cues(), plan)
    assert "offset=1.600[x1]" in comp.filter_complex
    assert "offset=4.200[bg]" in comp.filter_complex


@pytest.mark.parametrize(
    "starts,total,t",
    [
        ([0, 3000, 3100, 9000], 12000, 0.4),
        ([0, 500, 1000], 1400, 1.0),
        ([0, 2000, 2300, 2310, 8000], 9000, 0.25),
    ],
)
def test_chain_duration_formula(make_case, starts, total, t) -> None:
    _, plan = make_case([(0, 1000)], ["a"], effects={"transition": {"durationSec": t}})
    timeline = _timeline(starts, total)
    spans = [(i, f"img{i}") for i in range(len(starts))]
    comp = compose_background(spans, timeline, plan)
    d = comp.durations_s
    expected = sum(d) - sum(transition_overlap(t, a, b) for a, b in zip(d, d[1:]))
    assert comp.chain_duration_s == pytest.approx(expected)
    if min(d) >= 0.05:
        assert expected == pytest.approx(sum(d) - sum(min(t, min(a, b)) for a, b in zip(d, d[1:])))


def test_single_span_passes_through(make_case) -> None:
    _, plan = make_case([(0, 1000)], ["a"])
    comp = compose_background([(3, "only.jpg")], _six_cues(), plan)
    assert comp.merges == 0
    assert comp.clip_count == 1
    assert comp.filter_complex.endswith("[v0]copy[bg]")
    assert comp.durations_s == [6.0]


def test_no_positive_span_means_no_composition(make_case) -> None:
    _, plan = make_case([(0, 1000)], ["a"])
    assert compose_background([], _six_cues(), plan) is None
    empty = Timeline.build([Cue(0, 0, 0)], ["x"], 0)
    assert compose_background([(0, "a")], empty, plan) is None


def test_motion_stage_for_long_clips(make_case) -> None:
    _, plan = make_case([(0, 1000)], ["a"], effects={"motion": {"enabled": True, "minSpanSec": 1.5}})
    comp = compose_background([(0, "a"), (2, "b"), (5, "c")], _six_cues(), plan)
    stages = comp.filter_complex.split(";")
    assert "zoompan=z='1+(0.100)*(0.5*(1-cos(PI*on/60)))'" in stages[0]
    assert "scale=w=1146:h=2036" in stages[0]
    assert "s=1080x1920:fps=30" in stages[0]
    # The 1 s clip is below the motion threshold.
    assert "zoompan" not in stages[2]
