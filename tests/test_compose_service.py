from __future__ import annotations

from pathlib import Path

import pytest

from cuecast.config.settings import Settings
from cuecast.domain.timeline import Cue, Timeline
from cuecast.exceptions import EncoderError
from cuecast.services.background import compose_background
from cuecast.services.compose import ComposeService
from cuecast.utils import ffmpeg


def _capture_cmd(monkeypatch, *, write_output: bool = True) -> dict[str, list[str]]:
    calls: dict[str, list[str]] = {}

    def fake_run(cmd: list[str], *, stderr_path=None, timeout_s=None) -> None:
        calls["cmd"] = cmd
        calls["timeout"] = timeout_s
        if write_output:
            Path(cmd[-1]).write_bytes(b"0")

    monkeypatch.setattr(ffmpeg, "ensure_ffmpeg", lambda *_args: "ffmpeg")
    monkeypatch.setattr(ffmpeg, "run_ffmpeg", fake_run)
    return calls


def _files(tmp_path: Path) -> tuple[Path, Path, Path]:
    audio = tmp_path / "audio.mp3"
    overlay = tmp_path / "overlay.ass"
    audio.write_bytes(b"audio")
    overlay.write_text("[Script Info]\n", encoding="utf-8")
    return audio, overlay, tmp_path / "out.mp4"


def _value(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


def test_solid_color_background(monkeypatch, make_case, tmp_path: Path) -> None:
    _, plan = make_case([(0, 1000)], ["a"], background={"colorHex": "#102030"}, fps=25)
    audio, overlay, out = _files(tmp_path)
    calls = _capture_cmd(monkeypatch)

    artifact = ComposeService(Settings(encode_timeout_s=42)).render(
        plan=plan, total_ms=2500, audio=audio, overlay=overlay, output=out
    )

    cmd = calls["cmd"]
    assert artifact.path == out
    assert calls["timeout"] == 42
    assert cmd[:4] == ["ffmpeg", "-y", "-f", "lavfi"]
    assert "color=c=0x102030:s=1080x1920:r=25" in cmd
    assert _value(cmd, "-filter_complex") == f"[0:v]ass={ffmpeg.escape_filter_path(str(overlay))}[vout]"
    assert cmd[cmd.index("-map"):cmd.index("-map") + 4] == ["-map", "[vout]", "-map", "1:a"]
    assert _value(cmd, "-c:v") == "libx264"
    assert _value(cmd, "-crf") == "18"
    assert _value(cmd, "-b:a") == "192k"
    assert _value(cmd, "-movflags") == "+faststart"
    assert cmd[-3:] == ["-t", "2.500", str(out)]


def test_span_chain_is_padded_to_timeline(monkeypatch, make_case, tmp_path: Path) -> None:
    _, plan = make_case([(0, 1000)], ["a"])
    cues = [Cue(i, i * 1000, i * 1000 + 1000) for i in range(6)]
    timeline = Timeline.build(cues, ["x"] * 6)
    background = compose_background([(0, "a.jpg"), (2, "b.jpg"), (5, "c.jpg")], timeline, plan)
    audio, overlay, out = _files(tmp_path)
    calls = _capture_cmd(monkeypatch)

    ComposeService(Settings()).render(
        plan=plan, total_ms=6000, audio=audio, overlay=overlay, output=out, background=background
    )

    cmd = calls["cmd"]
    assert [cmd[i + 1] for i, v in enumerate(cmd) if v == "-i"] == ["a.jpg", "b.jpg", "c.jpg", str(audio)]
    assert "3:a" in cmd
    graph = _value(cmd, "-filter_complex")
    assert graph.startswith(background.filter_complex + ";[bg]tpad=stop_mode=clone:stop_duration=0.800,ass=")
    assert graph.endswith("[vout]")


def test_panel_is_drawn_before_subtitles(make_case, tmp_path: Path) -> None:
    _, plan = make_case([(0, 1000)], ["a"], layout="PANEL_LEFT")
    audio, overlay, out = _files(tmp_path)
    graph = ComposeService(Settings()).build_graph(plan=plan, total_ms=1000, overlay=overlay, background=None)
    text = graph.serialize()
    assert "drawbox=x=0:y=0:w=389:h=1920:color=0x141416@0.96:t=fill" in text
    assert "drawbox=x=387:y=0:w=2:h=1920:color=0xFFFFFF@0.12:t=fill" in text
    assert text.index("drawbox") < text.index("ass=")


def test_missing_output_is_an_encoder_error(monkeypatch, make_case, tmp_path: Path) -> None:
    _, plan = make_case([(0, 1000)], ["a"])
    audio, overlay, out = _files(tmp_path)
    _capture_cmd(monkeypatch, write_output=False)
    with pytest.raises(EncoderError, match="no output"):
        ComposeService(Settings()).render(plan=plan, total_ms=1000, audio=audio, overlay=overlay, output=out)


def test_missing_audio_is_rejected_before_encoding(monkeypatch, make_case, tmp_path: Path) -> None:
    _, plan = make_case([(0, 1000)], ["a"])
    _, overlay, out = _files(tmp_path)
    calls = _capture_cmd(monkeypatch)
    with pytest.raises(EncoderError, match="Audio not found"):
        ComposeService(Settings()).render(
            plan=plan, total_ms=1000, audio=tmp_path / "nope.mp3", overlay=overlay, output=out
        )
    assert "cmd" not in calls
