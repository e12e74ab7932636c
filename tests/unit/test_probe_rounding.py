from __future__ import annotations

import subprocess

import pytest

from cuecast.exceptions import ResourceError
from cuecast.services import probe
from cuecast.utils import ffmpeg


def test_round_half_up_integer_arithmetic() -> None:
    assert probe.resample_samples(44100, 48000) == 40517
    assert probe.resample_samples(1, 2, 1) == 1
    assert probe.ms_from_samples(44100) == 1000
    assert probe.ms_from_samples(1, 2000) == 1
    assert probe.ms_from_samples(66) == 1


def test_durations_are_differences_of_cumulative_totals(monkeypatch) -> None:
    table = {"a.mp3": (44100, 44100), "b.mp3": (22050, 22050), "c.mp3": (100, 48000)}
    monkeypatch.setattr(ffmpeg, "probe_samples_and_rate", lambda path, ffprobe_bin="ffprobe": table[str(path)])

    result = probe.probe_durations(["a.mp3", "b.mp3", "c.mp3"])
    assert result.durations_ms[:2] == [1000, 1000]
    assert sum(result.durations_ms) == result.total_ms
    assert result.to_dict() == {"durationsMs": result.durations_ms, "totalMs": result.total_ms}


def test_container_duration_fallback(monkeypatch) -> None:
    monkeypatch.setattr(ffmpeg, "probe_samples_and_rate", lambda path, ffprobe_bin="ffprobe": (None, 44100))
    monkeypatch.setattr(ffmpeg, "probe_duration", lambda path, ffprobe_bin="ffprobe": 1.5)
    assert probe.probe_audio_ms("x.mp3") == 1500


def test_unknown_duration_is_a_resource_error(monkeypatch) -> None:
    monkeypatch.setattr(ffmpeg, "probe_samples_and_rate", lambda path, ffprobe_bin="ffprobe": (None, None))
    monkeypatch.setattr(ffmpeg, "probe_duration", lambda path, ffprobe_bin="ffprobe": None)
    with pytest.raises(ResourceError):
        probe.probe_audio_ms("x.mp3")
    with pytest.raises(ResourceError):
        probe.probe_durations([])


def test_probe_audio_ms_through_ffprobe(monkeypatch) -> None:
    def fake_run(cmd, **_kwargs):  # noqa: ANN001
        return subprocess.CompletedProcess(cmd, 0, '{"streams":[{"nb_samples":"96000","sample_rate":"48000"}]}', "")

    monkeypatch.setattr("cuecast.utils.ffmpeg.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(ffmpeg.subprocess, "run", fake_run)
    assert probe.probe_audio_ms("x.mp3") == 2000
