"""
Audio duration probing.

Durations are derived from sample counts rather than container metadata
where possible: every file's samples are resampled to a common rate with
integer round-half-up arithmetic, accumulated, and converted to
milliseconds. Per-file durations are differences of the cumulative totals,
so they always add up to the reported total.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from cuecast.exceptions import ResourceError
from cuecast.utils import ffmpeg
from cuecast.utils.logging import get_logger

log = get_logger(__name__)

TARGET_RATE = 44100


def resample_samples(samples: int, src_rate: int, dst_rate: int = TARGET_RATE) -> int:
    if src_rate <= 0:
        raise ValueError(f"sample rate must be positive, got {src_rate}")
    return (samples * dst_rate + src_rate // 2) // src_rate


def ms_from_samples(samples: int, rate: int = TARGET_RATE) -> int:
    return (samples * 1000 + rate // 2) // rate


@dataclass(frozen=True)
class ProbeResult:
    durations_ms: list[int]
    total_ms: int

    def to_dict(self) -> dict:
        return {"durationsMs": self.durations_ms, "totalMs": self.total_ms}


def target_samples(path: str | Path, *, ffprobe_bin: str = "ffprobe") -> int:
    """Sample count of `path` at TARGET_RATE, falling back to container duration."""
    samples, rate = ffmpeg.probe_samples_and_rate(path, ffprobe_bin=ffprobe_bin)
    if samples is not None and rate:
        return resample_samples(samples, rate)
    seconds = ffmpeg.probe_duration(path, ffprobe_bin=ffprobe_bin)
    if seconds is None:
        raise ResourceError(f"Unable to determine audio duration for {path}")
    log.debug("No sample count for %s; using container duration %.3fs", path, seconds)
    return int(seconds * TARGET_RATE + 0.5)


def probe_durations(paths: Sequence[str | Path], *, ffprobe_bin: str = "ffprobe") -> ProbeResult:
    if not paths:
        raise ResourceError("at least one file is required to probe")
    cumulative = 0
    previous_ms = 0
    durations: list[int] = []
    for path in paths:
        cumulative += target_samples(path, ffprobe_bin=ffprobe_bin)
        current_ms = ms_from_samples(cumulative)
        durations.append(current_ms - previous_ms)
        previous_ms = current_ms
    return ProbeResult(durations_ms=durations, total_ms=ms_from_samples(cumulative))


def probe_audio_ms(path: str | Path, *, ffprobe_bin: str = "ffprobe") -> int:
    return probe_durations([path], ffprobe_bin=ffprobe_bin).total_ms
