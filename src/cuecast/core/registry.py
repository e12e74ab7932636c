"""
In-memory render job registry.

Jobs live in a sharded table: each shard has its own lock, held only while
inserting or looking up an entry. Status changes never take a shard lock.
A job's owning worker swaps in a new immutable JobSnapshot on every
transition, so pollers always read a consistent view without blocking it.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from cuecast.exceptions import JobStateError
from cuecast.utils.logging import get_logger

log = get_logger(__name__)


class JobStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


_ALLOWED: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.RUNNING, JobStatus.FAILED}),
    JobStatus.RUNNING: frozenset({JobStatus.SUCCEEDED, JobStatus.FAILED}),
    JobStatus.SUCCEEDED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class JobSnapshot:
    job_id: str
    status: JobStatus = JobStatus.QUEUED
    message: Optional[str] = None
    duration_ms: Optional[int] = None
    output_path: Optional[Path] = None

    def to_dict(self) -> dict:
        payload = {"jobId": self.job_id, "status": self.status.value}
        if self.message is not None:
            payload["message"] = self.message
        if self.duration_ms is not None:
            payload["durationMs"] = self.duration_ms
        return payload


class RenderJob:
    """
    One job's lifecycle. Mutated only by the worker that owns it.

    Transitions: QUEUED -> RUNNING -> SUCCEEDED | FAILED. A queued job may
    also fail directly (e.g. its worker could not be scheduled).
    """

    def __init__(self, job_id: str, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._snapshot = JobSnapshot(job_id=job_id)
        self._clock = clock
        self._started: float | None = None

    @property
    def job_id(self) -> str:
        return self._snapshot.job_id

    def snapshot(self) -> JobSnapshot:
        return self._snapshot

    def _elapsed_ms(self) -> int | None:
        if self._started is None:
            return None
        return int((self._clock() - self._started) * 1000)

    def _transition(self, target: JobStatus, **changes) -> JobSnapshot:
        current = self._snapshot.status
        if target not in _ALLOWED[current]:
            raise JobStateError(f"job {self.job_id}: illegal transition {current.value} -> {target.value}")
        snapshot = replace(self._snapshot, status=target, **changes)
        self._snapshot = snapshot
        log.info("[job=%s] %s -> %s", self.job_id, current.value, target.value)
        return snapshot

    def start(self) -> JobSnapshot:
        snapshot = self._transition(JobStatus.RUNNING)
        self._started = self._clock()
        return snapshot

    def succeed(self, output_path: Path) -> JobSnapshot:
        return self._transition(
            JobStatus.SUCCEEDED,
            output_path=output_path,
            duration_ms=self._elapsed_ms(),
        )

    def fail(self, message: str) -> JobSnapshot:
        return self._transition(
            JobStatus.FAILED,
            message=message,
            duration_ms=self._elapsed_ms(),
        )


class JobRegistry:
    def __init__(self, shards: int = 16) -> None:
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards: list[dict[str, RenderJob]] = [{} for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    def _shard(self, job_id: str) -> int:
        return hash(job_id) % len(self._shards)

    def create(self, job_id: str | None = None) -> RenderJob:
        jid = job_id or uuid.uuid4().hex
        job = RenderJob(jid)
        i = self._shard(jid)
        with self._locks[i]:
            if jid in self._shards[i]:
                raise JobStateError(f"job {jid} already exists")
            self._shards[i][jid] = job
        return job

    def get(self, job_id: str) -> RenderJob | None:
        i = self._shard(job_id)
        with self._locks[i]:
            return self._shards[i].get(job_id)

    def snapshot(self, job_id: str) -> JobSnapshot | None:
        job = self.get(job_id)
        return job.snapshot() if job is not None else None

    def __len__(self) -> int:
        total = 0
        for shard, lock in zip(self._shards, self._locks):
            with lock:
                total += len(shard)
        return total
