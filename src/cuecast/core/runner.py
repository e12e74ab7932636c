"""
Supervised job runner.

`submit` validates a request synchronously, so malformed input is rejected
before a job id is issued. Accepted jobs run on a thread pool; whatever a
job raises is recorded as FAILED on that job and never reaches other jobs.
"""

from __future__ import annotations

import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from cuecast.config.settings import Settings
from cuecast.core.registry import JobRegistry, JobSnapshot, JobStatus, RenderJob
from cuecast.domain.job import Job
from cuecast.domain.plan import RenderPlan
from cuecast.domain.request import RenderRequest
from cuecast.domain.workspace import Workspace
from cuecast.exceptions import CueCastError, JobStateError
from cuecast.pipeline import RenderPipeline, validate_request
from cuecast.utils.logging import get_logger, job_logger

log = get_logger(__name__)


class JobRunner:
    def __init__(
        self,
        settings: Settings,
        *,
        pipeline: RenderPipeline | None = None,
        registry: JobRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.pipeline = pipeline or RenderPipeline(settings)
        self.registry = registry or JobRegistry(settings.registry_shards)
        self._pool = ThreadPoolExecutor(
            max_workers=settings.max_workers,
            thread_name_prefix="cuecast-job",
        )
        self._futures: dict[str, Future] = {}

    def submit(self, request: RenderRequest) -> str:
        plan = validate_request(request, self.settings)
        job_id = uuid.uuid4().hex[:12]
        render_job = self.registry.create(job_id)
        try:
            future = self._pool.submit(self._execute, render_job, request, plan)
        except RuntimeError as exc:
            render_job.fail(f"could not schedule job: {exc}")
            raise
        self._futures[job_id] = future
        future.add_done_callback(lambda _f: self._futures.pop(job_id, None))
        return job_id

    def _execute(self, render_job: RenderJob, request: RenderRequest, plan: RenderPlan) -> None:
        jlog = job_logger(log, render_job.job_id)
        render_job.start()
        try:
            workspace = Workspace.create(self.settings.workdir, render_job.job_id)
            job = Job(settings=self.settings, workspace=workspace, request=request, plan=plan)
            self.pipeline.run(job)
            video = job.artifacts.video
            if video is None:
                raise JobStateError("pipeline finished without a video artifact")
        except CueCastError as exc:
            jlog.error("%s: %s", exc.label(), exc)
            render_job.fail(str(exc))
            return
        except Exception as exc:
            jlog.exception("Unexpected failure")
            render_job.fail(f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__)
            return
        snapshot = render_job.succeed(video.path)
        jlog.info("Finished in %s ms -> %s", snapshot.duration_ms, video.path)

    def status(self, job_id: str) -> JobSnapshot | None:
        return self.registry.snapshot(job_id)

    def artifact(self, job_id: str) -> Path | None:
        """Output file of a succeeded job, otherwise None."""
        snapshot = self.status(job_id)
        if snapshot is None or snapshot.status is not JobStatus.SUCCEEDED:
            return None
        if snapshot.output_path is None or not snapshot.output_path.exists():
            return None
        return snapshot.output_path

    def wait(self, job_id: str, timeout: float | None = None) -> JobSnapshot | None:
        future = self._futures.get(job_id)
        if future is not None:
            future.result(timeout=timeout)
            self._futures.pop(job_id, None)
        return self.status(job_id)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "JobRunner":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
