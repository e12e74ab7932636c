"""
Pipeline orchestration for cuecast.

The pipeline executes a single render job end to end:

1) Fetch assets (audio, background images, cue payload)
2) Build the timeline (optionally extended to the audio length)
3) Choreograph presentation events for the resolved layout
4) Emit the ASS overlay document
5) Compose the background chain
6) Encode the final video

Responsibilities:
- Coordinate service execution order
- Preserve explicit state via Artifacts, even on failure
- Record step timings in the run manifest

Does NOT:
- Own filesystem paths (Workspace does)
- Track job status (the registry/runner does)
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from cuecast.choreographers import choreographer_for
from cuecast.config.settings import Settings
from cuecast.domain.artifacts import Artifacts, BackgroundArtifact, OverlayArtifact
from cuecast.domain.events import PresentationEvent
from cuecast.domain.job import Job
from cuecast.domain.plan import RenderPlan, resolve_plan
from cuecast.domain.request import RenderRequest
from cuecast.domain.timeline import Timeline, validate_pairing
from cuecast.exceptions import ResourceError
from cuecast.services.assets import AssetFetcher
from cuecast.services.background import BackgroundComposition, compose_background
from cuecast.services.compose import ComposeService
from cuecast.services.probe import probe_audio_ms
from cuecast.services.subtitles import render_document
from cuecast.utils.logging import get_logger, job_logger
from cuecast.utils.manifest import write_run_manifest
from cuecast.utils.text import sha256_text
from cuecast.utils.timing import StepTimer, utc_now

log = get_logger(__name__)

AudioProbe = Callable[[str], int]


def validate_request(request: RenderRequest, settings: Settings) -> RenderPlan:
    """
    Everything that can be checked without I/O. Raises before a job exists.
    """
    plan = resolve_plan(request, min_wrap_chars=settings.min_wrap_chars)
    if request.cues is None and request.cues_url is None:
        raise ResourceError("cuesUrl is required when cues is null")
    if request.cues is not None:
        validate_pairing(len(request.cues.items), len(request.lines))
    return plan


def choreograph(timeline: Timeline, plan: RenderPlan) -> list[PresentationEvent]:
    return choreographer_for(plan.layout).choreograph(timeline, plan)


def background_spans(request: RenderRequest, images: dict[str, Path]) -> list[tuple[int, Path]]:
    """Request spans as (anchor, local image) pairs; a lone image becomes one span at cue 0."""
    if request.background_spans:
        return [(span.anchor_idx, images[span.image_url]) for span in request.background_spans]
    if request.background.image_url:
        return [(0, images[request.background.image_url])]
    return []


class RenderPipeline:
    """
    Orchestrates one render using composable services.

    Services are injected or defaulted for testability; the audio probe is a
    plain callable so tests can avoid ffprobe.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        fetcher: AssetFetcher | None = None,
        compose: ComposeService | None = None,
        probe: AudioProbe | None = None,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher or AssetFetcher(timeout_s=settings.fetch_timeout_s)
        self.compose = compose or ComposeService(settings)
        self.probe = probe or (lambda path: probe_audio_ms(path, ffprobe_bin=settings.ffprobe_bin))

    def run(self, job: Job) -> Job:
        timer = StepTimer(clock=utc_now)
        started_at = timer.clock()
        jlog = job_logger(log, job.job_id)
        error: BaseException | None = None

        # Initialize artifacts early so partial failures still leave state behind.
        job.artifacts = Artifacts()
        plan = job.plan

        try:
            with timer.step("fetch_assets"):
                bundle, cues = self.fetcher.fetch_for(job.request, job.workspace)
                job.artifacts.assets = bundle

            with timer.step("build_timeline"):
                timeline = cues.to_timeline(job.request.lines)
                if self.settings.extend_to_audio:
                    audio_ms = self.probe(str(bundle.audio))
                    timeline = timeline.extended_to(audio_ms)
                job.total_ms = timeline.total_ms
                jlog.info("Timeline: %d cues, %d ms", len(timeline), timeline.total_ms)

            with timer.step("choreograph"):
                events = choreograph(timeline, plan)
                jlog.info("Layout %s produced %d events", plan.layout.value, len(events))

            with timer.step("emit_overlay"):
                document = render_document(events, plan, timeline.total_ms)
                overlay_path = job.workspace.overlay_ass
                overlay_path.write_text(document, encoding="utf-8")
                job.artifacts.overlay = OverlayArtifact(
                    path=overlay_path,
                    layout=plan.layout.value,
                    event_count=len(events),
                    sha256=sha256_text(document),
                )

            with timer.step("compose_background"):
                spans = background_spans(job.request, bundle.images)
                composition: BackgroundComposition | None = compose_background(spans, timeline, plan)
                if composition is None:
                    if spans:
                        jlog.warning("No background span has a positive duration; using solid color.")
                    job.artifacts.background = BackgroundArtifact(kind="color")
                else:
                    job.artifacts.background = BackgroundArtifact(
                        kind="spans" if job.request.background_spans else "image",
                        clip_count=composition.clip_count,
                        merges=composition.merges,
                        chain_duration_s=composition.chain_duration_s,
                    )

            with timer.step("encode"):
                job.artifacts.video = self.compose.render(
                    plan=plan,
                    total_ms=timeline.total_ms,
                    audio=bundle.audio,
                    overlay=overlay_path,
                    output=job.workspace.output_mp4,
                    background=composition,
                    stderr_path=job.workspace.ffmpeg_stderr,
                )

            return job
        except BaseException as exc:
            error = exc
            raise
        finally:
            finished_at = timer.clock()
            try:
                write_run_manifest(
                    job=job,
                    steps=timer.steps,
                    started_at=started_at,
                    finished_at=finished_at,
                    error=error,
                )
            except OSError as exc:
                jlog.warning("Could not write run manifest: %s", exc)
