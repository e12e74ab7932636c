from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from cuecast.config.settings import Settings
from cuecast.domain.artifacts import Artifacts
from cuecast.domain.plan import RenderPlan
from cuecast.domain.request import RenderRequest
from cuecast.domain.workspace import Workspace


@dataclass
class Job:
    """Execution context for one render: inputs, resolved plan and outputs."""

    settings: Settings
    workspace: Workspace
    request: RenderRequest
    plan: RenderPlan
    artifacts: Artifacts = field(default_factory=Artifacts)
    total_ms: Optional[int] = None

    @property
    def job_id(self) -> str:
        return self.workspace.job_id
