"""Domain models for the work queue: jobs, render tasks, heartbeats."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    """Durable job lifecycle states."""

    READY = "ready"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class TaskStatus(str, Enum):
    """Durable render task lifecycle states (``rendering`` is the in-progress state)."""

    READY = "ready"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


class RenderStatus(str, Enum):
    """Render-side progress mirrored onto the owning job."""

    QUEUED = "queued"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


class JobKind(str, Enum):
    DISCOVER = "discover"
    RENDER_CLIP = "render_clip"
    AI_SHORT = "ai_short"
    LONG_FORM = "long_form"


RENDER_JOB_KINDS = frozenset({JobKind.RENDER_CLIP, JobKind.AI_SHORT, JobKind.LONG_FORM})
TERMINAL_JOB_STATUSES = frozenset({JobStatus.DONE, JobStatus.FAILED})
TERMINAL_TASK_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.FAILED})


class WorkerRole(str, Enum):
    """Which queue a worker process consumes."""

    DISCOVER = "discover"
    RENDER = "render"


class ItemKind(str, Enum):
    JOB = "job"
    TASK = "task"


@dataclass(slots=True)
class JobCreate:
    """Input payload for enqueuing a job."""

    job_type: JobKind
    user_id: str | None = None
    job_id: str | None = None
    parent_id: str | None = None
    source_platform: str | None = None
    source_query: str | None = None
    category: str | None = None
    keywords: str | None = None
    source_url: str | None = None
    title: str | None = None
    viral_score: int | None = None
    duration: float | None = None
    thumbnail_url: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class JobView:
    """Readable job view for CLI and worker logic."""

    id: str
    user_id: str
    job_type: JobKind
    status: JobStatus
    render_status: RenderStatus | None
    owner_id: str | None
    lease_expires_at: datetime | None
    attempt: int
    parent_id: str | None
    source_platform: str | None
    source_query: str | None
    category: str | None
    keywords: str | None
    source_url: str | None
    title: str | None
    viral_score: int | None
    duration: float | None
    thumbnail_url: str | None
    output: dict[str, Any] | None
    result_url: str | None
    error: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class TaskCreate:
    """Input payload for enqueuing a render task for an existing job."""

    job_id: str
    input: dict[str, Any] = field(default_factory=dict)
    task_id: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class TaskView:
    """Readable render task view."""

    id: str
    job_id: str
    user_id: str
    status: TaskStatus
    owner_id: str | None
    lease_expires_at: datetime | None
    attempt: int
    input: dict[str, Any]
    output: dict[str, Any] | None
    error: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def job_type(self) -> str | None:
        value = self.input.get("job_type")
        return str(value) if value is not None else None


WorkItem = JobView | TaskView


@dataclass(slots=True)
class TaskResolution:
    """Outcome of resolving a task together with its parent job."""

    task_updated: bool
    job_updated: bool

    @property
    def consistent(self) -> bool:
        return self.task_updated == self.job_updated


@dataclass(slots=True)
class WorkItemEventView:
    """Status trail entry for one job or task."""

    event_id: int
    item_kind: ItemKind
    item_id: str
    event_type: str
    status_from: str | None
    status_to: str | None
    created_at: datetime
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class JobDetails:
    """Job with its render tasks, fan-out children and event stream."""

    job: JobView
    tasks: list[TaskView]
    children: list[JobView]
    events: list[WorkItemEventView]


@dataclass(slots=True)
class HeartbeatView:
    heartbeat_id: int
    source: str
    message: str
    created_at: datetime


@dataclass(slots=True)
class WorkerLiveness:
    """Latest heartbeat per worker id."""

    source: str
    last_seen_at: datetime
    beats: int


@dataclass(slots=True)
class ParentMismatch:
    """A terminal task whose job does not mirror its outcome."""

    task_id: str
    task_status: TaskStatus
    job_id: str
    job_status: JobStatus


@dataclass(slots=True)
class CandidateClip:
    """Clip found by discovery, fanned out into one render job."""

    title: str
    source_url: str
    source_platform: str
    viral_score: int
    duration: float | None = None
    thumbnail_url: str | None = None
