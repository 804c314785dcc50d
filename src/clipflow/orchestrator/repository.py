"""Persistent work queue repository shared by the discover and render workers."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import uuid4

from sqlalchemy import and_, exists, func, or_
from sqlalchemy import update as sa_update
from sqlalchemy.orm import aliased
from sqlmodel import Session, col, select

from clipflow.orchestrator.models import (
    RENDER_JOB_KINDS,
    TERMINAL_JOB_STATUSES,
    TERMINAL_TASK_STATUSES,
    HeartbeatView,
    ItemKind,
    JobCreate,
    JobDetails,
    JobKind,
    JobStatus,
    JobView,
    ParentMismatch,
    RenderStatus,
    TaskCreate,
    TaskResolution,
    TaskStatus,
    TaskView,
    WorkerLiveness,
    WorkItemEventView,
)
from clipflow.storage.alembic_runner import upgrade_head
from clipflow.storage.common import (
    build_sqlite_engine,
    to_db_datetime,
    to_utc_aware_datetime,
    utc_now,
)
from clipflow.storage.sqlmodel_models import (
    DEFAULT_USER_ID,
    RenderTask,
    VideoProcessingJob,
    WorkerHeartbeat,
    WorkItemEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_LEASE = timedelta(minutes=30)

_TASK_TO_JOB_STATUS = {
    TaskStatus.DONE: JobStatus.DONE,
    TaskStatus.FAILED: JobStatus.FAILED,
}
_TASK_TO_RENDER_STATUS = {
    TaskStatus.DONE: RenderStatus.DONE,
    TaskStatus.FAILED: RenderStatus.FAILED,
}


class QueueRepository:
    """Queue persistence facade backed by SQLModel + SQLite.

    Every status transition is a filtered update (id + expected status + owner)
    checked through ``rowcount``; nothing is overwritten blindly. Ownership is
    only ever granted by :meth:`claim_next_job` / :meth:`claim_next_task`.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        user_id: str = DEFAULT_USER_ID,
        sqlite_busy_timeout_ms: int = 5_000,
    ) -> None:
        self.db_path = db_path
        self.user_id = user_id
        self.engine = build_sqlite_engine(
            db_path=db_path,
            busy_timeout_ms=sqlite_busy_timeout_ms,
        )

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    # -- enqueue -------------------------------------------------------------

    def enqueue_job(self, payload: JobCreate) -> JobView:
        """Create a job in ``ready`` state."""

        now = payload.created_at or utc_now()
        job_id = payload.job_id or str(uuid4())
        job_kind = JobKind(payload.job_type)
        with Session(self.engine) as session:
            row = VideoProcessingJob(
                id=job_id,
                user_id=payload.user_id or self.user_id,
                job_type=job_kind.value,
                status=JobStatus.READY.value,
                render_status=(
                    RenderStatus.QUEUED.value if job_kind in RENDER_JOB_KINDS else None
                ),
                parent_id=payload.parent_id,
                source_platform=payload.source_platform,
                source_query=payload.source_query,
                category=payload.category,
                keywords=payload.keywords,
                source_url=payload.source_url,
                title=payload.title,
                viral_score=payload.viral_score,
                duration=payload.duration,
                thumbnail_url=payload.thumbnail_url,
                created_at=to_db_datetime(now),
                updated_at=to_db_datetime(now),
            )
            session.add(row)
            self._add_event(
                session=session,
                item_kind=ItemKind.JOB,
                item_id=job_id,
                event_type="enqueued",
                status_from=None,
                status_to=JobStatus.READY,
                details={"job_type": job_kind.value, "parent_id": payload.parent_id},
            )
            session.commit()
            session.refresh(row)
            return _to_job_view(row)

    def enqueue_task(self, payload: TaskCreate) -> TaskView:
        """Create a ``ready`` render task for an existing, non-terminal render job."""

        now = payload.created_at or utc_now()
        task_id = payload.task_id or str(uuid4())
        with Session(self.engine) as session:
            job = session.get(VideoProcessingJob, payload.job_id)
            if job is None:
                raise RuntimeError(f"Job not found: {payload.job_id}")
            if JobKind(job.job_type) not in RENDER_JOB_KINDS:
                raise RuntimeError(f"Job {job.id} of type {job.job_type} cannot own render tasks.")
            if job.status not in {JobStatus.READY.value, JobStatus.PROCESSING.value}:
                raise RuntimeError(f"Job {job.id} is already {job.status}.")
            active_task_id = session.exec(
                select(RenderTask.id).where(
                    RenderTask.job_id == job.id,
                    col(RenderTask.status).not_in(
                        [status.value for status in TERMINAL_TASK_STATUSES],
                    ),
                ),
            ).first()
            if active_task_id is not None:
                raise RuntimeError(
                    f"Job {job.id} already has active render task {active_task_id}.",
                )

            task_input = payload.input or render_input_for_job(_to_job_view(job))
            row = RenderTask(
                id=task_id,
                job_id=job.id,
                user_id=job.user_id,
                status=TaskStatus.READY.value,
                input_json=json.dumps(task_input, ensure_ascii=False, sort_keys=True),
                created_at=to_db_datetime(now),
                updated_at=to_db_datetime(now),
            )
            session.add(row)
            self._add_event(
                session=session,
                item_kind=ItemKind.TASK,
                item_id=task_id,
                event_type="enqueued",
                status_from=None,
                status_to=TaskStatus.READY,
                details={"job_id": job.id},
            )
            session.commit()
            session.refresh(row)
            return _to_task_view(row)

    def schedule_render_tasks(self, *, limit: int = 100) -> list[TaskView]:
        """Create render tasks for ready render jobs that have none yet."""

        with Session(self.engine) as session:
            job_ids = session.exec(
                select(VideoProcessingJob.id)
                .where(
                    col(VideoProcessingJob.job_type).in_([kind.value for kind in RENDER_JOB_KINDS]),
                    VideoProcessingJob.status == JobStatus.READY.value,
                    ~exists().where(col(RenderTask.job_id) == col(VideoProcessingJob.id)),
                )
                .order_by(col(VideoProcessingJob.created_at).asc())
                .limit(limit),
            ).all()
        return [self.enqueue_task(TaskCreate(job_id=job_id)) for job_id in job_ids]

    # -- claim ---------------------------------------------------------------

    def claim_next_job(
        self,
        *,
        worker_id: str,
        job_type: JobKind = JobKind.DISCOVER,
        lease: timedelta = DEFAULT_LEASE,
    ) -> JobView | None:
        """Atomically claim the oldest eligible job of ``job_type``.

        Eligible means ``ready``, or ``processing`` with an expired lease (the
        previous owner is presumed dead). Selection and lock happen in a single
        UPDATE statement, so two callers can never both win the same row.
        """

        now = utc_now()
        lease_expires_at = now + lease
        with Session(self.engine) as session:
            picked = aliased(VideoProcessingJob)
            candidate = (
                select(picked.id)
                .where(
                    picked.job_type == JobKind(job_type).value,
                    _claimable(picked, in_progress=JobStatus.PROCESSING.value, now=now),
                )
                .order_by(picked.created_at.asc(), picked.id.asc())
                .limit(1)
                .scalar_subquery()
            )
            claimed_id = session.exec(
                sa_update(VideoProcessingJob)
                .where(
                    col(VideoProcessingJob.id) == candidate,
                    _claimable(
                        VideoProcessingJob,
                        in_progress=JobStatus.PROCESSING.value,
                        now=now,
                    ),
                )
                .values(
                    status=JobStatus.PROCESSING.value,
                    owner_id=worker_id,
                    lease_expires_at=to_db_datetime(lease_expires_at),
                    attempt=col(VideoProcessingJob.attempt) + 1,
                    updated_at=to_db_datetime(now),
                )
                .returning(col(VideoProcessingJob.id))
                .execution_options(synchronize_session=False),
            ).scalar_one_or_none()
            if claimed_id is None:
                session.rollback()
                return None

            row = session.get(VideoProcessingJob, claimed_id)
            if row is None:  # pragma: no cover - row was just updated in this transaction
                raise RuntimeError(f"Claimed job vanished: {claimed_id}")
            reclaimed = row.attempt > 1
            self._add_event(
                session=session,
                item_kind=ItemKind.JOB,
                item_id=row.id,
                event_type="reclaimed" if reclaimed else "claimed",
                status_from=JobStatus.PROCESSING if reclaimed else JobStatus.READY,
                status_to=JobStatus.PROCESSING,
                details={"worker_id": worker_id, "attempt": row.attempt},
            )
            view = _to_job_view(row)
            session.commit()
        return view

    def claim_next_task(
        self,
        *,
        worker_id: str,
        lease: timedelta = DEFAULT_LEASE,
    ) -> TaskView | None:
        """Atomically claim the oldest eligible render task and start its job.

        The task moves to ``rendering`` and, in the same transaction, the owning
        job moves to ``processing`` with ``render_status = rendering``.
        """

        now = utc_now()
        lease_expires_at = now + lease
        with Session(self.engine) as session:
            picked = aliased(RenderTask)
            candidate = (
                select(picked.id)
                .where(
                    _claimable(picked, in_progress=TaskStatus.RENDERING.value, now=now),
                    _job_open(picked),
                )
                .order_by(picked.created_at.asc(), picked.id.asc())
                .limit(1)
                .scalar_subquery()
            )
            claimed_id = session.exec(
                sa_update(RenderTask)
                .where(
                    col(RenderTask.id) == candidate,
                    _claimable(RenderTask, in_progress=TaskStatus.RENDERING.value, now=now),
                    _job_open(RenderTask),
                )
                .values(
                    status=TaskStatus.RENDERING.value,
                    owner_id=worker_id,
                    lease_expires_at=to_db_datetime(lease_expires_at),
                    attempt=col(RenderTask.attempt) + 1,
                    updated_at=to_db_datetime(now),
                )
                .returning(col(RenderTask.id))
                .execution_options(synchronize_session=False),
            ).scalar_one_or_none()
            if claimed_id is None:
                session.rollback()
                return None

            row = session.get(RenderTask, claimed_id)
            if row is None:  # pragma: no cover - row was just updated in this transaction
                raise RuntimeError(f"Claimed task vanished: {claimed_id}")
            reclaimed = row.attempt > 1
            self._add_event(
                session=session,
                item_kind=ItemKind.TASK,
                item_id=row.id,
                event_type="reclaimed" if reclaimed else "claimed",
                status_from=TaskStatus.RENDERING if reclaimed else TaskStatus.READY,
                status_to=TaskStatus.RENDERING,
                details={"worker_id": worker_id, "attempt": row.attempt},
            )

            job_result = session.exec(
                sa_update(VideoProcessingJob)
                .where(
                    col(VideoProcessingJob.id) == row.job_id,
                    col(VideoProcessingJob.status).in_(
                        [JobStatus.READY.value, JobStatus.PROCESSING.value],
                    ),
                )
                .values(
                    status=JobStatus.PROCESSING.value,
                    render_status=RenderStatus.RENDERING.value,
                    owner_id=worker_id,
                    updated_at=to_db_datetime(now),
                )
                .execution_options(synchronize_session=False),
            )
            if job_result.rowcount == 1:
                self._add_event(
                    session=session,
                    item_kind=ItemKind.JOB,
                    item_id=row.job_id,
                    event_type="rendering_started",
                    status_from=None,
                    status_to=JobStatus.PROCESSING,
                    details={"task_id": row.id, "worker_id": worker_id},
                )
            else:
                logger.warning(
                    "Claimed task %s but job %s is no longer startable.",
                    row.id,
                    row.job_id,
                )
            view = _to_task_view(row)
            session.commit()
        return view

    # -- terminal transitions ------------------------------------------------

    def complete_job(self, *, job_id: str, worker_id: str, output: dict[str, Any]) -> bool:
        """Mark a processing job owned by ``worker_id`` as done."""

        return self._finish_job(
            job_id=job_id,
            worker_id=worker_id,
            status=JobStatus.DONE,
            output=output,
            error=None,
        )

    def fail_job(self, *, job_id: str, worker_id: str, error: str) -> bool:
        """Mark a processing job owned by ``worker_id`` as failed."""

        return self._finish_job(
            job_id=job_id,
            worker_id=worker_id,
            status=JobStatus.FAILED,
            output=None,
            error=error,
        )

    def _finish_job(
        self,
        *,
        job_id: str,
        worker_id: str,
        status: JobStatus,
        output: dict[str, Any] | None,
        error: str | None,
    ) -> bool:
        now = utc_now()
        with Session(self.engine) as session:
            result = session.exec(
                sa_update(VideoProcessingJob)
                .where(
                    col(VideoProcessingJob.id) == job_id,
                    col(VideoProcessingJob.status) == JobStatus.PROCESSING.value,
                    col(VideoProcessingJob.owner_id) == worker_id,
                )
                .values(
                    status=status.value,
                    output_json=_dump_json(output),
                    error=error,
                    lease_expires_at=None,
                    updated_at=to_db_datetime(now),
                )
                .execution_options(synchronize_session=False),
            )
            if result.rowcount != 1:
                session.rollback()
                return False
            self._add_event(
                session=session,
                item_kind=ItemKind.JOB,
                item_id=job_id,
                event_type="succeeded" if status == JobStatus.DONE else "failed",
                status_from=JobStatus.PROCESSING,
                status_to=status,
                details={"worker_id": worker_id, "error": error} if error else {},
            )
            session.commit()
            return True

    def resolve_task(
        self,
        *,
        task_id: str,
        worker_id: str,
        status: TaskStatus,
        output: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> TaskResolution:
        """Move a rendering task to a terminal status and mirror it onto its job.

        Both updates share one transaction. When the task update applies but the
        job update matches nothing, the task outcome is still committed and a
        ``parent_sync_failed`` event records the divergence.
        """

        if status not in _TASK_TO_JOB_STATUS:
            raise ValueError(f"Unsupported terminal task status: {status}")

        now = utc_now()
        with Session(self.engine) as session:
            task = session.get(RenderTask, task_id)
            if task is None:
                raise RuntimeError(f"Task not found: {task_id}")
            job_id = task.job_id

            task_result = session.exec(
                sa_update(RenderTask)
                .where(
                    col(RenderTask.id) == task_id,
                    col(RenderTask.status) == TaskStatus.RENDERING.value,
                    col(RenderTask.owner_id) == worker_id,
                )
                .values(
                    status=status.value,
                    output_json=_dump_json(output),
                    error=error,
                    lease_expires_at=None,
                    updated_at=to_db_datetime(now),
                )
                .execution_options(synchronize_session=False),
            )
            if task_result.rowcount != 1:
                session.rollback()
                return TaskResolution(task_updated=False, job_updated=False)
            self._add_event(
                session=session,
                item_kind=ItemKind.TASK,
                item_id=task_id,
                event_type="succeeded" if status == TaskStatus.DONE else "failed",
                status_from=TaskStatus.RENDERING,
                status_to=status,
                details={"worker_id": worker_id, "error": error} if error else {},
            )

            job_status = _TASK_TO_JOB_STATUS[status]
            result_url = output.get("result_url") if output else None
            job_result = session.exec(
                sa_update(VideoProcessingJob)
                .where(
                    col(VideoProcessingJob.id) == job_id,
                    col(VideoProcessingJob.status) == JobStatus.PROCESSING.value,
                )
                .values(
                    status=job_status.value,
                    render_status=_TASK_TO_RENDER_STATUS[status].value,
                    output_json=_dump_json(output),
                    result_url=str(result_url) if result_url else None,
                    error=error,
                    updated_at=to_db_datetime(now),
                )
                .execution_options(synchronize_session=False),
            )
            job_updated = job_result.rowcount == 1
            if job_updated:
                self._add_event(
                    session=session,
                    item_kind=ItemKind.JOB,
                    item_id=job_id,
                    event_type="mirrored_task",
                    status_from=JobStatus.PROCESSING,
                    status_to=job_status,
                    details={"task_id": task_id},
                )
            else:
                logger.warning(
                    "Task %s resolved as %s but job %s was not updated.",
                    task_id,
                    status.value,
                    job_id,
                )
                self._add_event(
                    session=session,
                    item_kind=ItemKind.TASK,
                    item_id=task_id,
                    event_type="parent_sync_failed",
                    status_from=None,
                    status_to=None,
                    details={"job_id": job_id, "expected_job_status": job_status.value},
                )
            session.commit()
        return TaskResolution(task_updated=True, job_updated=job_updated)

    # -- heartbeats ----------------------------------------------------------

    def insert_heartbeat(self, *, worker_id: str, message: str) -> HeartbeatView:
        """Append one liveness record."""

        with Session(self.engine) as session:
            row = WorkerHeartbeat(
                source=worker_id,
                message=message,
                created_at=to_db_datetime(utc_now()),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_heartbeat_view(row)

    def list_heartbeats(self, *, source: str | None = None, limit: int = 50) -> list[HeartbeatView]:
        with Session(self.engine) as session:
            statement = (
                select(WorkerHeartbeat)
                .order_by(col(WorkerHeartbeat.created_at).desc(), col(WorkerHeartbeat.id).desc())
                .limit(limit)
            )
            if source is not None:
                statement = statement.where(WorkerHeartbeat.source == source)
            rows = session.exec(statement).all()
        return [_to_heartbeat_view(row) for row in rows]

    def list_worker_liveness(self) -> list[WorkerLiveness]:
        """Return the latest heartbeat per worker, most recently seen first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(
                    WorkerHeartbeat.source,
                    func.max(WorkerHeartbeat.created_at),
                    func.count(col(WorkerHeartbeat.id)),
                )
                .group_by(WorkerHeartbeat.source)
                .order_by(func.max(WorkerHeartbeat.created_at).desc()),
            ).all()
        return [
            WorkerLiveness(
                source=source,
                last_seen_at=to_utc_aware_datetime(last_seen_at),
                beats=int(beats),
            )
            for source, last_seen_at, beats in rows
        ]

    # -- reads ---------------------------------------------------------------

    def get_job(self, *, job_id: str) -> JobView | None:
        with Session(self.engine) as session:
            row = session.get(VideoProcessingJob, job_id)
            return _to_job_view(row) if row is not None else None

    def get_task(self, *, task_id: str) -> TaskView | None:
        with Session(self.engine) as session:
            row = session.get(RenderTask, task_id)
            return _to_task_view(row) if row is not None else None

    def list_jobs(
        self,
        *,
        status: JobStatus | None = None,
        job_type: JobKind | None = None,
        parent_id: str | None = None,
        limit: int = 50,
    ) -> list[JobView]:
        """List recent jobs, optionally filtered."""

        with Session(self.engine) as session:
            statement = (
                select(VideoProcessingJob)
                .order_by(col(VideoProcessingJob.created_at).desc())
                .limit(limit)
            )
            if status is not None:
                statement = statement.where(VideoProcessingJob.status == status.value)
            if job_type is not None:
                statement = statement.where(VideoProcessingJob.job_type == job_type.value)
            if parent_id is not None:
                statement = statement.where(VideoProcessingJob.parent_id == parent_id)
            rows = session.exec(statement).all()
        return [_to_job_view(row) for row in rows]

    def list_tasks(
        self,
        *,
        status: TaskStatus | None = None,
        job_id: str | None = None,
        limit: int = 50,
    ) -> list[TaskView]:
        with Session(self.engine) as session:
            statement = select(RenderTask).order_by(col(RenderTask.created_at).desc()).limit(limit)
            if status is not None:
                statement = statement.where(RenderTask.status == status.value)
            if job_id is not None:
                statement = statement.where(RenderTask.job_id == job_id)
            rows = session.exec(statement).all()
        return [_to_task_view(row) for row in rows]

    def list_events(self, *, item_kind: ItemKind, item_id: str) -> list[WorkItemEventView]:
        """Return the status trail of one item, oldest first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(WorkItemEvent)
                .where(
                    WorkItemEvent.item_kind == item_kind.value,
                    WorkItemEvent.item_id == item_id,
                )
                .order_by(col(WorkItemEvent.created_at).asc(), col(WorkItemEvent.id).asc()),
            ).all()
        return [_to_event_view(row) for row in rows]

    def get_job_details(self, *, job_id: str) -> JobDetails | None:
        """Return job details with tasks, fan-out children and event stream."""

        job = self.get_job(job_id=job_id)
        if job is None:
            return None
        return JobDetails(
            job=job,
            tasks=self.list_tasks(job_id=job_id, limit=1000),
            children=self.list_jobs(parent_id=job_id, limit=1000),
            events=self.list_events(item_kind=ItemKind.JOB, item_id=job_id),
        )

    def list_parent_mismatches(self, *, limit: int = 100) -> list[ParentMismatch]:
        """Find terminal tasks whose job status does not mirror the task outcome."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(RenderTask, VideoProcessingJob)
                .join(VideoProcessingJob, col(VideoProcessingJob.id) == col(RenderTask.job_id))
                .where(
                    or_(
                        and_(
                            col(RenderTask.status) == TaskStatus.DONE.value,
                            col(VideoProcessingJob.status) != JobStatus.DONE.value,
                        ),
                        and_(
                            col(RenderTask.status) == TaskStatus.FAILED.value,
                            col(VideoProcessingJob.status) != JobStatus.FAILED.value,
                        ),
                    ),
                )
                .order_by(col(RenderTask.updated_at).desc())
                .limit(limit),
            ).all()
        return [
            ParentMismatch(
                task_id=task.id,
                task_status=TaskStatus(task.status),
                job_id=job.id,
                job_status=JobStatus(job.status),
            )
            for task, job in rows
        ]

    def _add_event(  # noqa: PLR0913
        self,
        *,
        session: Session,
        item_kind: ItemKind,
        item_id: str,
        event_type: str,
        status_from: JobStatus | TaskStatus | None,
        status_to: JobStatus | TaskStatus | None,
        details: dict[str, object],
    ) -> None:
        details = {key: value for key, value in details.items() if value is not None}
        session.add(
            WorkItemEvent(
                item_kind=item_kind.value,
                item_id=item_id,
                event_type=event_type,
                status_from=status_from.value if status_from is not None else None,
                status_to=status_to.value if status_to is not None else None,
                details_json=json.dumps(details, ensure_ascii=False, sort_keys=True)
                if details
                else None,
                created_at=to_db_datetime(utc_now()),
            ),
        )


def render_input_for_job(job: JobView) -> dict[str, Any]:
    """Build the opaque render task payload from a render job's columns."""

    payload: dict[str, Any] = {
        "job_type": job.job_type.value,
        "source_platform": job.source_platform,
        "source_url": job.source_url,
        "title": job.title,
        "keywords": job.keywords,
        "category": job.category,
        "viral_score": job.viral_score,
        "duration": job.duration,
        "thumbnail_url": job.thumbnail_url,
    }
    return {key: value for key, value in payload.items() if value is not None}


def _claimable(model: Any, *, in_progress: str, now: datetime) -> Any:
    return or_(
        model.status == "ready",
        and_(
            model.status == in_progress,
            model.lease_expires_at.is_not(None),
            model.lease_expires_at < to_db_datetime(now),
        ),
    )


def _job_open(task_model: Any) -> Any:
    return exists().where(
        col(VideoProcessingJob.id) == task_model.job_id,
        col(VideoProcessingJob.status).not_in(
            [status.value for status in TERMINAL_JOB_STATUSES],
        ),
    )


def _dump_json(value: dict[str, Any] | None) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)


def _load_json(value: str | None) -> dict[str, Any] | None:
    if not value:
        return None
    parsed = json.loads(value)
    return parsed if isinstance(parsed, dict) else None


def _optional_datetime(value: datetime | None) -> datetime | None:
    return to_utc_aware_datetime(value) if value is not None else None


def _to_job_view(row: VideoProcessingJob) -> JobView:
    return JobView(
        id=row.id,
        user_id=row.user_id,
        job_type=JobKind(row.job_type),
        status=JobStatus(row.status),
        render_status=RenderStatus(row.render_status) if row.render_status is not None else None,
        owner_id=row.owner_id,
        lease_expires_at=_optional_datetime(row.lease_expires_at),
        attempt=row.attempt,
        parent_id=row.parent_id,
        source_platform=row.source_platform,
        source_query=row.source_query,
        category=row.category,
        keywords=row.keywords,
        source_url=row.source_url,
        title=row.title,
        viral_score=row.viral_score,
        duration=row.duration,
        thumbnail_url=row.thumbnail_url,
        output=_load_json(row.output_json),
        result_url=row.result_url,
        error=row.error,
        created_at=to_utc_aware_datetime(row.created_at),
        updated_at=to_utc_aware_datetime(row.updated_at),
    )


def _to_task_view(row: RenderTask) -> TaskView:
    return TaskView(
        id=row.id,
        job_id=row.job_id,
        user_id=row.user_id,
        status=TaskStatus(row.status),
        owner_id=row.owner_id,
        lease_expires_at=_optional_datetime(row.lease_expires_at),
        attempt=row.attempt,
        input=_load_json(row.input_json) or {},
        output=_load_json(row.output_json),
        error=row.error,
        created_at=to_utc_aware_datetime(row.created_at),
        updated_at=to_utc_aware_datetime(row.updated_at),
    )


def _to_heartbeat_view(row: WorkerHeartbeat) -> HeartbeatView:
    return HeartbeatView(
        heartbeat_id=row.id or 0,
        source=row.source,
        message=row.message,
        created_at=to_utc_aware_datetime(row.created_at),
    )


def _to_event_view(row: WorkItemEvent) -> WorkItemEventView:
    return WorkItemEventView(
        event_id=row.id or 0,
        item_kind=ItemKind(row.item_kind),
        item_id=row.item_id,
        event_type=row.event_type,
        status_from=row.status_from,
        status_to=row.status_to,
        created_at=to_utc_aware_datetime(row.created_at),
        details=_load_json(row.details_json) or {},
    )
