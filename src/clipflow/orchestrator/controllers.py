"""Controllers for clipflow CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from clipflow.config import Settings
from clipflow.discovery import DiscoveryProcessor, SimulatedClipDiscoverer
from clipflow.orchestrator.backoff import PollBackoff
from clipflow.orchestrator.claimer import WorkClaimer
from clipflow.orchestrator.heartbeat import HeartbeatReporter
from clipflow.orchestrator.models import (
    RENDER_JOB_KINDS,
    JobCreate,
    JobKind,
    JobStatus,
    JobView,
    TaskCreate,
    TaskStatus,
    TaskView,
    WorkerRole,
)
from clipflow.orchestrator.repository import QueueRepository
from clipflow.orchestrator.worker import QueueWorker, WorkProcessor
from clipflow.render import RenderProcessor, SimulatedMediaBackend, build_default_registry
from clipflow.storage.common import utc_now

HEARTBEAT_MESSAGES = {
    WorkerRole.DISCOVER: "Discover worker alive",
    WorkerRole.RENDER: "Render worker alive",
}


@dataclass(slots=True)
class WorkerCommand:
    """CLI input for worker execution."""

    db_path: Path | None
    role: WorkerRole
    once: bool
    max_items: int | None = None
    max_idle_polls: int | None = None


@dataclass(slots=True)
class EnqueueDiscoverCommand:
    db_path: Path | None
    platform: str
    query: str | None
    category: str
    keywords: str | None = None


@dataclass(slots=True)
class EnqueueRenderCommand:
    """CLI input for enqueuing a render job with its task."""

    db_path: Path | None
    job_type: JobKind
    source_url: str | None
    title: str | None
    keywords: str | None
    source_platform: str | None = None


@dataclass(slots=True)
class ListJobsCommand:
    db_path: Path | None
    status: str | None
    job_type: str | None
    limit: int = 50


@dataclass(slots=True)
class InspectJobCommand:
    db_path: Path | None
    job_id: str


@dataclass(slots=True)
class ListTasksCommand:
    db_path: Path | None
    status: str | None
    limit: int = 50


@dataclass(slots=True)
class ScheduleTasksCommand:
    db_path: Path | None
    limit: int = 100


@dataclass(slots=True)
class WorkersCommand:
    db_path: Path | None
    stale_after_seconds: float | None = None


@dataclass(slots=True)
class QueueCheckCommand:
    db_path: Path | None
    limit: int = 100


@dataclass(slots=True)
class QueueCheckResult:
    lines: list[str]
    healthy: bool


class ClipflowCliController:
    """Coordinates worker, queue and inspection CLI operations."""

    def run_worker(self, command: WorkerCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate_for_worker()
        worker_id = settings.worker.resolve_worker_id(command.role)
        lease = timedelta(seconds=settings.worker.lease_seconds)

        with _repository(settings) as repository:
            worker = QueueWorker(
                claimer=WorkClaimer(repository=repository, role=command.role, lease=lease),
                processor=_build_processor(
                    settings=settings,
                    repository=repository,
                    role=command.role,
                    worker_id=worker_id,
                ),
                worker_id=worker_id,
                backoff=PollBackoff(
                    idle_seconds=settings.worker.poll_interval_seconds,
                    error_max_seconds=settings.worker.error_backoff_max_seconds,
                ),
            )
            with HeartbeatReporter(
                sink=repository.insert_heartbeat,
                worker_id=worker_id,
                message=HEARTBEAT_MESSAGES[command.role],
                interval_seconds=settings.worker.heartbeat_interval_seconds,
            ) as reporter:
                summary = (
                    worker.run_once()
                    if command.once
                    else worker.run_loop(
                        max_items=command.max_items,
                        max_idle_polls=command.max_idle_polls,
                    )
                )

        return [
            f"Worker summary ({command.role.value} {worker_id}): "
            f"processed={summary.processed} idle_polls={summary.idle_polls} "
            f"claim_errors={summary.claim_errors} processor_errors={summary.processor_errors} "
            f"heartbeats={reporter.sent} heartbeat_failures={reporter.failed}",
        ]

    def enqueue_discover(self, command: EnqueueDiscoverCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            job = repository.enqueue_job(
                JobCreate(
                    job_type=JobKind.DISCOVER,
                    source_platform=command.platform,
                    source_query=command.query,
                    category=command.category,
                    keywords=command.keywords,
                ),
            )
        return [f"Job enqueued: {_job_line(job)}"]

    def enqueue_render(self, command: EnqueueRenderCommand) -> list[str]:
        if command.job_type not in RENDER_JOB_KINDS:
            raise ValueError(f"{command.job_type.value} is not a render job type.")
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            job = repository.enqueue_job(
                JobCreate(
                    job_type=command.job_type,
                    source_platform=command.source_platform,
                    source_url=command.source_url,
                    title=command.title,
                    keywords=command.keywords,
                ),
            )
            task = repository.enqueue_task(TaskCreate(job_id=job.id))
        return [
            f"Job enqueued: {_job_line(job)}",
            f"Task enqueued: {_task_line(task)}",
        ]

    def list_jobs(self, command: ListJobsCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        status = JobStatus(command.status.strip().lower()) if command.status else None
        job_type = JobKind(command.job_type.strip().lower()) if command.job_type else None
        with _repository(settings) as repository:
            jobs = repository.list_jobs(status=status, job_type=job_type, limit=command.limit)

        lines = [f"Jobs: {len(jobs)}"]
        lines.extend(f"  {_job_line(job)}" for job in jobs)
        return lines

    def inspect_job(self, command: InspectJobCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            details = repository.get_job_details(job_id=command.job_id)
        if details is None:
            return [f"Job not found: {command.job_id}"]

        job = details.job
        lines = [
            f"Job: {job.id}",
            f"Type: {job.job_type.value}",
            f"Status: {job.status.value}",
            f"Render status: {job.render_status.value if job.render_status else '-'}",
            f"Owner: {job.owner_id or '-'}",
            f"Attempt: {job.attempt}",
            f"Parent: {job.parent_id or '-'}",
            f"Source: {job.source_platform or '-'} {job.source_url or job.source_query or '-'}",
            f"Title: {job.title or '-'}",
            f"Error: {job.error or '-'}",
            f"Output: {job.output if job.output is not None else '-'}",
            f"Tasks: {len(details.tasks)}",
        ]
        lines.extend(f"  {_task_line(task)}" for task in details.tasks)
        lines.append(f"Children: {len(details.children)}")
        lines.extend(f"  {_job_line(child)}" for child in details.children)
        lines.append(f"Events: {len(details.events)}")
        for event in details.events:
            lines.append(
                f"  {event.created_at.isoformat()} {event.event_type} "
                f"{event.status_from or '-'} -> {event.status_to or '-'}",
            )
        return lines

    def list_tasks(self, command: ListTasksCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        status = TaskStatus(command.status.strip().lower()) if command.status else None
        with _repository(settings) as repository:
            tasks = repository.list_tasks(status=status, limit=command.limit)

        lines = [f"Tasks: {len(tasks)}"]
        lines.extend(f"  {_task_line(task)}" for task in tasks)
        return lines

    def schedule_tasks(self, command: ScheduleTasksCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            tasks = repository.schedule_render_tasks(limit=command.limit)

        lines = [f"Tasks scheduled: {len(tasks)}"]
        lines.extend(f"  {_task_line(task)}" for task in tasks)
        return lines

    def workers(self, command: WorkersCommand) -> list[str]:
        """Show the latest heartbeat per worker."""

        settings = Settings.from_env(db_path=command.db_path)
        stale_after = command.stale_after_seconds or (
            settings.worker.heartbeat_interval_seconds * 2
        )
        with _repository(settings) as repository:
            workers = repository.list_worker_liveness()

        now = utc_now()
        lines = [f"Workers: {len(workers)}"]
        for worker in workers:
            age = (now - worker.last_seen_at).total_seconds()
            lines.append(
                f"  {worker.source} last_seen={worker.last_seen_at.isoformat()} "
                f"age={age:.0f}s beats={worker.beats}" + (" STALE" if age > stale_after else ""),
            )
        return lines

    def check_queue(self, command: QueueCheckCommand) -> QueueCheckResult:
        """Report terminal tasks whose job does not mirror the outcome."""

        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            mismatches = repository.list_parent_mismatches(limit=command.limit)

        if not mismatches:
            return QueueCheckResult(lines=["Queue consistent: no task/job mismatches."], healthy=True)
        lines = [f"Task/job mismatches: {len(mismatches)}"]
        lines.extend(
            f"  task={mismatch.task_id} status={mismatch.task_status.value} "
            f"job={mismatch.job_id} status={mismatch.job_status.value}"
            for mismatch in mismatches
        )
        return QueueCheckResult(lines=lines, healthy=False)


def _build_processor(
    *,
    settings: Settings,
    repository: QueueRepository,
    role: WorkerRole,
    worker_id: str,
) -> WorkProcessor:
    delay = settings.simulation.delay_seconds
    if role == WorkerRole.DISCOVER:
        return DiscoveryProcessor(
            repository=repository,
            discoverer=SimulatedClipDiscoverer(delay_seconds=delay),
            worker_id=worker_id,
        )
    return RenderProcessor(
        repository=repository,
        registry=build_default_registry(SimulatedMediaBackend(delay_seconds=delay)),
        worker_id=worker_id,
    )


def _job_line(job: JobView) -> str:
    return (
        f"job_id={job.id} type={job.job_type.value} status={job.status.value} "
        f"render_status={job.render_status.value if job.render_status else '-'} "
        f"attempt={job.attempt} parent={job.parent_id or '-'}"
    )


def _task_line(task: TaskView) -> str:
    return (
        f"task_id={task.id} job_id={task.job_id} kind={task.job_type or '-'} "
        f"status={task.status.value} attempt={task.attempt}"
    )


@contextmanager
def _repository(settings: Settings) -> Iterator[QueueRepository]:
    repository = QueueRepository(
        db_path=settings.require_db_path(),
        user_id=settings.user_id,
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()
