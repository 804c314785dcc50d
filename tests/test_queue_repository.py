from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path

import allure
import pytest

from clipflow.orchestrator.models import (
    ItemKind,
    JobCreate,
    JobKind,
    JobStatus,
    RenderStatus,
    TaskCreate,
    TaskStatus,
)
from clipflow.orchestrator.repository import QueueRepository

pytestmark = [
    allure.epic("Work Queue"),
    allure.feature("Claims & Lifecycle"),
]

_BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def _discover_job(repository: QueueRepository, job_id: str, *, minutes: int = 0):
    return repository.enqueue_job(
        JobCreate(
            job_type=JobKind.DISCOVER,
            job_id=job_id,
            source_platform="twitch",
            category="gaming",
            created_at=_BASE_TIME + timedelta(minutes=minutes),
        ),
    )


def _render_job_with_task(repository: QueueRepository, job_id: str, *, minutes: int = 0):
    job = repository.enqueue_job(
        JobCreate(
            job_type=JobKind.RENDER_CLIP,
            job_id=job_id,
            source_platform="youtube",
            source_url=f"https://youtube.example.com/clip/{job_id}",
            title=f"Clip {job_id}",
            created_at=_BASE_TIME + timedelta(minutes=minutes),
        ),
    )
    task = repository.enqueue_task(
        TaskCreate(
            job_id=job.id,
            task_id=f"task-{job_id}",
            created_at=_BASE_TIME + timedelta(minutes=minutes),
        ),
    )
    return job, task


def test_claim_next_job_returns_oldest_ready_job(repository: QueueRepository) -> None:
    _discover_job(repository, "job-new", minutes=5)
    _discover_job(repository, "job-old", minutes=0)

    claimed = repository.claim_next_job(worker_id="discover-1")

    assert claimed is not None
    assert claimed.id == "job-old"
    assert claimed.status == JobStatus.PROCESSING
    assert claimed.owner_id == "discover-1"
    assert claimed.attempt == 1
    assert claimed.lease_expires_at is not None


def test_claim_next_job_returns_none_for_empty_queue(repository: QueueRepository) -> None:
    assert repository.claim_next_job(worker_id="discover-1") is None


def test_claim_next_job_ignores_render_jobs(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "render-1")

    assert repository.claim_next_job(worker_id="discover-1") is None


def test_concurrent_claims_never_share_a_job(repository: QueueRepository, db_path: Path) -> None:
    _discover_job(repository, "job-1")
    barrier = threading.Barrier(2)
    results: dict[str, str | None] = {}

    def _claim(worker_id: str) -> None:
        repo = QueueRepository(db_path)
        try:
            barrier.wait(timeout=5)
            claimed = repo.claim_next_job(worker_id=worker_id)
            results[worker_id] = claimed.id if claimed is not None else None
        finally:
            repo.close()

    threads = [threading.Thread(target=_claim, args=(name,)) for name in ("w-a", "w-b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    winners = [worker for worker, job_id in results.items() if job_id == "job-1"]
    assert len(results) == 2
    assert len(winners) == 1
    job = repository.get_job(job_id="job-1")
    assert job is not None
    assert job.owner_id == winners[0]


def test_expired_lease_is_reclaimed_and_stale_owner_cannot_finish(
    repository: QueueRepository,
) -> None:
    _discover_job(repository, "job-1")
    first = repository.claim_next_job(worker_id="w-dead", lease=timedelta(seconds=-1))
    assert first is not None

    second = repository.claim_next_job(worker_id="w-live")

    assert second is not None
    assert second.id == "job-1"
    assert second.owner_id == "w-live"
    assert second.attempt == 2
    assert repository.complete_job(job_id="job-1", worker_id="w-dead", output={}) is False
    assert repository.complete_job(job_id="job-1", worker_id="w-live", output={"ok": 1}) is True

    events = repository.list_events(item_kind=ItemKind.JOB, item_id="job-1")
    assert [event.event_type for event in events] == [
        "enqueued",
        "claimed",
        "reclaimed",
        "succeeded",
    ]


def test_unexpired_lease_is_not_reclaimed(repository: QueueRepository) -> None:
    _discover_job(repository, "job-1")
    assert repository.claim_next_job(worker_id="w-1") is not None

    assert repository.claim_next_job(worker_id="w-2") is None


def test_terminal_jobs_never_transition_again(repository: QueueRepository) -> None:
    _discover_job(repository, "job-1")
    repository.claim_next_job(worker_id="w-1")
    assert repository.fail_job(job_id="job-1", worker_id="w-1", error="search failed") is True

    assert repository.complete_job(job_id="job-1", worker_id="w-1", output={}) is False
    assert repository.claim_next_job(worker_id="w-2") is None
    job = repository.get_job(job_id="job-1")
    assert job is not None
    assert job.status == JobStatus.FAILED
    assert job.error == "search failed"


def test_claim_next_task_starts_parent_job(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "render-1")

    task = repository.claim_next_task(worker_id="render-w")

    assert task is not None
    assert task.status == TaskStatus.RENDERING
    assert task.job_type == JobKind.RENDER_CLIP.value
    assert task.input["source_url"] == "https://youtube.example.com/clip/render-1"
    job = repository.get_job(job_id="render-1")
    assert job is not None
    assert job.status == JobStatus.PROCESSING
    assert job.render_status == RenderStatus.RENDERING
    assert job.owner_id == "render-w"


def test_resolve_task_mirrors_outcome_onto_job(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "render-1")
    task = repository.claim_next_task(worker_id="render-w")
    assert task is not None

    resolution = repository.resolve_task(
        task_id=task.id,
        worker_id="render-w",
        status=TaskStatus.DONE,
        output={"completed_at": "2026-10-01T12:00:00+00:00"},
    )

    assert resolution.task_updated is True
    assert resolution.job_updated is True
    assert resolution.consistent
    job = repository.get_job(job_id="render-1")
    assert job is not None
    assert job.status == JobStatus.DONE
    assert job.render_status == RenderStatus.DONE
    assert job.output == {"completed_at": "2026-10-01T12:00:00+00:00"}
    assert repository.list_parent_mismatches() == []


def test_resolve_task_by_non_owner_is_rejected(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "render-1")
    task = repository.claim_next_task(worker_id="render-w")
    assert task is not None

    resolution = repository.resolve_task(
        task_id=task.id,
        worker_id="someone-else",
        status=TaskStatus.FAILED,
        output={"error": "boom"},
        error="boom",
    )

    assert resolution.task_updated is False
    stored = repository.get_task(task_id=task.id)
    assert stored is not None
    assert stored.status == TaskStatus.RENDERING


def test_resolve_task_rejects_non_terminal_status(repository: QueueRepository) -> None:
    with pytest.raises(ValueError, match="Unsupported terminal task status"):
        repository.resolve_task(task_id="x", worker_id="w", status=TaskStatus.RENDERING)


def test_parent_sync_failure_is_recorded_and_detectable(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "render-1")
    task = repository.claim_next_task(worker_id="render-w")
    assert task is not None
    # Job reaches a terminal state behind the task's back.
    assert repository.fail_job(job_id="render-1", worker_id="render-w", error="cancelled")

    resolution = repository.resolve_task(
        task_id=task.id,
        worker_id="render-w",
        status=TaskStatus.DONE,
        output={"completed_at": "2026-10-01T12:00:00+00:00"},
    )

    assert resolution.task_updated is True
    assert resolution.job_updated is False
    assert not resolution.consistent
    events = repository.list_events(item_kind=ItemKind.TASK, item_id=task.id)
    assert events[-1].event_type == "parent_sync_failed"
    mismatches = repository.list_parent_mismatches()
    assert len(mismatches) == 1
    assert mismatches[0].task_id == task.id
    assert mismatches[0].job_status == JobStatus.FAILED


def test_enqueue_task_rejects_discover_and_missing_jobs(repository: QueueRepository) -> None:
    _discover_job(repository, "job-1")

    with pytest.raises(RuntimeError, match="cannot own render tasks"):
        repository.enqueue_task(TaskCreate(job_id="job-1"))
    with pytest.raises(RuntimeError, match="Job not found"):
        repository.enqueue_task(TaskCreate(job_id="missing"))


def test_schedule_render_tasks_covers_jobs_without_tasks(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "has-task")
    repository.enqueue_job(
        JobCreate(job_type=JobKind.RENDER_CLIP, job_id="fanned-out", parent_id=None),
    )

    scheduled = repository.schedule_render_tasks()

    assert [task.job_id for task in scheduled] == ["fanned-out"]
    assert repository.schedule_render_tasks() == []


def test_heartbeats_and_worker_liveness(repository: QueueRepository) -> None:
    repository.insert_heartbeat(worker_id="discover-1", message="Discover worker alive")
    repository.insert_heartbeat(worker_id="discover-1", message="Discover worker alive")
    repository.insert_heartbeat(worker_id="render-1", message="Render worker alive")

    beats = repository.list_heartbeats(source="discover-1")
    liveness = {worker.source: worker for worker in repository.list_worker_liveness()}

    assert len(beats) == 2
    assert beats[0].message == "Discover worker alive"
    assert liveness["discover-1"].beats == 2
    assert liveness["render-1"].beats == 1


def test_get_job_details_includes_children_tasks_and_events(repository: QueueRepository) -> None:
    _discover_job(repository, "parent")
    repository.enqueue_job(
        JobCreate(job_type=JobKind.RENDER_CLIP, job_id="child", parent_id="parent"),
    )

    details = repository.get_job_details(job_id="parent")

    assert details is not None
    assert [child.id for child in details.children] == ["child"]
    assert details.tasks == []
    assert [event.event_type for event in details.events] == ["enqueued"]
    assert repository.get_job_details(job_id="missing") is None


def test_expired_task_lease_is_reclaimed_and_stale_owner_cannot_resolve(
    repository: QueueRepository,
) -> None:
    _render_job_with_task(repository, "render-1")
    first = repository.claim_next_task(worker_id="render-dead", lease=timedelta(seconds=-1))
    assert first is not None

    second = repository.claim_next_task(worker_id="render-live")

    assert second is not None
    assert second.id == first.id
    assert second.owner_id == "render-live"
    assert second.attempt == 2
    stale = repository.resolve_task(
        task_id=first.id,
        worker_id="render-dead",
        status=TaskStatus.FAILED,
        output={"error": "late"},
        error="late",
    )
    assert stale.task_updated is False
    assert stale.job_updated is False

    live = repository.resolve_task(
        task_id=second.id,
        worker_id="render-live",
        status=TaskStatus.DONE,
        output={"completed_at": "2026-10-01T12:00:00+00:00"},
    )
    assert live.consistent
    assert live.job_updated is True
    job = repository.get_job(job_id="render-1")
    assert job is not None
    assert job.status == JobStatus.DONE
    assert job.error is None
    events = repository.list_events(item_kind=ItemKind.TASK, item_id=first.id)
    assert [event.event_type for event in events] == [
        "enqueued",
        "claimed",
        "reclaimed",
        "succeeded",
    ]


def test_enqueue_task_rejects_second_active_task(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "render-1")

    with pytest.raises(RuntimeError, match="already has active render task task-render-1"):
        repository.enqueue_task(TaskCreate(job_id="render-1", task_id="task-second"))
    assert repository.get_task(task_id="task-second") is None


def test_task_of_finished_job_is_not_claimed(repository: QueueRepository) -> None:
    _render_job_with_task(repository, "render-1")
    task = repository.claim_next_task(worker_id="render-dead", lease=timedelta(seconds=-1))
    assert task is not None
    assert repository.fail_job(job_id="render-1", worker_id="render-dead", error="cancelled")

    assert repository.claim_next_task(worker_id="render-live") is None
    stored = repository.get_task(task_id=task.id)
    assert stored is not None
    assert stored.owner_id == "render-dead"
    assert repository.list_parent_mismatches() == []
