from __future__ import annotations

import allure
from sqlalchemy.exc import OperationalError

from clipflow.orchestrator.claimer import WorkClaimer
from clipflow.orchestrator.models import (
    JobCreate,
    JobKind,
    TaskCreate,
    TaskView,
    WorkerRole,
)
from clipflow.orchestrator.repository import QueueRepository

pytestmark = [
    allure.epic("Work Queue"),
    allure.feature("Claims & Lifecycle"),
]


def test_discover_claimer_claims_discover_jobs(repository: QueueRepository) -> None:
    job = repository.enqueue_job(JobCreate(job_type=JobKind.DISCOVER))

    result = WorkClaimer(repository=repository, role=WorkerRole.DISCOVER).claim("discover-1")

    assert not result.failed
    assert result.item is not None
    assert result.item.id == job.id


def test_render_claimer_claims_tasks(repository: QueueRepository) -> None:
    job = repository.enqueue_job(JobCreate(job_type=JobKind.AI_SHORT, keywords="topic:cats"))
    task = repository.enqueue_task(TaskCreate(job_id=job.id))

    result = WorkClaimer(repository=repository, role=WorkerRole.RENDER).claim("render-1")

    assert isinstance(result.item, TaskView)
    assert result.item.id == task.id


def test_empty_queue_is_not_an_error(repository: QueueRepository) -> None:
    result = WorkClaimer(repository=repository, role=WorkerRole.RENDER).claim("render-1")

    assert result.item is None
    assert not result.failed


def test_store_error_is_reported_not_raised(repository: QueueRepository, monkeypatch) -> None:
    def _locked(**_: object) -> None:
        raise OperationalError("UPDATE", {}, Exception("database is locked"))

    monkeypatch.setattr(repository, "claim_next_job", _locked)

    result = WorkClaimer(repository=repository, role=WorkerRole.DISCOVER).claim("discover-1")

    assert result.failed
    assert result.item is None
    assert "database is locked" in (result.error or "")
