"""Atomic claim of the next eligible work item for one worker role."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from clipflow.orchestrator.models import JobKind, WorkerRole, WorkItem
from clipflow.orchestrator.repository import DEFAULT_LEASE, QueueRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClaimResult:
    """One claim attempt: an item, nothing (empty queue), or a store error."""

    item: WorkItem | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class WorkClaimer:
    """Takes ownership of at most one item per call.

    Discover workers claim ``discover`` jobs; render workers claim render tasks.
    Both go through the repository's single-statement claim, so exclusivity
    holds across processes without in-process locking.
    """

    def __init__(
        self,
        *,
        repository: QueueRepository,
        role: WorkerRole,
        lease: timedelta = DEFAULT_LEASE,
    ) -> None:
        self.repository = repository
        self.role = role
        self.lease = lease

    def claim(self, worker_id: str) -> ClaimResult:
        try:
            if self.role == WorkerRole.DISCOVER:
                item: WorkItem | None = self.repository.claim_next_job(
                    worker_id=worker_id,
                    job_type=JobKind.DISCOVER,
                    lease=self.lease,
                )
            else:
                item = self.repository.claim_next_task(worker_id=worker_id, lease=self.lease)
        except SQLAlchemyError as error:
            logger.warning(
                "Error claiming %s work for worker %s: %s",
                self.role.value,
                worker_id,
                error,
            )
            return ClaimResult(error=str(error))

        if item is None:
            logger.debug("No %s work available for worker %s", self.role.value, worker_id)
            return ClaimResult()
        logger.info(
            "Worker %s claimed %s item %s (attempt=%d)",
            worker_id,
            self.role.value,
            item.id,
            item.attempt,
        )
        return ClaimResult(item=item)
