"""Render task processing: dispatch by work kind, resolve task and job together."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from clipflow.orchestrator.models import TaskStatus, TaskView
from clipflow.orchestrator.repository import QueueRepository
from clipflow.render.strategies import StrategyRegistry
from clipflow.storage.common import utc_now

logger = logging.getLogger(__name__)


class RenderProcessor:
    """Resolves one claimed render task; never raises past :meth:`process`."""

    def __init__(
        self,
        *,
        repository: QueueRepository,
        registry: StrategyRegistry,
        worker_id: str,
    ) -> None:
        self.repository = repository
        self.registry = registry
        self.worker_id = worker_id

    def process(self, task: TaskView) -> None:
        logger.info(
            "Processing render task %s (job=%s kind=%s attempt=%d)",
            task.id,
            task.job_id,
            task.job_type or "-",
            task.attempt,
        )
        try:
            strategy = self.registry.resolve(task.job_type)
            output = strategy.run(task)
        except Exception as error:
            message = str(error) or type(error).__name__
            logger.error("Render task %s failed: %s", task.id, message)
            self._resolve(task, TaskStatus.FAILED, output={"error": message}, error=message)
            return

        self._resolve(
            task,
            TaskStatus.DONE,
            output={"completed_at": utc_now().isoformat(), **(output or {})},
            error=None,
        )
        logger.info("Render task %s completed", task.id)

    def _resolve(
        self,
        task: TaskView,
        status: TaskStatus,
        *,
        output: dict[str, Any],
        error: str | None,
    ) -> None:
        try:
            resolution = self.repository.resolve_task(
                task_id=task.id,
                worker_id=self.worker_id,
                status=status,
                output=output,
                error=error,
            )
        except (SQLAlchemyError, RuntimeError):
            logger.exception("Error resolving render task %s", task.id)
            return
        if not resolution.task_updated:
            logger.warning(
                "Render task %s was not resolved: no longer rendering or owned by %s",
                task.id,
                self.worker_id,
            )
        elif not resolution.job_updated:
            logger.error(
                "Render task %s is %s but job %s was not mirrored",
                task.id,
                status.value,
                task.job_id,
            )
