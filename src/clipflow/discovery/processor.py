"""Discover job processing: search, fan out render jobs, resolve the discover job."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from clipflow.orchestrator.models import CandidateClip, JobCreate, JobKind, JobView
from clipflow.orchestrator.repository import QueueRepository

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = "all"
DEFAULT_CATEGORY = "gaming"


class DiscoveryError(RuntimeError):
    """Content discovery could not complete a search."""


class ClipDiscoverer(Protocol):
    """Content discovery collaborator (platform search)."""

    def search(self, platform: str, query: str, category: str) -> Sequence[CandidateClip]:
        """Return candidate clips, best first; raise DiscoveryError on failure."""


@dataclass(slots=True)
class FanOutResult:
    clips_found: int
    jobs_created: list[str]
    failed_inserts: int


class DiscoveryProcessor:
    """Resolves one claimed discover job; never raises past :meth:`process`."""

    def __init__(
        self,
        *,
        repository: QueueRepository,
        discoverer: ClipDiscoverer,
        worker_id: str,
    ) -> None:
        self.repository = repository
        self.discoverer = discoverer
        self.worker_id = worker_id

    def process(self, job: JobView) -> None:
        platform = job.source_platform or DEFAULT_PLATFORM
        query = job.source_query or job.keywords or ""
        category = job.category or DEFAULT_CATEGORY
        logger.info(
            "Processing discover job %s (platform=%s query=%r category=%s)",
            job.id,
            platform,
            query,
            category,
        )

        try:
            clips = list(self.discoverer.search(platform, query, category))
        except Exception as error:
            message = str(error) or type(error).__name__
            logger.error("Discover job %s failed: %s", job.id, message)
            self._write_status(
                job.id,
                lambda: self.repository.fail_job(
                    job_id=job.id,
                    worker_id=self.worker_id,
                    error=message,
                ),
            )
            return

        logger.info("Found %d clips for discover job %s", len(clips), job.id)
        result = self.fan_out(job, clips)
        self._write_status(
            job.id,
            lambda: self.repository.complete_job(
                job_id=job.id,
                worker_id=self.worker_id,
                output={
                    "clips_found": result.clips_found,
                    "jobs_created": len(result.jobs_created),
                    "failed_inserts": result.failed_inserts,
                },
            ),
        )
        logger.info(
            "Discover job %s completed (created=%d failed_inserts=%d)",
            job.id,
            len(result.jobs_created),
            result.failed_inserts,
        )

    def fan_out(self, job: JobView, clips: Sequence[CandidateClip]) -> FanOutResult:
        """Insert one ready render job per clip; a failed insert skips only that clip."""

        created: list[str] = []
        failed = 0
        for index, clip in enumerate(clips):
            try:
                child = self.repository.enqueue_job(
                    JobCreate(
                        job_type=JobKind.RENDER_CLIP,
                        user_id=job.user_id,
                        parent_id=job.id,
                        source_platform=clip.source_platform,
                        source_url=clip.source_url,
                        title=clip.title,
                        viral_score=clip.viral_score,
                        duration=clip.duration,
                        thumbnail_url=clip.thumbnail_url,
                        keywords=f"parent:{job.id}",
                    ),
                )
            except Exception as error:
                failed += 1
                logger.error(
                    "Error creating clip job %d/%d for discover job %s: %s",
                    index + 1,
                    len(clips),
                    job.id,
                    error,
                )
                continue
            created.append(child.id)
        return FanOutResult(clips_found=len(clips), jobs_created=created, failed_inserts=failed)

    def _write_status(self, job_id: str, write: Callable[[], bool]) -> None:
        try:
            applied = write()
        except SQLAlchemyError:
            logger.exception("Error updating status of discover job %s", job_id)
            return
        if not applied:
            logger.warning(
                "Discover job %s was not updated: no longer processing or owned by %s",
                job_id,
                self.worker_id,
            )
