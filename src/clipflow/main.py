"""CLI entrypoint for clipflow."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from clipflow import __version__
from clipflow.config import VALID_LOG_LEVELS, ConfigError, configure_logging
from clipflow.orchestrator.controllers import (
    ClipflowCliController,
    EnqueueDiscoverCommand,
    EnqueueRenderCommand,
    InspectJobCommand,
    ListJobsCommand,
    ListTasksCommand,
    QueueCheckCommand,
    ScheduleTasksCommand,
    WorkerCommand,
    WorkersCommand,
)
from clipflow.orchestrator.models import (
    RENDER_JOB_KINDS,
    JobKind,
    JobStatus,
    TaskStatus,
    WorkerRole,
)

click.rich_click.USE_MARKDOWN = True
CONTROLLER = ClipflowCliController()

T = TypeVar("T")

DB_PATH_OPTION = click.option(
    "--db-path",
    type=click.Path(path_type=Path),
    default=None,
    help="SQLite DB path. Overrides CLIPFLOW_DB_PATH.",
)


@click.group()
@click.version_option(version=__version__, prog_name="clipflow")
@click.option(
    "--log-level",
    type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level. Defaults to CLIPFLOW_LOG_LEVEL or INFO.",
)
def clipflow(log_level: str | None) -> None:
    """Clip discovery and rendering work queue."""

    configure_logging(log_level or os.getenv("CLIPFLOW_LOG_LEVEL", "INFO"))


@clipflow.command("worker")
@click.argument("role", type=click.Choice([role.value for role in WorkerRole]))
@DB_PATH_OPTION
@click.option(
    "--once/--loop",
    default=False,
    show_default=True,
    help="Run one claim-process cycle, or poll until stopped.",
)
@click.option(
    "--max-items",
    type=click.IntRange(min=1),
    default=None,
    help="Optional cap for processed items in loop mode.",
)
@click.option(
    "--max-idle-polls",
    type=click.IntRange(min=1),
    default=None,
    help="Stop the loop after this many consecutive polls without work.",
)
def worker(
    role: str,
    db_path: Path | None,
    once: bool,
    max_items: int | None,
    max_idle_polls: int | None,
) -> None:
    """Run a discover or render worker.

    SIGINT / SIGTERM stop the loop after the current item.
    """

    _emit_lines(
        _call(
            lambda: CONTROLLER.run_worker(
                WorkerCommand(
                    db_path=db_path,
                    role=WorkerRole(role),
                    once=once,
                    max_items=max_items,
                    max_idle_polls=max_idle_polls,
                ),
            ),
        ),
    )


@clipflow.group()
def jobs() -> None:
    """Job queue commands."""


@jobs.command("enqueue-discover")
@DB_PATH_OPTION
@click.option("--platform", default="all", show_default=True, help="twitch, youtube, rumble or all.")
@click.option("--query", default=None, help="Search query.")
@click.option("--category", default="gaming", show_default=True, help="Content category.")
@click.option("--keywords", default=None, help="Free-form keywords.")
def jobs_enqueue_discover(
    db_path: Path | None,
    platform: str,
    query: str | None,
    category: str,
    keywords: str | None,
) -> None:
    """Enqueue a discover job."""

    _emit_lines(
        _call(
            lambda: CONTROLLER.enqueue_discover(
                EnqueueDiscoverCommand(
                    db_path=db_path,
                    platform=platform.lower(),
                    query=query,
                    category=category.lower(),
                    keywords=keywords,
                ),
            ),
        ),
    )


@jobs.command("enqueue-render")
@DB_PATH_OPTION
@click.option(
    "--job-type",
    type=click.Choice(sorted(kind.value for kind in RENDER_JOB_KINDS)),
    default=JobKind.RENDER_CLIP.value,
    show_default=True,
    help="Render work kind.",
)
@click.option("--source-url", default=None, help="Source video URL.")
@click.option("--source-platform", default=None, help="Source platform.")
@click.option("--title", default=None, help="Clip title.")
@click.option(
    "--keywords",
    default=None,
    help="Keywords; ai_short reads `topic:<topic>|script:<script>`.",
)
def jobs_enqueue_render(  # noqa: PLR0913
    db_path: Path | None,
    job_type: str,
    source_url: str | None,
    source_platform: str | None,
    title: str | None,
    keywords: str | None,
) -> None:
    """Enqueue a render job together with its render task."""

    _emit_lines(
        _call(
            lambda: CONTROLLER.enqueue_render(
                EnqueueRenderCommand(
                    db_path=db_path,
                    job_type=JobKind(job_type),
                    source_url=source_url,
                    source_platform=source_platform,
                    title=title,
                    keywords=keywords,
                ),
            ),
        ),
    )


@jobs.command("list")
@DB_PATH_OPTION
@click.option(
    "--status",
    type=click.Choice([status.value for status in JobStatus]),
    default=None,
    help="Filter by status.",
)
@click.option(
    "--job-type",
    type=click.Choice([kind.value for kind in JobKind]),
    default=None,
    help="Filter by job type.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=50,
    show_default=True,
    help="Max number of jobs to print.",
)
def jobs_list(db_path: Path | None, status: str | None, job_type: str | None, limit: int) -> None:
    """List recent jobs."""

    _emit_lines(
        _call(
            lambda: CONTROLLER.list_jobs(
                ListJobsCommand(db_path=db_path, status=status, job_type=job_type, limit=limit),
            ),
        ),
    )


@jobs.command("inspect")
@DB_PATH_OPTION
@click.option("--job-id", required=True, help="Job id.")
def jobs_inspect(db_path: Path | None, job_id: str) -> None:
    """Show one job with its tasks, fan-out children and events."""

    _emit_lines(
        _call(lambda: CONTROLLER.inspect_job(InspectJobCommand(db_path=db_path, job_id=job_id))),
    )


@clipflow.group()
def tasks() -> None:
    """Render task commands."""


@tasks.command("list")
@DB_PATH_OPTION
@click.option(
    "--status",
    type=click.Choice([status.value for status in TaskStatus]),
    default=None,
    help="Filter by status.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=50,
    show_default=True,
    help="Max number of tasks to print.",
)
def tasks_list(db_path: Path | None, status: str | None, limit: int) -> None:
    """List recent render tasks."""

    _emit_lines(
        _call(
            lambda: CONTROLLER.list_tasks(
                ListTasksCommand(db_path=db_path, status=status, limit=limit),
            ),
        ),
    )


@tasks.command("schedule")
@DB_PATH_OPTION
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=100,
    show_default=True,
    help="Max number of tasks to create.",
)
def tasks_schedule(db_path: Path | None, limit: int) -> None:
    """Create render tasks for ready render jobs that have none."""

    _emit_lines(
        _call(
            lambda: CONTROLLER.schedule_tasks(ScheduleTasksCommand(db_path=db_path, limit=limit)),
        ),
    )


@clipflow.command("workers")
@DB_PATH_OPTION
@click.option(
    "--stale-after-seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Flag workers silent for longer than this. Defaults to twice the heartbeat interval.",
)
def workers(db_path: Path | None, stale_after_seconds: float | None) -> None:
    """Show the last heartbeat of every worker."""

    _emit_lines(
        _call(
            lambda: CONTROLLER.workers(
                WorkersCommand(db_path=db_path, stale_after_seconds=stale_after_seconds),
            ),
        ),
    )


@clipflow.group()
def queue() -> None:
    """Queue health commands."""


@queue.command("check")
@DB_PATH_OPTION
def queue_check(db_path: Path | None) -> None:
    """Find terminal render tasks whose job does not mirror the outcome."""

    result = _call(lambda: CONTROLLER.check_queue(QueueCheckCommand(db_path=db_path)))
    _emit_lines(result.lines)
    if not result.healthy:
        raise click.ClickException("Task/job mismatches found.")


def _call(action: Callable[[], T]) -> T:
    try:
        return action()
    except ConfigError as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    clipflow()
