from __future__ import annotations

from pathlib import Path

import allure
from click.testing import CliRunner

from clipflow import __version__
from clipflow.main import clipflow

pytestmark = [
    allure.epic("Operations"),
    allure.feature("CLI"),
]


def _fast_worker_env(monkeypatch) -> None:
    monkeypatch.setenv("CLIPFLOW_SIMULATED_DELAY_SECONDS", "0")
    monkeypatch.setenv("CLIPFLOW_POLL_INTERVAL_SECONDS", "0.01")


def test_version() -> None:
    result = CliRunner().invoke(clipflow, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_discover_then_render_end_to_end(tmp_path: Path, monkeypatch) -> None:
    db_path = str(tmp_path / "cli.db")
    _fast_worker_env(monkeypatch)
    runner = CliRunner()

    enqueue = runner.invoke(
        clipflow,
        ["jobs", "enqueue-discover", "--db-path", db_path, "--query", "clutch"],
    )
    assert enqueue.exit_code == 0, enqueue.output
    assert "type=discover status=ready" in enqueue.output

    discover = runner.invoke(clipflow, ["worker", "discover", "--db-path", db_path, "--once"])
    assert discover.exit_code == 0, discover.output
    assert "processed=1" in discover.output

    listed = runner.invoke(
        clipflow,
        ["jobs", "list", "--db-path", db_path, "--job-type", "render_clip", "--status", "ready"],
    )
    assert listed.exit_code == 0, listed.output
    job_count = int(listed.output.splitlines()[0].removeprefix("Jobs: "))
    assert 3 <= job_count <= 5

    scheduled = runner.invoke(clipflow, ["tasks", "schedule", "--db-path", db_path])
    assert scheduled.exit_code == 0, scheduled.output
    assert f"Tasks scheduled: {job_count}" in scheduled.output

    render = runner.invoke(
        clipflow,
        ["worker", "render", "--db-path", db_path, "--loop", "--max-idle-polls", "1"],
    )
    assert render.exit_code == 0, render.output
    assert f"processed={job_count}" in render.output

    done = runner.invoke(clipflow, ["tasks", "list", "--db-path", db_path, "--status", "done"])
    assert f"Tasks: {job_count}" in done.output

    check = runner.invoke(clipflow, ["queue", "check", "--db-path", db_path])
    assert check.exit_code == 0, check.output
    assert "Queue consistent" in check.output

    workers = runner.invoke(clipflow, ["workers", "--db-path", db_path])
    assert workers.exit_code == 0, workers.output
    assert "Workers: 2" in workers.output


def test_enqueue_render_and_inspect(tmp_path: Path) -> None:
    db_path = str(tmp_path / "cli.db")
    runner = CliRunner()

    enqueue = runner.invoke(
        clipflow,
        [
            "jobs",
            "enqueue-render",
            "--db-path",
            db_path,
            "--job-type",
            "ai_short",
            "--keywords",
            "topic:space|script:Hello",
        ],
    )
    assert enqueue.exit_code == 0, enqueue.output
    job_line = enqueue.output.splitlines()[0]
    job_id = job_line.split("job_id=")[1].split()[0]
    assert "Task enqueued:" in enqueue.output

    inspect = runner.invoke(clipflow, ["jobs", "inspect", "--db-path", db_path, "--job-id", job_id])

    assert inspect.exit_code == 0, inspect.output
    assert f"Job: {job_id}" in inspect.output
    assert "Type: ai_short" in inspect.output
    assert "Render status: queued" in inspect.output
    assert "Tasks: 1" in inspect.output


def test_worker_without_db_path_exits_with_error() -> None:
    result = CliRunner().invoke(clipflow, ["worker", "discover", "--once"])

    assert result.exit_code == 1
    assert "CLIPFLOW_DB_PATH" in result.output


def test_db_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("CLIPFLOW_DB_PATH", str(tmp_path / "env.db"))

    result = CliRunner().invoke(clipflow, ["jobs", "list"])

    assert result.exit_code == 0, result.output
    assert "Jobs: 0" in result.output
