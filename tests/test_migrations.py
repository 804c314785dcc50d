from __future__ import annotations

import sqlite3
from pathlib import Path

import allure

from clipflow.orchestrator.repository import QueueRepository

pytestmark = [
    allure.epic("Work Queue"),
    allure.feature("Schema"),
]


def test_alembic_schema_is_initialized_to_head(tmp_path: Path) -> None:
    db_path = tmp_path / "migrations.db"
    repository = QueueRepository(db_path)
    repository.init_schema()
    repository.init_schema()
    assert repository.list_jobs() == []
    repository.close()

    connection = sqlite3.connect(db_path)
    try:
        version = connection.execute("SELECT version_num FROM alembic_version").fetchall()
        tables = connection.execute(
            """
            SELECT name
            FROM sqlite_master
            WHERE type = 'table' AND name NOT LIKE 'alembic_%'
            ORDER BY name
            """,
        ).fetchall()
        task_columns = {row[1] for row in connection.execute("PRAGMA table_info(render_tasks)")}
        journal_mode = connection.execute("PRAGMA journal_mode").fetchone()
    finally:
        connection.close()

    assert version == [("20261019_0002",)]
    assert [row[0] for row in tables] == [
        "render_tasks",
        "video_processing_jobs",
        "work_item_events",
        "worker_heartbeat",
    ]
    assert {"owner_id", "lease_expires_at", "attempt"} <= task_columns
    assert journal_mode == ("wal",)
