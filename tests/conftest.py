"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from clipflow.orchestrator.repository import QueueRepository


@pytest.fixture(autouse=True)
def _clean_clipflow_env(monkeypatch) -> None:
    """Keep developer CLIPFLOW_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("CLIPFLOW_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "clipflow.db"


@pytest.fixture()
def repository(db_path: Path) -> Iterator[QueueRepository]:
    repo = QueueRepository(db_path)
    repo.init_schema()
    try:
        yield repo
    finally:
        repo.close()
