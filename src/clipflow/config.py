"""Runtime configuration for the clipflow workers."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path

from clipflow.orchestrator.models import WorkerRole

VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(ValueError):
    """Required configuration is missing or invalid; workers must not start."""


@dataclass(slots=True)
class WorkerSettings:
    """Poll loop, lease and liveness settings shared by both worker roles."""

    worker_id: str | None = None
    poll_interval_seconds: float = 5.0
    heartbeat_interval_seconds: float = 60.0
    lease_seconds: int = 1_800
    error_backoff_max_seconds: float = 300.0

    def resolve_worker_id(self, role: WorkerRole) -> str:
        """Configured worker id, or ``<role>-<epoch ms>`` when unset."""

        if self.worker_id:
            return self.worker_id
        return f"{role.value}-{int(time.time() * 1000)}"


@dataclass(slots=True)
class SimulationSettings:
    """Settings for the simulated discovery and media collaborators."""

    delay_seconds: float = 2.0


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path | None = None
    user_id: str = "default_user"
    sqlite_busy_timeout_ms: int = 5_000
    log_level: str = "INFO"
    worker: WorkerSettings = field(default_factory=WorkerSettings)
    simulation: SimulationSettings = field(default_factory=SimulationSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment; ``db_path`` overrides CLIPFLOW_DB_PATH."""

        env_db_path = os.getenv("CLIPFLOW_DB_PATH", "").strip()
        return cls(
            db_path=db_path or (Path(env_db_path) if env_db_path else None),
            user_id=os.getenv("CLIPFLOW_USER_ID", "default_user"),
            sqlite_busy_timeout_ms=_env_int("CLIPFLOW_SQLITE_BUSY_TIMEOUT_MS", 5_000),
            log_level=os.getenv("CLIPFLOW_LOG_LEVEL", "INFO").strip().upper(),
            worker=WorkerSettings(
                worker_id=os.getenv("CLIPFLOW_WORKER_ID", "").strip() or None,
                poll_interval_seconds=_env_float("CLIPFLOW_POLL_INTERVAL_SECONDS", 5.0),
                heartbeat_interval_seconds=_env_float(
                    "CLIPFLOW_HEARTBEAT_INTERVAL_SECONDS",
                    60.0,
                ),
                lease_seconds=_env_int("CLIPFLOW_LEASE_SECONDS", 1_800),
                error_backoff_max_seconds=_env_float(
                    "CLIPFLOW_ERROR_BACKOFF_MAX_SECONDS",
                    300.0,
                ),
            ),
            simulation=SimulationSettings(
                delay_seconds=_env_float("CLIPFLOW_SIMULATED_DELAY_SECONDS", 2.0),
            ),
        )

    def require_db_path(self) -> Path:
        if self.db_path is None:
            raise ConfigError(
                "Missing required configuration: set CLIPFLOW_DB_PATH or pass --db-path.",
            )
        return self.db_path

    def validate_for_worker(self) -> None:
        """Raise ConfigError when a worker cannot safely start with these settings."""

        self.require_db_path()
        if self.worker.poll_interval_seconds <= 0:
            raise ConfigError("CLIPFLOW_POLL_INTERVAL_SECONDS must be > 0.")
        if self.worker.heartbeat_interval_seconds <= 0:
            raise ConfigError("CLIPFLOW_HEARTBEAT_INTERVAL_SECONDS must be > 0.")
        if self.worker.lease_seconds <= 0:
            raise ConfigError("CLIPFLOW_LEASE_SECONDS must be > 0.")
        if self.worker.error_backoff_max_seconds < self.worker.poll_interval_seconds:
            raise ConfigError(
                "CLIPFLOW_ERROR_BACKOFF_MAX_SECONDS must be >= CLIPFLOW_POLL_INTERVAL_SECONDS.",
            )
        if self.simulation.delay_seconds < 0:
            raise ConfigError("CLIPFLOW_SIMULATED_DELAY_SECONDS must be >= 0.")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigError(f"Invalid CLIPFLOW_LOG_LEVEL: {self.log_level!r}")


def configure_logging(level: str) -> None:
    """Configure root logging once for a CLI process."""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ConfigError(f"Invalid integer value for {name}: {raw!r}") from error


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as error:
        raise ConfigError(f"Invalid number value for {name}: {raw!r}") from error
