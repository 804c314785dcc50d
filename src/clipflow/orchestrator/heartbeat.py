"""Background liveness reporter for worker processes."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from types import TracebackType

logger = logging.getLogger(__name__)

HeartbeatSink = Callable[..., object]


class HeartbeatReporter:
    """Appends a heartbeat row on a fixed interval, independent of work progress.

    ``sink`` is called as ``sink(worker_id=..., message=...)``; usually
    ``QueueRepository.insert_heartbeat``. A failed beat is logged and the next
    interval proceeds as usual.
    """

    def __init__(
        self,
        *,
        sink: HeartbeatSink,
        worker_id: str,
        message: str,
        interval_seconds: float,
    ) -> None:
        self.sink = sink
        self.worker_id = worker_id
        self.message = message
        self.interval_seconds = interval_seconds
        self.sent = 0
        self.failed = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def beat(self) -> bool:
        try:
            self.sink(worker_id=self.worker_id, message=self.message)
        except Exception:
            self.failed += 1
            logger.exception("Heartbeat failed for %s", self.worker_id)
            return False
        self.sent += 1
        logger.debug("Heartbeat sent from %s", self.worker_id)
        return True

    def start(self) -> None:
        """Send the first heartbeat now, then keep beating on a daemon thread."""

        if self._thread is not None:
            return
        self._stop.clear()
        self.beat()
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name=f"heartbeat-{self.worker_id}",
        )
        self._thread.start()
        logger.info(
            "Heartbeat reporter started for %s (interval=%.1fs)",
            self.worker_id,
            self.interval_seconds,
        )

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Heartbeat reporter stopped for %s", self.worker_id)

    def _run(self) -> None:
        while not self._stop.wait(timeout=self.interval_seconds):
            self.beat()

    def __enter__(self) -> HeartbeatReporter:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.stop()
