"""Poll loop shared by the discover and render workers."""

from __future__ import annotations

import logging
import signal
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol

from clipflow.orchestrator.backoff import PollBackoff
from clipflow.orchestrator.claimer import WorkClaimer

logger = logging.getLogger(__name__)


class WorkProcessor(Protocol):
    """Drives one claimed item to a terminal status; must not raise."""

    def process(self, item: Any) -> None:
        """Process one claimed item."""


@dataclass(slots=True)
class WorkerRunSummary:
    """Aggregate worker counters for CLI reporting."""

    processed: int = 0
    idle_polls: int = 0
    claim_errors: int = 0
    processor_errors: int = 0


class QueueWorker:
    """Claims items one at a time and hands them to a role-specific processor.

    The loop alternates between idle (nothing claimed, wait) and active
    (process one item to a terminal status). Processing failures never stop
    the loop.
    """

    def __init__(
        self,
        *,
        claimer: WorkClaimer,
        processor: WorkProcessor,
        worker_id: str,
        backoff: PollBackoff,
    ) -> None:
        self.claimer = claimer
        self.processor = processor
        self.worker_id = worker_id
        self.backoff = backoff
        self._stop_requested = False
        self._current_item_id: str | None = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        self._stop_requested = True

    def run_once(self) -> WorkerRunSummary:
        """Process at most one item from the queue."""

        summary = WorkerRunSummary()
        if self._stop_requested:
            summary.idle_polls = 1
            return summary

        result = self.claimer.claim(self.worker_id)
        if result.failed:
            summary.claim_errors = 1
            return summary
        if result.item is None:
            summary.idle_polls = 1
            return summary

        item = result.item
        summary.processed = 1
        self._current_item_id = item.id
        started = time.monotonic()
        logger.info("Worker %s processing %s", self.worker_id, item.id)
        try:
            self.processor.process(item)
        except Exception:
            summary.processor_errors = 1
            logger.exception("Processor raised for item %s", item.id)
        finally:
            self._current_item_id = None
        logger.info(
            "Worker %s finished %s in %.2fs",
            self.worker_id,
            item.id,
            time.monotonic() - started,
        )
        return summary

    def run_loop(
        self,
        *,
        max_items: int | None = None,
        max_idle_polls: int | None = None,
    ) -> WorkerRunSummary:
        """Run the poll loop.

        Args:
            max_items: Stop after processing this many items (None = unlimited).
            max_idle_polls: Stop after this many consecutive polls without work,
                store errors included (None = poll forever).
        """

        aggregate = WorkerRunSummary()
        consecutive_idle = 0
        with self._signal_handlers():
            while True:
                if self._stop_requested:
                    return aggregate
                if max_items is not None and aggregate.processed >= max_items:
                    return aggregate

                summary = self.run_once()
                aggregate.processed += summary.processed
                aggregate.idle_polls += summary.idle_polls
                aggregate.claim_errors += summary.claim_errors
                aggregate.processor_errors += summary.processor_errors

                if summary.processed:
                    consecutive_idle = 0
                    self.backoff.reset()
                    continue

                consecutive_idle += 1
                if max_idle_polls is not None and consecutive_idle >= max_idle_polls:
                    return aggregate
                if summary.claim_errors:
                    self._sleep_with_stop(self.backoff.error_delay())
                else:
                    self._sleep_with_stop(self.backoff.idle_delay())

    def _sleep_with_stop(self, seconds: float) -> None:
        deadline = time.monotonic() + seconds
        while not self._stop_requested and time.monotonic() < deadline:
            time.sleep(min(0.1, max(0.0, deadline - time.monotonic())))

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        if not hasattr(signal, "SIGINT"):
            yield
            return

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = str(signum)
            logger.info(
                "Received %s; worker %s stops after item %s",
                name,
                self.worker_id,
                self._current_item_id or "-",
            )
            self.request_stop()

        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
        except ValueError:
            # Signal handlers can only be installed in main thread.
            yield
            return
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, original_sigint)
            signal.signal(signal.SIGTERM, original_sigterm)
