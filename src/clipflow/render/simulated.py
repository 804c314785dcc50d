"""Stand-in media collaborator until download/transcode/compose is wired in."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from clipflow.render.strategies import ShortSpec

logger = logging.getLogger(__name__)


class SimulatedMediaBackend:
    """Sleeps for a configurable delay and reports simulated output."""

    def __init__(
        self,
        *,
        delay_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def synthesize_short(self, spec: ShortSpec) -> dict[str, Any]:
        logger.info("Generating AI short for topic: %s", spec.topic)
        if spec.script:
            logger.info("Custom script: %s", spec.script)
        self._wait(2.0)
        return {"simulated": True, "topic": spec.topic, "has_script": bool(spec.script)}

    def extract_highlights(self, source_url: str) -> dict[str, Any]:
        logger.info("Processing long-form video from: %s", source_url)
        self._wait(3.0)
        return {"simulated": True, "source_url": source_url, "highlights": []}

    def render_clip(self, spec: dict[str, Any]) -> dict[str, Any]:
        logger.info("Rendering clip %s", spec.get("source_url") or spec.get("title") or "-")
        self._wait(1.5)
        return {"simulated": True, "source_url": spec.get("source_url")}

    def _wait(self, weight: float) -> None:
        # Delays are relative to the 2s baseline of the AI short pipeline.
        if self.delay_seconds > 0:
            self._sleep(self.delay_seconds * weight / 2.0)
