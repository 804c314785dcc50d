"""Delay policy between poll attempts."""

from __future__ import annotations

import random


class PollBackoff:
    """Fixed delay while idle, capped exponential delay with jitter on store errors."""

    def __init__(
        self,
        *,
        idle_seconds: float,
        error_max_seconds: float,
        rng: random.Random | None = None,
    ) -> None:
        self.idle_seconds = idle_seconds
        self.error_max_seconds = max(error_max_seconds, idle_seconds)
        self.consecutive_errors = 0
        self._random = rng or random.Random()  # noqa: S311

    def idle_delay(self) -> float:
        self.consecutive_errors = 0
        return self.idle_seconds

    def error_delay(self) -> float:
        """Delay after a store error; never shorter than the idle interval."""

        self.consecutive_errors += 1
        max_delay = min(
            self.error_max_seconds,
            self.idle_seconds * (2**self.consecutive_errors),
        )
        # Half fixed, half jitter, floored at the idle interval.
        floor = max(self.idle_seconds, max_delay / 2)
        return floor + self._random.uniform(0, max_delay - floor)

    def reset(self) -> None:
        self.consecutive_errors = 0
