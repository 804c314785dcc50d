from __future__ import annotations

import random

import allure
import pytest

from clipflow.orchestrator.backoff import PollBackoff

pytestmark = [
    allure.epic("Work Queue"),
    allure.feature("Poll Loop"),
]


def test_idle_delay_is_poll_interval() -> None:
    backoff = PollBackoff(idle_seconds=5.0, error_max_seconds=300.0)

    assert backoff.idle_delay() == 5.0


def test_error_delay_grows_and_is_capped() -> None:
    backoff = PollBackoff(idle_seconds=5.0, error_max_seconds=20.0, rng=random.Random(0))

    delays = [backoff.error_delay() for _ in range(6)]

    assert 5.0 <= delays[0] <= 10.0
    assert 10.0 <= delays[1] <= 20.0
    assert all(10.0 <= delay <= 20.0 for delay in delays[2:])


@pytest.mark.parametrize("seed", range(20))
def test_error_delay_is_never_shorter_than_idle_delay(seed: int) -> None:
    backoff = PollBackoff(idle_seconds=5.0, error_max_seconds=300.0, rng=random.Random(seed))

    delays = [backoff.error_delay() for _ in range(10)]

    assert all(5.0 <= delay <= 300.0 for delay in delays)


def test_idle_poll_and_reset_clear_error_streak() -> None:
    backoff = PollBackoff(idle_seconds=1.0, error_max_seconds=60.0)
    backoff.error_delay()
    backoff.error_delay()

    backoff.idle_delay()
    assert backoff.consecutive_errors == 0

    backoff.error_delay()
    backoff.reset()
    assert backoff.consecutive_errors == 0
