from __future__ import annotations

import random

import pytest

from earlybird.scheduling import compute_retry_delay_ms, wait_jittered_interval


class _FixedRandom:
    def __init__(self, value: float) -> None:
        self.value = value

    def uniform(self, a: float, b: float) -> float:
        return self.value


@pytest.mark.parametrize("base", [0.5, 1, 2, 10, 10.5, 30])
def test_delay_stays_within_one_minute_of_base(base: float) -> None:
    rng = random.Random(1234)
    for _ in range(200):
        delay = compute_retry_delay_ms(base, rng)
        assert max(0, (base - 1) * 60_000) <= delay <= (base + 1) * 60_000


@pytest.mark.parametrize(
    "draw, expected",
    [(0.0, 540_000), (0.2, 540_000), (0.7, 600_000), (1.0, 600_000), (1.6, 660_000), (2.0, 660_000)],
)
def test_delay_for_default_base_is_whole_minutes(draw: float, expected: int) -> None:
    assert compute_retry_delay_ms(10, _FixedRandom(draw)) == expected


def test_delay_is_jittered() -> None:
    rng = random.Random(7)
    delays = {compute_retry_delay_ms(10, rng) for _ in range(50)}
    assert len(delays) > 1


@pytest.mark.parametrize("draw, expected", [(0.0, 0), (1.0, 0), (2.0, 90_000)])
def test_sub_minute_base_keeps_upper_bound_and_never_goes_negative(draw: float, expected: int) -> None:
    # base 0.5: -0.5 + draw rounds to 0 or 2 minutes; 2 is capped at 1.5.
    assert compute_retry_delay_ms(0.5, _FixedRandom(draw)) == expected


def test_fractional_base_is_capped_at_one_minute_above() -> None:
    # round(11.5) == 12 would overshoot 10.5 + 1.
    assert compute_retry_delay_ms(10.5, _FixedRandom(2.0)) == 690_000


def test_tenacity_wait_returns_seconds() -> None:
    wait = wait_jittered_interval(10, _FixedRandom(1.0))
    assert wait(None) == 600.0
