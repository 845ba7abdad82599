from __future__ import annotations

import random

from tenacity import RetryCallState
from tenacity.wait import wait_base

_MS_PER_MINUTE = 60_000


def compute_retry_delay_ms(base_minutes: float, rng: random.Random | None = None) -> int:
    """Return the next retry delay in milliseconds.

    Effective minutes are round(base - 1 + uniform(0, 2)), so checks don't
    land on a fixed period. The result is kept inside [base - 1, base + 1]
    minutes and never below zero, which matters for fractional and
    sub-minute bases.
    """
    rng = rng or random
    base = float(base_minutes)
    minutes = round(base - 1 + rng.uniform(0, 2))
    minutes = min(max(minutes, base - 1, 0), base + 1)
    return int(round(minutes * _MS_PER_MINUTE))


class wait_jittered_interval(wait_base):
    """tenacity wait strategy backed by compute_retry_delay_ms()."""

    def __init__(self, base_minutes: float, rng: random.Random | None = None) -> None:
        self.base_minutes = base_minutes
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        return compute_retry_delay_ms(self.base_minutes, self.rng) / 1000.0
