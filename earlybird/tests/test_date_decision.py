from __future__ import annotations

import datetime as dt

import pytest

from earlybird.domain import CalendarDate, Decision, decide, format_date


@pytest.mark.parametrize(
    "value, expected",
    [
        (CalendarDate(2024, 3, 7), "2024-03-07"),
        (CalendarDate(2025, 12, 31), "2025-12-31"),
        (CalendarDate(2026, 1, 1), "2026-01-01"),
    ],
)
def test_format_date_zero_pads(value: CalendarDate, expected: str) -> None:
    assert format_date(value) == expected
    assert str(value) == expected


@pytest.mark.parametrize(
    "candidate, target, expected",
    [
        (CalendarDate(2025, 6, 29), CalendarDate(2025, 6, 30), Decision.ALERT),
        (CalendarDate(2024, 12, 31), CalendarDate(2025, 1, 1), Decision.ALERT),
        (CalendarDate(2025, 6, 30), CalendarDate(2025, 6, 30), Decision.RESCHEDULE),
        (CalendarDate(2025, 7, 1), CalendarDate(2025, 6, 30), Decision.RESCHEDULE),
        (CalendarDate(2027, 1, 5), CalendarDate(2025, 6, 30), Decision.RESCHEDULE),
    ],
)
def test_decide_alerts_only_for_strictly_earlier_day(
    candidate: CalendarDate, target: CalendarDate, expected: Decision
) -> None:
    assert decide(candidate, target) is expected


def test_calendar_dates_order_by_day() -> None:
    assert CalendarDate(2025, 1, 31) < CalendarDate(2025, 2, 1)
    assert CalendarDate.from_date(dt.date(2025, 2, 1)).to_date() == dt.date(2025, 2, 1)


def test_validated_rejects_impossible_dates() -> None:
    with pytest.raises(ValueError):
        CalendarDate(2025, 2, 30).validated()
