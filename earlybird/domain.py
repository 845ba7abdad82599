from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class CalendarDate:
    """A calendar day as read from the date picker or from config.

    Field order matters: ordering compares (year, month, day).
    """

    year: int
    month: int  # 1..12
    day: int

    @classmethod
    def from_date(cls, value: dt.date) -> "CalendarDate":
        return cls(year=value.year, month=value.month, day=value.day)

    def to_date(self) -> dt.date:
        return dt.date(self.year, self.month, self.day)

    def validated(self) -> "CalendarDate":
        # Raises ValueError for impossible dates such as 2025-02-30.
        self.to_date()
        return self

    @property
    def iso(self) -> str:
        return format_date(self)

    def __str__(self) -> str:
        return self.iso


def format_date(value: CalendarDate) -> str:
    return f"{value.year}-{value.month:02d}-{value.day:02d}"


class Decision(enum.Enum):
    ALERT = "alert"
    RESCHEDULE = "reschedule"


def decide(candidate: CalendarDate, target: CalendarDate) -> Decision:
    # Whole days only; an equal date is not an improvement.
    delta_days = (target.to_date() - candidate.to_date()).days
    if delta_days > 0:
        return Decision.ALERT
    return Decision.RESCHEDULE


class ConfigError(RuntimeError):
    """Configuration is missing or malformed; nothing should be started."""


class AttemptError(RuntimeError):
    """Base for everything that can go wrong inside one attempt.

    Every subclass is retried the same way; `kind` only exists so that logs
    tell a dead site apart from a changed page layout.
    """

    kind = "attempt"


class NavigationError(AttemptError):
    """Page load or element wait timed out, or the browser session dropped."""

    kind = "navigation"


class ElementLookupError(AttemptError):
    """An element the flow depends on is missing or cannot be interacted with."""

    kind = "lookup"


class CalendarExhaustedError(NavigationError):
    """Paged through the date picker without finding any selectable day."""


class DecisionError(AttemptError):
    """The selectable day was found but its date could not be read."""

    kind = "decision"
