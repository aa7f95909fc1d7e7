"""
Single source of "now" for the valuation core.

Age, days-since-sale and the year-built upper bound all depend on the
current date. They read it from a Clock so tests can pin it.
"""

from datetime import date, datetime, timezone
from typing import Optional


class Clock:
    """Wall clock. Pass ``fixed`` to freeze it at a given instant."""

    def __init__(self, fixed: Optional[datetime] = None):
        self._fixed = fixed

    @classmethod
    def at(cls, value: date) -> "Clock":
        """Clock frozen at midnight UTC on ``value`` (or at ``value`` if a datetime)."""
        if isinstance(value, datetime):
            fixed = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        else:
            fixed = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return cls(fixed=fixed)

    def now(self) -> datetime:
        if self._fixed is not None:
            return self._fixed
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()

    def current_year(self) -> int:
        return self.now().year


SYSTEM_CLOCK = Clock()


def resolve_clock(clock: Optional[Clock]) -> Clock:
    """Return ``clock`` or the system clock."""
    return clock if clock is not None else SYSTEM_CLOCK
