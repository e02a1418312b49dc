"""Injectable time source.

Every recency rule asks a ``Clock`` for the current time instead of calling
``datetime.now()`` directly, so scoring is reproducible under test.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock frozen at a given instant.

    Example:
        >>> clock = FixedClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        >>> clock.now().year
        2024
    """

    def __init__(self, at: datetime) -> None:
        self._at = _aware(at)

    def now(self) -> datetime:
        return self._at


def _aware(value: datetime) -> datetime:
    # Naive timestamps are interpreted as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hours_between(later: datetime, earlier: datetime) -> float:
    """Absolute number of hours between two timestamps."""
    return abs((_aware(later) - _aware(earlier)).total_seconds()) / 3600.0


def age_in_hours(clock: Clock, created_at: datetime | None) -> float | None:
    """Hours elapsed since ``created_at`` according to ``clock``.

    Returns:
        Elapsed hours, or ``None`` when the timestamp is unknown.
    """
    if created_at is None:
        return None
    return max(0.0, (clock.now() - _aware(created_at)).total_seconds() / 3600.0)
