"""Clock collaborators.

The core never calls ``datetime.now`` directly so that cooldown windows and
the "today" filter can be exercised deterministically.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytz

UTC = pytz.UTC


class Clock:
    """Source of the current time as an aware UTC datetime."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(tz=UTC)


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = UTC.localize(current)
        self.current = current.astimezone(UTC)

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = UTC.localize(current)
        self.current = current.astimezone(UTC)

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by ``timedelta(**kwargs)`` and return the new time."""
        self.current = self.current + timedelta(**kwargs)
        return self.current
