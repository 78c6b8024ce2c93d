"""
GardenClock: calendar boundaries in the fixed reference timezone.

Daily streaks, quest expiry and weekly challenges all roll over at midnight
in ``America/New_York``, regardless of the device locale. Every service asks
the clock instead of calling ``datetime.now()`` so tests can drive time.

Usage Example
-------------
>>> clock = GardenClock()
>>> clock.today()
datetime.date(2025, 3, 9)
>>> clock.next_midnight_ms() > clock.now_ms()
True
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional

import pytz

REFERENCE_TIMEZONE = "America/New_York"

TimeSource = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GardenClock:
    """
    Reference-timezone clock with an injectable time source.

    Parameters
    ----------
    now_fn : Optional[Callable[[], datetime]]
        Returns the current instant. Naive datetimes are treated as UTC.
    """

    def __init__(self, now_fn: Optional[TimeSource] = None) -> None:
        self._now_fn = now_fn or _utc_now
        self._tz = pytz.timezone(REFERENCE_TIMEZONE)

    @property
    def tz(self):
        return self._tz

    def now(self) -> datetime:
        current = self._now_fn()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current

    def now_ms(self) -> int:
        return int(self.now().timestamp() * 1000)

    def local_now(self) -> datetime:
        return self.now().astimezone(self._tz)

    def today(self) -> date:
        return self.local_now().date()

    def yesterday(self) -> date:
        return self.today() - timedelta(days=1)

    def start_of_week(self) -> date:
        """Monday of the current reference week."""
        today = self.today()
        return today - timedelta(days=today.weekday())

    def midnight_ms(self, day: date) -> int:
        """Epoch ms of reference-timezone midnight at the start of ``day``."""
        local_midnight = self._tz.localize(datetime.combine(day, time.min))
        return int(local_midnight.timestamp() * 1000)

    def next_midnight_ms(self) -> int:
        return self.midnight_ms(self.today() + timedelta(days=1))

    def next_week_start_ms(self) -> int:
        return self.midnight_ms(self.start_of_week() + timedelta(days=7))

    def date_of(self, epoch_ms: int) -> date:
        """Reference-timezone calendar date of an epoch-ms instant."""
        instant = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
        return instant.astimezone(self._tz).date()
