"""
Unit tests for GardenClock.

Calendar boundaries are computed in America/New_York regardless of the
instant's own timezone.
"""

from datetime import date, datetime, timezone

import pytest

from manifest_garden.core.clock import GardenClock


def _ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


@pytest.mark.unit
class TestReferenceDay:
    """Test reference-timezone day boundaries."""

    def test_today_uses_reference_timezone(self):
        # Arrange: 03:30 UTC is still the previous evening in New York
        clock = GardenClock(now_fn=lambda: datetime(2025, 3, 13, 3, 30, tzinfo=timezone.utc))

        # Act & Assert
        assert clock.today() == date(2025, 3, 12)
        assert clock.yesterday() == date(2025, 3, 11)

    def test_naive_datetimes_are_treated_as_utc(self):
        clock = GardenClock(now_fn=lambda: datetime(2025, 3, 13, 3, 30))

        assert clock.today() == date(2025, 3, 12)

    def test_next_midnight_is_reference_midnight(self, clock):
        # Arrange: fixture time is Wednesday 2025-03-12 11:00 EDT
        expected = _ms(datetime(2025, 3, 13, 4, 0, tzinfo=timezone.utc))

        # Act & Assert
        assert clock.next_midnight_ms() == expected
        assert clock.next_midnight_ms() > clock.now_ms()

    def test_week_starts_on_monday(self, clock):
        assert clock.start_of_week() == date(2025, 3, 10)
        assert clock.next_week_start_ms() == _ms(datetime(2025, 3, 17, 4, 0, tzinfo=timezone.utc))

    def test_midnight_follows_daylight_saving(self, clock):
        # 2025-01-15 is EST (UTC-5), 2025-07-15 is EDT (UTC-4)
        assert clock.midnight_ms(date(2025, 1, 15)) == _ms(
            datetime(2025, 1, 15, 5, 0, tzinfo=timezone.utc)
        )
        assert clock.midnight_ms(date(2025, 7, 15)) == _ms(
            datetime(2025, 7, 15, 4, 0, tzinfo=timezone.utc)
        )

    def test_date_of_epoch_ms(self, clock):
        instant = _ms(datetime(2025, 3, 13, 3, 59, tzinfo=timezone.utc))

        assert clock.date_of(instant) == date(2025, 3, 12)

    def test_manual_time_moves_the_clock(self, clock, manual_time):
        before = clock.now_ms()

        manual_time.advance(days=1)

        assert clock.now_ms() - before == 24 * 60 * 60 * 1000
        assert clock.today() == date(2025, 3, 13)
