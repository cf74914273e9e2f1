"""Tests for shared/clock.py."""

from datetime import datetime, timedelta, timezone

from shared.clock import Clock, FixedClock, SystemClock


class TestSystemClock:
    def test_returns_aware_utc(self):
        now = SystemClock().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_satisfies_protocol(self):
        assert isinstance(SystemClock(), Clock)


class TestFixedClock:
    def test_does_not_move_on_its_own(self):
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        clock = FixedClock(start)
        assert clock.now() == start
        assert clock.now() == start

    def test_advance(self):
        clock = FixedClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
        moved = clock.advance(timedelta(minutes=31))
        assert moved == datetime(2025, 1, 1, 0, 31, tzinfo=timezone.utc)
        assert clock.now() == moved

    def test_naive_datetimes_are_treated_as_utc(self):
        clock = FixedClock(datetime(2025, 1, 1))
        assert clock.now().tzinfo == timezone.utc
        clock.set(datetime(2026, 1, 1))
        assert clock.now() == datetime(2026, 1, 1, tzinfo=timezone.utc)
