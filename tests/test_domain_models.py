"""
Tests for domain models.
"""

import pendulum
import pytest
from datetime import date, time

from salonslots.domain.exceptions import InvalidInputError
from salonslots.domain.models import (
    Blocked,
    DateOverride,
    EventParameters,
    Hours,
    Slot,
    TimeRange,
    WeeklyRule,
    is_blocking_override,
)

TZ = "Europe/Belgrade"


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = pendulum.parse("2024-11-25 09:00", tz=TZ)
        end = pendulum.parse("2024-11-25 17:00", tz=TZ)

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end
        assert tr.duration_minutes() == 480  # 8 hours

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        start = pendulum.parse("2024-11-25 17:00", tz=TZ)
        end = pendulum.parse("2024-11-25 09:00", tz=TZ)

        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=start, end=end)

    def test_empty_time_range_raises_error(self):
        moment = pendulum.parse("2024-11-25 09:00", tz=TZ)

        with pytest.raises(ValueError):
            TimeRange(start=moment, end=moment)

    def test_overlaps_is_half_open(self):
        """Ranges that only touch do not overlap."""
        tr1 = TimeRange(
            start=pendulum.parse("2024-11-25 09:00", tz=TZ),
            end=pendulum.parse("2024-11-25 12:00", tz=TZ)
        )
        tr2 = TimeRange(
            start=pendulum.parse("2024-11-25 11:00", tz=TZ),
            end=pendulum.parse("2024-11-25 14:00", tz=TZ)
        )
        tr3 = TimeRange(
            start=pendulum.parse("2024-11-25 14:00", tz=TZ),
            end=pendulum.parse("2024-11-25 17:00", tz=TZ)
        )

        assert tr1.overlaps(tr2)
        assert tr2.overlaps(tr1)
        assert not tr1.overlaps(tr3)
        assert not tr2.overlaps(tr3)

    def test_intersect(self):
        """Test intersection calculation."""
        tr1 = TimeRange(
            start=pendulum.parse("2024-11-25 09:00", tz=TZ),
            end=pendulum.parse("2024-11-25 12:00", tz=TZ)
        )
        tr2 = TimeRange(
            start=pendulum.parse("2024-11-25 11:00", tz=TZ),
            end=pendulum.parse("2024-11-25 14:00", tz=TZ)
        )

        intersection = tr1.intersect(tr2)

        assert intersection is not None
        assert intersection.start == pendulum.parse("2024-11-25 11:00", tz=TZ)
        assert intersection.end == pendulum.parse("2024-11-25 12:00", tz=TZ)

    def test_contains(self):
        outer = TimeRange(
            start=pendulum.parse("2024-11-25 09:00", tz=TZ),
            end=pendulum.parse("2024-11-25 17:00", tz=TZ)
        )
        inner = TimeRange(
            start=pendulum.parse("2024-11-25 16:30", tz=TZ),
            end=pendulum.parse("2024-11-25 17:00", tz=TZ)
        )

        assert outer.contains(inner)
        assert not inner.contains(outer)

    def test_comparison_across_timezones(self):
        """Instants compare by absolute time, not by wall clock."""
        local = TimeRange(
            start=pendulum.parse("2024-11-25 09:00", tz=TZ),
            end=pendulum.parse("2024-11-25 10:00", tz=TZ)
        )
        utc = TimeRange(
            start=pendulum.parse("2024-11-25T08:00:00Z"),
            end=pendulum.parse("2024-11-25T09:00:00Z")
        )

        assert local == utc


class TestWeeklyRule:
    """Tests for WeeklyRule model."""

    def test_days_are_normalised_to_frozenset(self):
        rule = WeeklyRule(days=[1, 2, 2, 3], start_time=time(9), end_time=time(17))

        assert rule.days == frozenset({1, 2, 3})
        assert rule.applies_to(2)
        assert not rule.applies_to(0)

    def test_start_must_be_before_end(self):
        with pytest.raises(InvalidInputError):
            WeeklyRule(days={1}, start_time=time(17), end_time=time(9))

    def test_weekday_out_of_range(self):
        with pytest.raises(InvalidInputError, match="between 0 and 6"):
            WeeklyRule(days={7}, start_time=time(9), end_time=time(17))

    def test_needs_at_least_one_day(self):
        with pytest.raises(InvalidInputError):
            WeeklyRule(days=set(), start_time=time(9), end_time=time(17))

    def test_str_uses_sunday_first_names(self):
        rule = WeeklyRule(days={0, 6}, start_time=time(10), end_time=time(14))

        assert str(rule) == "Sun, Sat 10:00-14:00"


class TestDateOverride:
    """Tests for DateOverride model."""

    def test_zero_length_override_is_blocking(self):
        override = DateOverride(date=date(2024, 11, 25), start_time=time(0), end_time=time(0))

        assert is_blocking_override(override)
        assert override.day_hours() == Blocked()

    def test_non_midnight_zero_length_override_is_blocking(self):
        override = DateOverride(date=date(2024, 11, 25), start_time=time(12), end_time=time(12))

        assert is_blocking_override(override)

    def test_override_with_hours(self):
        override = DateOverride(date=date(2024, 11, 25), start_time=time(12), end_time=time(14))

        assert not is_blocking_override(override)
        assert override.day_hours() == Hours(start_time=time(12), end_time=time(14))

    def test_inverted_override_is_invalid(self):
        with pytest.raises(InvalidInputError):
            DateOverride(date=date(2024, 11, 25), start_time=time(14), end_time=time(12))


class TestEventParameters:
    """Tests for EventParameters."""

    def test_interval_defaults_to_length(self):
        assert EventParameters(length_minutes=45).interval_minutes == 45

    def test_explicit_interval(self):
        assert EventParameters(length_minutes=45, slot_interval_minutes=15).interval_minutes == 15


def test_slot_end():
    slot = Slot(time=pendulum.parse("2024-11-25 16:30", tz=TZ))

    assert slot.end(30) == pendulum.parse("2024-11-25 17:00", tz=TZ)
