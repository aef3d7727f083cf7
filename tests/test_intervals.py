"""
Tests for interval algebra and busy-time merging.
"""

import pendulum

from salonslots.domain.busy import BusyTimeMerger, booking_busy_intervals
from salonslots.domain.intervals import intersect_range_lists, merge_ranges, subtract_ranges
from salonslots.domain.models import Booking, BookingStatus, BusyInterval, BusySource, TimeRange

TZ = "Europe/Belgrade"


def at(value: str):
    return pendulum.parse(f"2024-11-25 {value}", tz=TZ)


def span(start: str, end: str) -> TimeRange:
    return TimeRange(start=at(start), end=at(end))


def busy(start: str, end: str, source: BusySource = BusySource.BOOKING) -> BusyInterval:
    return BusyInterval(start=at(start), end=at(end), source=source)


class TestMergeRanges:
    """Tests for merge_ranges."""

    def test_merges_overlapping_and_touching(self):
        merged = merge_ranges([
            span("13:00", "14:00"),
            span("09:00", "10:00"),
            span("10:00", "11:00"),
            span("10:30", "12:00"),
        ])

        assert merged == [span("09:00", "12:00"), span("13:00", "14:00")]

    def test_contained_range_is_absorbed(self):
        assert merge_ranges([span("09:00", "17:00"), span("10:00", "11:00")]) == [span("09:00", "17:00")]

    def test_empty(self):
        assert merge_ranges([]) == []


class TestSubtractRanges:
    """Tests for subtract_ranges."""

    def test_subtract_busy_from_block(self):
        free = subtract_ranges(
            [span("09:00", "17:00")],
            [span("14:00", "15:00"), span("10:00", "11:00")]
        )

        assert free == [span("09:00", "10:00"), span("11:00", "14:00"), span("15:00", "17:00")]

    def test_busy_covering_everything(self):
        assert subtract_ranges([span("09:00", "17:00")], [span("08:00", "18:00")]) == []

    def test_busy_outside_block_is_ignored(self):
        free = subtract_ranges([span("09:00", "12:00")], [span("07:00", "08:00"), span("12:00", "13:00")])

        assert free == [span("09:00", "12:00")]


class TestIntersectRangeLists:
    """Tests for intersect_range_lists."""

    def test_common_free_time(self):
        host_a = [span("09:00", "10:00"), span("12:00", "17:00")]
        host_b = [span("09:00", "11:00"), span("13:00", "17:00")]

        assert intersect_range_lists(host_a, host_b) == [span("09:00", "10:00"), span("13:00", "17:00")]

    def test_no_overlap(self):
        assert intersect_range_lists([span("09:00", "10:00")], [span("10:00", "11:00")]) == []


class TestBusyTimeMerger:
    """Tests for BusyTimeMerger."""

    def test_sorts_and_merges_all_sources(self):
        merged = BusyTimeMerger().merge([
            busy("14:00", "15:00", BusySource.EXTERNAL_CALENDAR),
            busy("10:00", "10:30"),
            busy("10:30", "11:00", BusySource.EXTERNAL_CALENDAR),
        ])

        assert merged == [span("10:00", "11:00"), span("14:00", "15:00")]

    def test_drops_empty_and_inverted_intervals(self):
        merged = BusyTimeMerger().merge([
            busy("10:00", "10:00"),
            busy("12:00", "11:00"),
            busy("13:00", "13:30"),
        ])

        assert merged == [span("13:00", "13:30")]

    def test_drops_intervals_outside_window(self):
        window = span("09:00", "17:00")

        merged = BusyTimeMerger().merge([
            busy("07:00", "08:00"),
            busy("08:30", "09:30"),
            busy("17:00", "18:00"),
        ], window=window)

        assert merged == [span("08:30", "09:30")]

    def test_result_is_in_utc(self):
        merged = BusyTimeMerger().merge([busy("10:00", "11:00")])

        assert merged[0].start.timezone_name == "UTC"
        assert merged[0].start == at("10:00")

    def test_order_independent(self):
        intervals = [busy("09:00", "09:30"), busy("09:15", "10:00"), busy("12:00", "12:30")]

        assert BusyTimeMerger().merge(intervals) == BusyTimeMerger().merge(list(reversed(intervals)))


def test_booking_busy_intervals_skips_cancelled_and_rejected():
    bookings = [
        Booking(uid="a", start=at("09:00"), end=at("09:30"), status=BookingStatus.ACCEPTED),
        Booking(uid="b", start=at("10:00"), end=at("10:30"), status=BookingStatus.PENDING),
        Booking(uid="c", start=at("11:00"), end=at("11:30"), status=BookingStatus.CANCELLED),
        Booking(uid="d", start=at("12:00"), end=at("12:30"), status=BookingStatus.REJECTED),
    ]

    intervals = booking_busy_intervals(bookings)

    assert [i.start for i in intervals] == [at("09:00"), at("10:00")]
    assert all(i.source is BusySource.BOOKING for i in intervals)
