"""
Busy-time normalisation.

Bookings and external calendar events are merged into one sorted,
non-overlapping timeline. Buffers are not applied here; that is the slot
generator's job, so the merge result does not depend on the event type.
"""

import logging
from typing import Iterable, List, Optional

from .intervals import merge_ranges
from .models import Booking, BookingStatus, BusyInterval, BusySource, TimeRange
from .timezones import to_utc

logger = logging.getLogger(__name__)

# Bookings in these states still occupy their time
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.ACCEPTED})


class BusyTimeMerger:
    """
    Turns raw busy intervals into a minimal disjoint, sorted list of ranges.

    Steps:
    1. Drop intervals with zero or negative length
    2. Drop intervals entirely outside the window (if one is given)
    3. Sort by start and merge overlapping or touching intervals
    """

    def merge(
        self,
        intervals: Iterable[BusyInterval],
        window: Optional[TimeRange] = None
    ) -> List[TimeRange]:
        ranges: List[TimeRange] = []
        dropped = 0

        for interval in intervals:
            start = to_utc(interval.start)
            end = to_utc(interval.end)

            if end <= start:
                dropped += 1
                continue

            if window and (end <= window.start or start >= window.end):
                dropped += 1
                continue

            ranges.append(TimeRange(start=start, end=end))

        merged = merge_ranges(ranges)

        if dropped:
            logger.debug("Dropped %d empty or out-of-range busy intervals", dropped)

        return merged


def booking_busy_intervals(bookings: Iterable[Booking]) -> List[BusyInterval]:
    """Busy intervals for bookings that still hold their time (pending or accepted)."""
    return [
        BusyInterval(start=booking.start, end=booking.end, source=BusySource.BOOKING)
        for booking in bookings
        if booking.status in BLOCKING_STATUSES
    ]
