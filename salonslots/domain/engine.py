"""
Availability engine entry points.

Pure functions: no I/O, no clock reads, no shared state. Busy intervals are
fetched by the caller and passed in on the query.
"""

import logging
from collections import Counter
from typing import Iterable, List, Tuple

from pendulum import DateTime

from .busy import BusyTimeMerger
from .exceptions import InvalidInputError
from .intervals import intersect_range_lists, subtract_ranges
from .models import AvailabilityQuery, AvailabilityResult, EventParameters, Slot, TimeRange
from .recurrence import RecurrenceExpander
from .slot_generator import SlotGenerator
from .timezones import resolve_timezone, to_utc

logger = logging.getLogger(__name__)


def validate_query(query: AvailabilityQuery) -> None:
    """
    Reject malformed queries before any work is done.

    Raises:
        InvalidInputError: On the first problem found
    """
    resolve_timezone(query.timezone)

    if to_utc(query.date_from) > to_utc(query.date_to):
        raise InvalidInputError(
            f"date_from {query.date_from} must not be after date_to {query.date_to}"
        )

    event = query.event
    if event.length_minutes <= 0:
        raise InvalidInputError(f"Event length must be positive, got {event.length_minutes}")
    if event.slot_interval_minutes is not None and event.slot_interval_minutes <= 0:
        raise InvalidInputError(
            f"Slot interval must be positive, got {event.slot_interval_minutes}"
        )

    for name in ("minimum_notice_minutes", "before_buffer_minutes", "after_buffer_minutes"):
        value = getattr(event, name)
        if value < 0:
            raise InvalidInputError(f"{name} must not be negative, got {value}")

    duplicates = [
        day for day, count in Counter(o.date.isoformat() for o in query.date_overrides).items()
        if count > 1
    ]
    if duplicates:
        raise InvalidInputError(f"More than one override for date(s): {', '.join(sorted(duplicates))}")


def busy_bounds(
    event: EventParameters,
    date_from: DateTime,
    date_to: DateTime
) -> Tuple[DateTime, DateTime]:
    """
    Bounds of the busy time that can affect slots between two instants.

    A booking just before ``date_from`` still blocks its after-buffer, and one
    just after ``date_to`` its before-buffer.
    """
    return (
        to_utc(date_from).subtract(minutes=event.after_buffer_minutes),
        to_utc(date_to).add(minutes=event.before_buffer_minutes),
    )


def compute_availability(query: AvailabilityQuery) -> AvailabilityResult:
    """
    Compute the bookable slots for one event type over a date range.

    Returns:
        AvailabilityResult with ascending ``slots``, the open working
        intervals (``date_ranges``) and those intervals minus busy time
        (``free_ranges``), all expressed in the provider's timezone.

    Raises:
        InvalidInputError: If the query is malformed
    """
    validate_query(query)
    tz = resolve_timezone(query.timezone)
    event = query.event

    expander = RecurrenceExpander(query.weekly_rules, query.date_overrides, query.timezone)
    open_ranges = expander.expand(query.date_from, query.date_to)

    if not open_ranges:
        return AvailabilityResult()

    busy_start, busy_end = busy_bounds(event, query.date_from, query.date_to)
    busy_ranges = BusyTimeMerger().merge(
        query.busy_intervals,
        window=TimeRange(start=busy_start, end=busy_end)
    )

    # The slot grid starts at the working hours' own start, not at date_from
    grid_ranges = expander.expand(query.date_from, query.date_to, clip=False)
    query_window = TimeRange(start=to_utc(query.date_from), end=to_utc(query.date_to))

    generator = SlotGenerator(event=event, now=query.now, window=query_window)
    slots = [
        Slot(time=slot.time.in_timezone(tz))
        for slot in generator.generate(grid_ranges, busy_ranges)
    ]

    logger.debug(
        "Computed %d slots from %d open intervals and %d busy intervals",
        len(slots), len(open_ranges), len(busy_ranges),
    )

    return AvailabilityResult(
        slots=slots,
        date_ranges=[_in_timezone(r, tz) for r in open_ranges],
        free_ranges=[_in_timezone(r, tz) for r in subtract_ranges(open_ranges, busy_ranges)],
    )


def is_slot_available(query: AvailabilityQuery, start: DateTime) -> bool:
    """
    Check whether one specific start time is bookable.

    This is the conflict re-check run right before a booking is stored, so it
    applies exactly the same rules as ``compute_availability``.
    """
    target = to_utc(start)
    result = compute_availability(query)
    return any(slot.time == target for slot in result.slots)


def common_free_ranges(results: Iterable[AvailabilityResult]) -> List[TimeRange]:
    """
    Free time shared by several hosts, e.g. for an event that needs all of them.
    """
    results = list(results)
    if not results:
        return []

    common = results[0].free_ranges
    for result in results[1:]:
        common = intersect_range_lists(common, result.free_ranges)
        if not common:
            return []

    return common


def _in_timezone(time_range: TimeRange, tz) -> TimeRange:
    return TimeRange(start=time_range.start.in_timezone(tz), end=time_range.end.in_timezone(tz))
