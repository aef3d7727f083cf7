"""
Domain layer - Pure availability logic without external dependencies.
"""

from .busy import BusyTimeMerger, booking_busy_intervals
from .engine import (
    busy_bounds,
    common_free_ranges,
    compute_availability,
    is_slot_available,
    validate_query,
)
from .exceptions import AvailabilityError, CalendarAPIError, ConfigurationError, InvalidInputError
from .models import (
    AvailabilityQuery,
    AvailabilityResult,
    Blocked,
    Booking,
    BookingStatus,
    BusyInterval,
    BusySource,
    DateOverride,
    EventParameters,
    Hours,
    Schedule,
    Slot,
    TimeRange,
    WeeklyRule,
    is_blocking_override,
)
from .recurrence import RecurrenceExpander
from .slot_generator import SlotGenerator

__all__ = [
    "AvailabilityError",
    "AvailabilityQuery",
    "AvailabilityResult",
    "Blocked",
    "Booking",
    "BookingStatus",
    "BusyInterval",
    "BusySource",
    "BusyTimeMerger",
    "CalendarAPIError",
    "ConfigurationError",
    "DateOverride",
    "EventParameters",
    "Hours",
    "InvalidInputError",
    "RecurrenceExpander",
    "Schedule",
    "Slot",
    "SlotGenerator",
    "TimeRange",
    "WeeklyRule",
    "booking_busy_intervals",
    "busy_bounds",
    "common_free_ranges",
    "compute_availability",
    "is_blocking_override",
    "is_slot_available",
    "validate_query",
]
