"""
Domain models for availability and slot calculations.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

from pendulum import DateTime

from .exceptions import InvalidInputError

# A rule or override ending at 23:59 runs until the following midnight.
END_OF_DAY = time(23, 59)

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if another range lies completely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class Hours:
    """Open wall-clock hours for a single day."""
    start_time: time
    end_time: time


@dataclass(frozen=True)
class Blocked:
    """The provider is unavailable for the whole day."""


DayHours = Union[Hours, Blocked]


@dataclass(frozen=True)
class WeeklyRule:
    """
    Recurring availability: the same wall-clock hours on every listed weekday.

    Weekdays are numbered 0=Sunday .. 6=Saturday. Several rules may cover the
    same weekday.
    """
    days: FrozenSet[int]
    start_time: time
    end_time: time

    def __post_init__(self):
        object.__setattr__(self, "days", frozenset(self.days))
        if not self.days:
            raise InvalidInputError("A weekly rule needs at least one weekday")
        invalid_days = sorted(day for day in self.days if day not in range(7))
        if invalid_days:
            raise InvalidInputError(f"Weekdays must be between 0 and 6, got {invalid_days}")
        if self.start_time >= self.end_time:
            raise InvalidInputError(
                f"Rule start {self.start_time:%H:%M} must be before end {self.end_time:%H:%M}"
            )

    def applies_to(self, weekday: int) -> bool:
        return weekday in self.days

    def __str__(self) -> str:
        day_names = ", ".join(WEEKDAY_NAMES[day] for day in sorted(self.days))
        return f"{day_names} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


@dataclass(frozen=True)
class DateOverride:
    """
    Hours for one specific date, replacing every weekly rule on that date.

    A zero-length range (e.g. 00:00-00:00) marks the whole day as blocked.
    The encoding is kept as-is because that is how overrides are stored.
    """
    date: date
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time > self.end_time:
            raise InvalidInputError(
                f"Override for {self.date.isoformat()} starts after it ends "
                f"({self.start_time:%H:%M} > {self.end_time:%H:%M})"
            )

    def day_hours(self) -> DayHours:
        """Return the override as a tagged value: ``Blocked`` or ``Hours``."""
        if is_blocking_override(self):
            return Blocked()
        return Hours(start_time=self.start_time, end_time=self.end_time)


def is_blocking_override(override: DateOverride) -> bool:
    """True when the override blocks the whole day."""
    return override.start_time == override.end_time


class BusySource(str, Enum):
    """Where a busy interval came from. Only used for logging."""
    BOOKING = "booking"
    EXTERNAL_CALENDAR = "external_calendar"


@dataclass(frozen=True)
class BusyInterval:
    """
    Time that cannot be booked, regardless of where it came from.

    Unlike ``TimeRange`` this does not validate its bounds; empty or inverted
    intervals are dropped when busy time is merged.
    """
    start: DateTime
    end: DateTime
    source: BusySource = BusySource.BOOKING


@dataclass(frozen=True)
class EventParameters:
    """Length and booking policy of an event type, all in whole minutes."""
    length_minutes: int
    slot_interval_minutes: Optional[int] = None
    minimum_notice_minutes: int = 0
    before_buffer_minutes: int = 0
    after_buffer_minutes: int = 0

    @property
    def interval_minutes(self) -> int:
        """Step between candidate slot starts; defaults to the event length."""
        return self.slot_interval_minutes or self.length_minutes


@dataclass(frozen=True)
class Schedule:
    """A provider's availability: timezone, weekly rules and date overrides."""
    timezone: str
    weekly_rules: Tuple[WeeklyRule, ...] = ()
    date_overrides: Tuple[DateOverride, ...] = ()


@dataclass(frozen=True)
class AvailabilityQuery:
    """
    Everything needed for one availability computation.

    ``now`` is always passed in so results are reproducible.
    """
    weekly_rules: Tuple[WeeklyRule, ...]
    date_overrides: Tuple[DateOverride, ...]
    busy_intervals: Tuple[BusyInterval, ...]
    timezone: str
    date_from: DateTime
    date_to: DateTime
    event: EventParameters
    now: DateTime

    @classmethod
    def for_schedule(
        cls,
        schedule: Schedule,
        *,
        event: EventParameters,
        date_from: DateTime,
        date_to: DateTime,
        now: DateTime,
        busy_intervals: Iterable[BusyInterval] = (),
    ) -> "AvailabilityQuery":
        return cls(
            weekly_rules=tuple(schedule.weekly_rules),
            date_overrides=tuple(schedule.date_overrides),
            busy_intervals=tuple(busy_intervals),
            timezone=schedule.timezone,
            date_from=date_from,
            date_to=date_to,
            event=event,
            now=now,
        )


@dataclass(frozen=True)
class Slot:
    """The start of a bookable appointment."""
    time: DateTime

    def end(self, length_minutes: int) -> DateTime:
        return self.time.add(minutes=length_minutes)


@dataclass(frozen=True)
class AvailabilityResult:
    """
    Outcome of one computation.

    ``date_ranges`` are the open working intervals before busy time is taken
    out; an empty list means no hours were configured for the range.
    ``free_ranges`` are those intervals minus merged busy time.
    """
    slots: List[Slot] = field(default_factory=list)
    date_ranges: List[TimeRange] = field(default_factory=list)
    free_ranges: List[TimeRange] = field(default_factory=list)


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class Booking:
    """An existing booking as returned by the persistence layer."""
    uid: str
    start: DateTime
    end: DateTime
    status: BookingStatus = BookingStatus.ACCEPTED
