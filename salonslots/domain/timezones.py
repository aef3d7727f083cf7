"""
Timezone and calendar-date helpers.

Wall-clock times only become absolute instants here. Everything downstream
works on UTC instants and plain duration arithmetic.
"""

import logging
from datetime import date, datetime, time
from typing import Iterator, Optional

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def resolve_timezone(name: str):
    """
    Look up an IANA timezone.

    Raises:
        InvalidInputError: If the name is not a known timezone
    """
    if not name or not isinstance(name, str):
        raise InvalidInputError(f"Invalid timezone identifier: {name!r}")
    try:
        return pendulum.timezone(name)
    except (ValueError, KeyError) as e:
        raise InvalidInputError(f"Invalid timezone identifier: {name!r}") from e


def to_utc(value: datetime) -> DateTime:
    """Normalise any datetime to a pendulum DateTime in UTC (naive means UTC)."""
    return pendulum.instance(value).in_timezone("UTC")


def weekday_index(day: date) -> int:
    """Weekday of a date with 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def iter_local_dates(date_from: datetime, date_to: datetime, tz) -> Iterator[date]:
    """Yield every calendar date between two instants, inclusive, as seen in ``tz``."""
    current = pendulum.instance(date_from).in_timezone(tz).date()
    last = pendulum.instance(date_to).in_timezone(tz).date()

    while current <= last:
        yield current
        current = current.add(days=1)


def local_instant(day: date, wall_time: time, tz) -> Optional[DateTime]:
    """
    Convert a wall-clock time on a local date to an absolute instant.

    An ambiguous time (clocks going back) resolves to the earlier instant.
    A time that does not exist (clocks going forward) returns None.
    """
    dt = pendulum.datetime(
        day.year, day.month, day.day,
        wall_time.hour, wall_time.minute,
        tz=tz,
        fold=0,
    )

    wall = (dt.year, dt.month, dt.day, dt.hour, dt.minute)
    if wall != (day.year, day.month, day.day, wall_time.hour, wall_time.minute):
        logger.debug(
            "Skipping nonexistent local time %s %s in %s",
            day.isoformat(), wall_time.strftime("%H:%M"), getattr(tz, "name", tz),
        )
        return None

    return dt.in_timezone("UTC")


def local_midnight_after(day: date, tz) -> DateTime:
    """The instant the local day following ``day`` begins."""
    return pendulum.datetime(day.year, day.month, day.day, tz=tz).add(days=1).start_of("day").in_timezone("UTC")
