"""
Application service for finding bookable slots.

The service fetches busy time from the booking store and every connected
calendar, then hands everything to the pure availability engine. Sources are
described by small protocols so tests can plug in stubs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime

from ..domain.busy import booking_busy_intervals
from ..domain.engine import busy_bounds, compute_availability, is_slot_available
from ..domain.models import (
    AvailabilityQuery,
    AvailabilityResult,
    Booking,
    BusyInterval,
    EventParameters,
    Schedule,
)
from ..domain.timezones import resolve_timezone

logger = logging.getLogger(__name__)


class BookingSourceProtocol(Protocol):
    """Persistence query for existing bookings."""

    def list_bookings(self, start_time: DateTime, end_time: DateTime) -> List[Booking]:
        """Return bookings overlapping the window, any status."""


class CalendarClientProtocol(Protocol):
    """An external calendar that reports busy time."""

    name: str

    def get_busy_intervals(self, start_time: DateTime, end_time: DateTime) -> List[BusyInterval]:
        """Return busy intervals overlapping the window."""


class AvailabilityService:
    """
    Orchestrates busy-time retrieval and slot calculation.

    Booking lookups must succeed: a failure there propagates, because
    ignoring it could double-book. A failing external calendar is logged and
    treated as having no busy time.
    """

    def __init__(
        self,
        booking_source: BookingSourceProtocol,
        calendar_clients: Sequence[CalendarClientProtocol] = (),
    ) -> None:
        self._booking_source = booking_source
        self._calendar_clients = list(calendar_clients)

    async def find_slots(
        self,
        *,
        schedule: Schedule,
        event: EventParameters,
        date_from: DateTime,
        date_to: DateTime,
        now: Optional[DateTime] = None,
    ) -> AvailabilityResult:
        """
        Retrieve busy data and compute available slots.

        Busy time is fetched a little beyond the range so bookings just
        outside it still apply their buffers.
        """
        busy_from, busy_to = busy_bounds(event, date_from, date_to)
        busy_intervals = await self.fetch_busy_intervals(date_from=busy_from, date_to=busy_to)

        query = AvailabilityQuery.for_schedule(
            schedule,
            event=event,
            date_from=date_from,
            date_to=date_to,
            now=now or pendulum.now("UTC"),
            busy_intervals=busy_intervals,
        )
        return compute_availability(query)

    async def check_slot(
        self,
        *,
        schedule: Schedule,
        event: EventParameters,
        start: DateTime,
        now: Optional[DateTime] = None,
    ) -> bool:
        """
        Re-check a single start time against fresh busy data before booking it.
        """
        local_start = start.in_timezone(resolve_timezone(schedule.timezone))
        day_start = local_start.start_of("day")
        day_end = day_start.add(days=1)

        busy_from, busy_to = busy_bounds(event, day_start, day_end)
        busy_intervals = await self.fetch_busy_intervals(date_from=busy_from, date_to=busy_to)

        query = AvailabilityQuery.for_schedule(
            schedule,
            event=event,
            date_from=day_start,
            date_to=day_end,
            now=now or pendulum.now("UTC"),
            busy_intervals=busy_intervals,
        )
        return is_slot_available(query, start)

    async def fetch_busy_intervals(
        self,
        *,
        date_from: DateTime,
        date_to: DateTime,
    ) -> List[BusyInterval]:
        """Fetch bookings and calendar busy times concurrently and combine them."""
        bookings, *calendar_results = await asyncio.gather(
            asyncio.to_thread(self._booking_source.list_bookings, date_from, date_to),
            *(
                self._fetch_calendar(client, date_from, date_to)
                for client in self._calendar_clients
            ),
        )

        busy_intervals = booking_busy_intervals(bookings)
        for intervals in calendar_results:
            busy_intervals.extend(intervals)

        logger.debug(
            "Collected %d busy intervals from %d bookings and %d calendars",
            len(busy_intervals), len(bookings), len(self._calendar_clients),
        )
        return busy_intervals

    @staticmethod
    async def _fetch_calendar(
        client: CalendarClientProtocol,
        date_from: DateTime,
        date_to: DateTime,
    ) -> List[BusyInterval]:
        try:
            return await asyncio.to_thread(client.get_busy_intervals, date_from, date_to)
        except Exception as e:
            logger.error(
                "Failed to get calendar busy times from %s: %s",
                getattr(client, "name", type(client).__name__), e,
            )
            return []
