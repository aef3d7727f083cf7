"""
Busy-time sources backed by local JSON files.

Useful for running the CLI without a database or calendar account, and for
tests.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.models import Booking, BookingStatus, BusyInterval, BusySource

logger = logging.getLogger(__name__)


def _load_entries(path: Path) -> List[Dict[str, Any]]:
    """Load a JSON list of objects; a missing file counts as empty."""
    if not path.exists():
        logger.warning("Data file %s not found, using no entries", path)
        return []

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list")

    return data


def _overlaps(start: DateTime, end: DateTime, window_start: DateTime, window_end: DateTime) -> bool:
    return start < window_end and end > window_start


class JsonBookingSource:
    """
    Reads bookings from a JSON file.

    Format:
    [
        {"uid": "b-1", "start": "2024-11-25T10:00:00+01:00",
         "end": "2024-11-25T10:30:00+01:00", "status": "ACCEPTED"}
    ]
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def list_bookings(self, start_time: DateTime, end_time: DateTime) -> List[Booking]:
        bookings: List[Booking] = []

        for index, entry in enumerate(_load_entries(self.path)):
            try:
                booking = Booking(
                    uid=str(entry.get("uid", index)),
                    start=pendulum.parse(entry["start"]),
                    end=pendulum.parse(entry["end"]),
                    status=BookingStatus(entry.get("status", BookingStatus.ACCEPTED.value).upper())
                )
            except (KeyError, ValueError) as e:
                logger.warning("Skipping invalid booking #%d in %s: %s", index, self.path, e)
                continue

            if _overlaps(booking.start, booking.end, start_time, end_time):
                bookings.append(booking)

        return bookings


class JsonCalendarClient:
    """
    Reads external calendar busy times from a JSON file.

    Format:
    [
        {"start": "2024-11-25T12:00:00+01:00", "end": "2024-11-25T13:00:00+01:00"}
    ]
    """

    def __init__(self, path: Path, name: str = "file"):
        self.path = Path(path)
        self.name = name

    def get_busy_intervals(self, start_time: DateTime, end_time: DateTime) -> List[BusyInterval]:
        busy_intervals: List[BusyInterval] = []

        for index, event in enumerate(_load_entries(self.path)):
            try:
                event_start = pendulum.parse(event["start"])
                event_end = pendulum.parse(event["end"])
            except (KeyError, ValueError) as e:
                logger.warning("Skipping invalid event #%d in %s: %s", index, self.path, e)
                continue

            if _overlaps(event_start, event_end, start_time, end_time):
                busy_intervals.append(BusyInterval(
                    start=event_start,
                    end=event_end,
                    source=BusySource.EXTERNAL_CALENDAR
                ))

        return busy_intervals
