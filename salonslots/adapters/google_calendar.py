"""
Google Calendar client for fetching free/busy information.
"""

import logging
from typing import Any, Dict, List, Sequence

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval, BusySource

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Reads busy time from the Google Calendar freeBusy endpoint.

    Google only answers for up to 90 days per request, so longer windows are
    split into chunks.
    """

    FREEBUSY_URL = "https://www.googleapis.com/calendar/v3/freeBusy"
    MAX_DAYS_PER_REQUEST = 90

    def __init__(
        self,
        access_token: str,
        calendar_ids: Sequence[str] = ("primary",),
        name: str = "google",
        timeout: int = 30
    ):
        self.name = name
        self.calendar_ids = list(calendar_ids) or ["primary"]
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

    def get_busy_intervals(self, start_time: DateTime, end_time: DateTime) -> List[BusyInterval]:
        """
        Get busy intervals across all selected calendars.

        Raises:
            CalendarAPIError: If any request fails
        """
        busy_intervals: List[BusyInterval] = []
        chunk_start = start_time.in_timezone("UTC")
        final_end = end_time.in_timezone("UTC")

        while chunk_start < final_end:
            chunk_end = min(chunk_start.add(days=self.MAX_DAYS_PER_REQUEST), final_end)
            busy_intervals.extend(self._fetch_free_busy(chunk_start, chunk_end))
            chunk_start = chunk_end

        return busy_intervals

    def _fetch_free_busy(self, time_min: DateTime, time_max: DateTime) -> List[BusyInterval]:
        payload = {
            "timeMin": time_min.to_iso8601_string(),
            "timeMax": time_max.to_iso8601_string(),
            "items": [{"id": calendar_id} for calendar_id in self.calendar_ids]
        }

        try:
            response = requests.post(
                self.FREEBUSY_URL,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch free/busy from Google Calendar: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Google Calendar returned invalid JSON: {e}") from e

        return self._parse_free_busy_response(data)

    @staticmethod
    def _parse_free_busy_response(response_data: Dict[str, Any]) -> List[BusyInterval]:
        """
        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [{"start": "2024-11-25T10:00:00Z", "end": "..."}],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        busy_intervals: List[BusyInterval] = []

        for calendar_id, calendar in response_data.get("calendars", {}).items():
            for error in calendar.get("errors", []):
                logger.warning("Google calendar %s reported %s", calendar_id, error.get("reason"))

            for busy in calendar.get("busy", []):
                if not busy.get("start") or not busy.get("end"):
                    continue
                busy_intervals.append(BusyInterval(
                    start=pendulum.parse(busy["start"]),
                    end=pendulum.parse(busy["end"]),
                    source=BusySource.EXTERNAL_CALENDAR
                ))

        return busy_intervals
