"""
Microsoft Graph API client for fetching calendar busy times.
"""

import logging
from typing import Any, Dict, List, Sequence

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval, BusySource

logger = logging.getLogger(__name__)


class GraphCalendarClient:
    """
    Client for Microsoft Graph calendar free/busy information.

    Uses the /calendar/getSchedule endpoint. The bearer token is obtained
    elsewhere and passed in as-is.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

    # Statuses that make a provider unavailable
    BUSY_STATUSES = frozenset({"busy", "tentative", "oof", "workingelsewhere"})

    def __init__(
        self,
        access_token: str,
        schedules: Sequence[str],
        name: str = "graph",
        timeout: int = 30
    ):
        """
        Args:
            access_token: Valid Microsoft Graph access token
            schedules: Mailbox addresses whose busy time counts
            name: Label used in log messages
            timeout: Request timeout in seconds
        """
        self.name = name
        self.schedules = list(schedules)
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

    def get_busy_intervals(self, start_time: DateTime, end_time: DateTime) -> List[BusyInterval]:
        """
        Get busy intervals for all configured mailboxes.

        Raises:
            CalendarAPIError: If the API call fails
        """
        if not self.schedules:
            return []

        url = f"{self.GRAPH_API_ENDPOINT}/me/calendar/getSchedule"

        payload = {
            "schedules": self.schedules,
            "startTime": {
                "dateTime": start_time.in_timezone("UTC").format("YYYY-MM-DDTHH:mm:ss"),
                "timeZone": "UTC"
            },
            "endTime": {
                "dateTime": end_time.in_timezone("UTC").format("YYYY-MM-DDTHH:mm:ss"),
                "timeZone": "UTC"
            },
            "availabilityViewInterval": 15
        }

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch schedule from Microsoft Graph: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Microsoft Graph returned invalid JSON: {e}") from e

        return self._parse_schedule_response(data)

    def _parse_schedule_response(self, response_data: Dict[str, Any]) -> List[BusyInterval]:
        """
        Parse the getSchedule API response.

        Response format:
        {
            "value": [
                {
                    "scheduleId": "user@example.com",
                    "scheduleItems": [
                        {
                            "status": "busy",
                            "start": {"dateTime": "...", "timeZone": "UTC"},
                            "end": {"dateTime": "...", "timeZone": "UTC"}
                        }
                    ]
                }
            ]
        }
        """
        busy_intervals: List[BusyInterval] = []

        for schedule in response_data.get("value", []):
            for item in schedule.get("scheduleItems", []):
                if item.get("status", "").lower() not in self.BUSY_STATUSES:
                    continue

                try:
                    busy_intervals.append(BusyInterval(
                        start=self._parse_datetime(item["start"]),
                        end=self._parse_datetime(item["end"]),
                        source=BusySource.EXTERNAL_CALENDAR
                    ))
                except (KeyError, ValueError) as e:
                    logger.warning(
                        "Could not parse schedule item for %s: %s",
                        schedule.get("scheduleId", "?"), e
                    )

        return busy_intervals

    @staticmethod
    def _parse_datetime(value: Dict[str, str]) -> DateTime:
        """Parse a Graph dateTimeTimeZone object."""
        dt = pendulum.parse(value["dateTime"], tz=value.get("timeZone") or "UTC")

        if isinstance(dt, DateTime):
            return dt

        raise ValueError(f"Could not parse datetime: {value['dateTime']}")
