"""
Expansion of weekly rules and date overrides into concrete open intervals.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from pendulum import DateTime

from .intervals import merge_ranges
from .models import END_OF_DAY, Blocked, DateOverride, Hours, TimeRange, WeeklyRule
from .timezones import (
    iter_local_dates,
    local_instant,
    local_midnight_after,
    resolve_timezone,
    to_utc,
    weekday_index,
)

logger = logging.getLogger(__name__)


class RecurrenceExpander:
    """
    Produces the provider's open intervals for a date range.

    For every local calendar date in the range:
    1. A date override, if present, is used exclusively (a blocking override
       leaves the day closed)
    2. Otherwise every weekly rule covering that weekday contributes its hours
    3. Wall-clock hours are converted to instants in the provider's timezone
    4. Same-day intervals are clipped to the range and merged

    Unclipped intervals keep the rule's own start, which anchors the slot grid
    when the range begins in the middle of working hours.
    """

    def __init__(
        self,
        weekly_rules: Iterable[WeeklyRule],
        date_overrides: Iterable[DateOverride],
        timezone: str
    ):
        self.weekly_rules = tuple(weekly_rules)
        self.overrides: Dict[str, DateOverride] = {
            override.date.isoformat(): override for override in date_overrides
        }
        self.tz = resolve_timezone(timezone)

    def expand(
        self,
        date_from: DateTime,
        date_to: DateTime,
        clip: bool = True
    ) -> List[TimeRange]:
        """
        Return the open intervals between two instants, sorted ascending.

        With ``clip=False`` every interval of a day touched by the range is
        returned whole, even where it extends past ``date_from`` or ``date_to``.
        """
        window_start = to_utc(date_from)
        window_end = to_utc(date_to)
        open_ranges: List[TimeRange] = []

        for day in iter_local_dates(window_start, window_end, self.tz):
            day_ranges = []

            for hours in self.hours_for_day(day):
                time_range = self._to_time_range(day, hours)
                if time_range is None:
                    continue

                if not clip:
                    day_ranges.append(time_range)
                    continue

                clipped = self._clip_range_to_bounds(time_range, window_start, window_end)
                if clipped:
                    day_ranges.append(clipped)

            # Overlapping weekly rules collapse into one interval
            open_ranges.extend(merge_ranges(day_ranges))

        logger.debug("Expanded %d open intervals in %s", len(open_ranges), self.tz.name)
        return open_ranges

    def hours_for_day(self, day: date) -> List[Hours]:
        """Wall-clock hours that apply to a local date."""
        override = self.overrides.get(day.isoformat())

        if override is not None:
            hours = override.day_hours()
            if isinstance(hours, Blocked):
                return []
            return [hours]

        weekday = weekday_index(day)
        return [
            Hours(start_time=rule.start_time, end_time=rule.end_time)
            for rule in self.weekly_rules
            if rule.applies_to(weekday)
        ]

    def _to_time_range(self, day: date, hours: Hours) -> Optional[TimeRange]:
        start = local_instant(day, hours.start_time, self.tz)

        if hours.end_time == END_OF_DAY:
            end = local_midnight_after(day, self.tz)
        else:
            end = local_instant(day, hours.end_time, self.tz)

        if start is None or end is None or start >= end:
            return None

        return TimeRange(start=start, end=end)

    @staticmethod
    def _clip_range_to_bounds(
        time_range: TimeRange,
        min_bound: DateTime,
        max_bound: DateTime
    ) -> Optional[TimeRange]:
        """
        Clip a time range to fit within bounds.
        Returns None if the range is completely outside bounds.
        """
        start = max(time_range.start, min_bound)
        end = min(time_range.end, max_bound)

        if start >= end:
            return None

        return TimeRange(start=start, end=end)
