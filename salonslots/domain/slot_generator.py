"""
Slot generation: fixed-length appointment starts inside open intervals.
"""

from typing import Iterator, List, Optional, Sequence

from pendulum import DateTime

from .models import EventParameters, Slot, TimeRange
from .timezones import to_utc


class SlotGenerator:
    """
    Walks open intervals and yields bookable slot starts.

    For each open interval, candidates start at the interval start and step
    forward by the slot interval. A candidate ``t`` is kept when:
    - the whole appointment ``[t, t + length)`` fits before the interval ends
    - ``t`` is at or after ``now + minimum notice``
    - ``[t, t + length)`` does not overlap any busy interval widened by the
      before/after buffers
    - ``[t, t + length)`` lies inside ``window``, when one is given

    Rejected candidates are skipped, not treated as the end of the interval.
    """

    def __init__(self, event: EventParameters, now: DateTime, window: Optional[TimeRange] = None):
        self.event = event
        self.notice_cutoff = to_utc(now).add(minutes=event.minimum_notice_minutes)
        self.window = window

    def generate(
        self,
        open_ranges: Sequence[TimeRange],
        busy_ranges: Sequence[TimeRange]
    ) -> Iterator[Slot]:
        """
        Yield slots in ascending order.

        ``open_ranges`` must be sorted; ``busy_ranges`` must be the sorted,
        disjoint output of the busy-time merger.
        """
        exclusions = self._expand_buffers(busy_ranges)
        last_emitted: Optional[DateTime] = None

        for open_range in sorted(open_ranges, key=lambda r: r.start):
            for start in self._candidates(open_range, exclusions):
                if last_emitted is not None and start <= last_emitted:
                    continue
                last_emitted = start
                yield Slot(time=start)

    def _candidates(
        self,
        open_range: TimeRange,
        exclusions: List[TimeRange]
    ) -> Iterator[DateTime]:
        length = self.event.length_minutes
        step = self.event.interval_minutes
        range_end = to_utc(open_range.end)
        candidate = to_utc(open_range.start)
        busy_index = 0

        while candidate.add(minutes=length) <= range_end:
            candidate_end = candidate.add(minutes=length)

            # Exclusions are sorted and disjoint, and candidates only move
            # forward, so anything ending at or before the candidate is done
            while busy_index < len(exclusions) and exclusions[busy_index].end <= candidate:
                busy_index += 1

            blocked = (
                busy_index < len(exclusions)
                and exclusions[busy_index].start < candidate_end
            )

            in_window = self.window is None or self.window.contains(
                TimeRange(start=candidate, end=candidate_end)
            )

            if not blocked and in_window and candidate >= self.notice_cutoff:
                yield candidate

            candidate = candidate.add(minutes=step)

    def _expand_buffers(self, busy_ranges: Sequence[TimeRange]) -> List[TimeRange]:
        """
        Widen every busy range by the event's buffers.

        Widened ranges may overlap their neighbours; they keep the start and
        end order of the input, which is all the candidate walk relies on.
        """
        before = self.event.before_buffer_minutes
        after = self.event.after_buffer_minutes

        return [
            TimeRange(
                start=to_utc(busy.start).subtract(minutes=before),
                end=to_utc(busy.end).add(minutes=after)
            )
            for busy in sorted(busy_ranges, key=lambda r: r.start)
        ]
