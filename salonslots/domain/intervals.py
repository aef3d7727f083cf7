"""
Set operations on lists of TimeRange.
"""

from typing import Iterable, List

from .models import TimeRange


def merge_ranges(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Merge overlapping or adjacent time ranges.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    sorted_ranges = sorted(ranges, key=lambda r: r.start)
    if not sorted_ranges:
        return []

    merged: List[TimeRange] = [sorted_ranges[0]]

    for current in sorted_ranges[1:]:
        last = merged[-1]

        # Touching ranges merge too: there is no gap between them
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = TimeRange(start=last.start, end=current.end)
        else:
            merged.append(current)

    return merged


def subtract_ranges(
    source: Iterable[TimeRange],
    excluded: Iterable[TimeRange]
) -> List[TimeRange]:
    """
    Subtract excluded ranges from every source range.

    Example:
    Source: 09:00 - 17:00
    Excluded: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    sorted_excluded = sorted(excluded, key=lambda r: r.start)
    result: List[TimeRange] = []

    for block in source:
        current_start = block.start

        for busy in sorted_excluded:
            if busy.start >= block.end:
                break
            if busy.end <= current_start:
                continue

            if busy.start > current_start:
                result.append(TimeRange(start=current_start, end=busy.start))

            current_start = max(current_start, busy.end)

        if current_start < block.end:
            result.append(TimeRange(start=current_start, end=block.end))

    return result


def intersect_range_lists(
    first: Iterable[TimeRange],
    second: Iterable[TimeRange]
) -> List[TimeRange]:
    """
    Intersect two lists of ranges.

    Both lists are sorted and walked in step, so only the overlapping parts
    of the two sides are returned.
    """
    left = sorted(first, key=lambda r: r.start)
    right = sorted(second, key=lambda r: r.start)
    intersections: List[TimeRange] = []

    i = j = 0
    while i < len(left) and j < len(right):
        overlap = left[i].intersect(right[j])
        if overlap:
            intersections.append(overlap)

        if left[i].end <= right[j].end:
            i += 1
        else:
            j += 1

    return merge_ranges(intersections)
