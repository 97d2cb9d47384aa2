"""
Interval primitives and the busy-interval merger.
"""

from typing import Iterable, List

from .models import TimeInterval


def overlaps_or_adjacent(a: TimeInterval, b: TimeInterval) -> bool:
    """
    Check whether ``b`` touches or overlaps ``a``.

    ``a`` is expected to sort before ``b`` (``a.start <= b.start``), so only
    ``b.start <= a.end`` needs to be checked.
    """
    return b.start <= a.end


def duration_minutes(interval: TimeInterval) -> float:
    """Return the length of an interval in minutes (0 for degenerate ones)."""
    return interval.duration_minutes()


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Merge overlapping or adjacent intervals into a minimal sorted list.

    The input may be unsorted and may overlap. The result is sorted by start,
    pairwise disjoint and maximal, and covers exactly the union of the input.
    Input intervals are never modified; merged spans are new intervals.

    Example: [10:00-11:00, 09:00-10:00, 10:30-12:00] -> [09:00-12:00]
    """
    # sorted() is stable, equal starts keep their input order
    sorted_intervals = sorted(intervals, key=lambda interval: interval.start)

    if not sorted_intervals:
        return []

    merged: List[TimeInterval] = []
    current = sorted_intervals[0]

    for candidate in sorted_intervals[1:]:
        if overlaps_or_adjacent(current, candidate):
            if candidate.end > current.end:
                current = TimeInterval(start=current.start, end=candidate.end)
        else:
            merged.append(current)
            current = candidate

    merged.append(current)
    return merged
