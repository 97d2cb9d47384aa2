"""
Core business logic for finding common free time across participants.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O).

Algorithm:
1. Flatten every participant's busy intervals (any one busy => group busy)
2. Clip them to the search range and drop empty ones
3. Merge into a non-overlapping busy timeline
4. Sweep a cursor across the timeline, emitting the gaps
5. Keep gaps that meet the minimum duration
"""

from typing import List, Sequence

from .intervals import merge_intervals
from .models import FreeSlot, ParticipantSchedule, TimeInterval

DEFAULT_MIN_DURATION_MINUTES = 30


def find_common_free_time(
    schedules: Sequence[ParticipantSchedule],
    search_range: TimeInterval,
    min_duration_minutes: float = DEFAULT_MIN_DURATION_MINUTES,
) -> List[FreeSlot]:
    """
    Find the time inside ``search_range`` when nobody is busy.

    Args:
        schedules: Busy intervals per participant, unsorted and possibly overlapping
        search_range: Window the caller cares about; results are clipped to it
        min_duration_minutes: Minimum length for a gap to be reported

    Returns:
        Free slots sorted by start time
    """
    busy = _clip_busy_to_range(
        [interval for schedule in schedules for interval in schedule.busy_intervals],
        search_range,
    )
    merged_busy = merge_intervals(busy)

    free_slots: List[FreeSlot] = []
    cursor = search_range.start

    for busy_interval in merged_busy:
        if busy_interval.start > cursor:
            _append_if_long_enough(
                free_slots,
                TimeInterval(start=cursor, end=busy_interval.start),
                min_duration_minutes,
            )
        cursor = max(cursor, busy_interval.end)

    if cursor < search_range.end:
        _append_if_long_enough(
            free_slots,
            TimeInterval(start=cursor, end=search_range.end),
            min_duration_minutes,
        )

    return free_slots


def _clip_busy_to_range(
    busy_intervals: Sequence[TimeInterval],
    search_range: TimeInterval,
) -> List[TimeInterval]:
    """
    Clip busy intervals to the search range.

    Intervals outside the range and zero-length intervals cover no time and
    are dropped, so they can neither split a gap nor extend one past the range.
    """
    clipped: List[TimeInterval] = []

    for interval in busy_intervals:
        inside = interval.clip_to(search_range)
        if inside is not None and not inside.is_empty():
            clipped.append(inside)

    return clipped


def _append_if_long_enough(
    free_slots: List[FreeSlot],
    gap: TimeInterval,
    min_duration_minutes: float,
) -> None:
    if gap.duration_minutes() >= min_duration_minutes:
        free_slots.append(gap)
