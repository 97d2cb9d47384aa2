"""
Per-day expansion of a user's events into availability blocks.

Each calendar day is covered by a fixed 07:00-23:00 window. Events are
merged and clipped to that window, then a cursor sweeps from the opening
hour, emitting a free block for every gap and, on request, an occupied
block for every busy stretch.
"""

from typing import List, Sequence

import pendulum
from pendulum import Date, DateTime

from .intervals import merge_intervals
from .models import AvailabilityBlock, CalendarEvent, DateRange, TimeInterval

DAY_OPEN_HOUR = 7
DAY_CLOSE_HOUR = 23


def local_midnight(day: Date, timezone: str = "UTC") -> DateTime:
    return pendulum.datetime(day.year, day.month, day.day, tz=timezone)


def daily_window(day: Date, timezone: str = "UTC") -> TimeInterval:
    """Return the 07:00-23:00 window of ``day`` in ``timezone``."""
    midnight = local_midnight(day, timezone)
    return TimeInterval(
        start=midnight.set(hour=DAY_OPEN_HOUR),
        end=midnight.set(hour=DAY_CLOSE_HOUR),
    )


def events_on_day(
    events: Sequence[CalendarEvent],
    day: Date,
    timezone: str = "UTC",
) -> List[CalendarEvent]:
    """Select the events that overlap ``day`` (local midnight to midnight), sorted by start."""
    day_start = local_midnight(day, timezone)
    day_end = day_start.add(days=1)

    selected = [
        event for event in events
        if event.start < day_end and event.end > day_start
    ]
    return sorted(selected, key=lambda event: event.start)


def build_day_blocks(
    user_id: str,
    events: Sequence[CalendarEvent],
    day: Date,
    timezone: str = "UTC",
    include_occupied: bool = False,
) -> List[AvailabilityBlock]:
    """Sweep one day's window and return its blocks in chronological order."""
    window = daily_window(day, timezone)

    busy: List[TimeInterval] = []
    for event in events_on_day(events, day, timezone):
        inside = event.interval.clip_to(window)
        if inside is not None and not inside.is_empty():
            busy.append(inside)

    blocks: List[AvailabilityBlock] = []
    cursor = window.start

    for busy_interval in merge_intervals(busy):
        if busy_interval.start > cursor:
            blocks.append(_block(user_id, day, cursor, busy_interval.start, True))
        if include_occupied:
            blocks.append(_block(user_id, day, busy_interval.start, busy_interval.end, False))
        cursor = busy_interval.end

    if cursor < window.end:
        blocks.append(_block(user_id, day, cursor, window.end, True))

    return blocks


def build_availability_blocks(
    user_id: str,
    events: Sequence[CalendarEvent],
    date_range: DateRange,
    timezone: str = "UTC",
    include_occupied: bool = False,
) -> List[AvailabilityBlock]:
    """
    Build blocks for every day in ``date_range`` (both ends included).

    Days are independent of each other; the result is ordered by day, then time.
    """
    blocks: List[AvailabilityBlock] = []
    for day in date_range.days():
        blocks.extend(
            build_day_blocks(user_id, events, day, timezone, include_occupied)
        )
    return blocks


def _block(
    user_id: str,
    day: Date,
    start: DateTime,
    end: DateTime,
    is_free: bool,
) -> AvailabilityBlock:
    return AvailabilityBlock(
        user_id=user_id,
        date=day,
        start_time=start,
        end_time=end,
        is_free=is_free,
    )
