"""
Day-of-week filtering for free slots.
"""

from typing import Iterable, List, Sequence

from .models import FreeSlot

# Sunday=0 ... Saturday=6
SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)


def day_of_week(slot: FreeSlot, timezone: str = "UTC") -> int:
    """Return the weekday of the slot's start, with Sunday as 0."""
    return slot.start.in_timezone(timezone).isoweekday() % 7


def filter_by_day_of_week(
    slots: Sequence[FreeSlot],
    allowed_days: Iterable[int],
    timezone: str = "UTC",
) -> List[FreeSlot]:
    """
    Keep the slots whose start falls on one of ``allowed_days``.

    Order is preserved.

    Raises:
        ValueError: If a day is outside 0-6
    """
    allowed = set(allowed_days)
    invalid_days = sorted(day for day in allowed if day not in range(7))
    if invalid_days:
        raise ValueError(f"Days of week must be between 0 and 6, got {invalid_days}")

    return [slot for slot in slots if day_of_week(slot, timezone) in allowed]
