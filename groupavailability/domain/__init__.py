"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    AvailabilityError,
    CalendarStoreError,
    InvalidIntervalError,
    PersistenceError,
)
from .filters import filter_by_day_of_week
from .free_time import find_common_free_time
from .intervals import duration_minutes, merge_intervals, overlaps_or_adjacent
from .materializer import build_availability_blocks
from .models import (
    AvailabilityBlock,
    CalendarEvent,
    DateRange,
    FreeSlot,
    ParticipantSchedule,
    PreferenceWindow,
    RankingPreferences,
    ScoredSlot,
    TimeInterval,
)
from .ranking import rank_free_slots

__all__ = [
    "AvailabilityBlock",
    "AvailabilityError",
    "CalendarEvent",
    "CalendarStoreError",
    "DateRange",
    "FreeSlot",
    "InvalidIntervalError",
    "ParticipantSchedule",
    "PersistenceError",
    "PreferenceWindow",
    "RankingPreferences",
    "ScoredSlot",
    "TimeInterval",
    "build_availability_blocks",
    "duration_minutes",
    "filter_by_day_of_week",
    "find_common_free_time",
    "merge_intervals",
    "overlaps_or_adjacent",
    "rank_free_slots",
]
