"""
Time-of-day scoring for free slots.

Scores are additive on top of a base of 100. Hours are read in an explicit
time zone (UTC unless the caller names one), never the process' local zone.
"""

from typing import List, Optional, Sequence, Tuple

from .models import FreeSlot, RankingPreferences, ScoredSlot

BASE_SCORE = 100

WORKDAY_HOURS = (9.0, 18.0)
WORKDAY_BONUS = 20

EARLY_MORNING_HOUR = 8.0
EARLY_MORNING_PENALTY = 30

LATE_EVENING_HOUR = 21.0
LATE_EVENING_PENALTY = 20

LUNCH_HOURS = (12.0, 14.0)
LUNCH_BONUS = 15

PREFERRED_WINDOW_BONUS = 30


def slot_hours(slot: FreeSlot, timezone: str = "UTC") -> Tuple[float, float]:
    """
    Return the slot's (start, end) as fractional hours since local midnight.

    The end is measured from the same midnight as the start, so a slot that
    runs past midnight ends later than 24.
    """
    local_start = slot.start.in_timezone(timezone)
    start_hours = (
        local_start.hour
        + local_start.minute / 60
        + local_start.second / 3600
    )
    end_hours = start_hours + slot.duration_minutes() / 60
    return start_hours, end_hours


def score_slot(
    slot: FreeSlot,
    preferences: Optional[RankingPreferences] = None,
    timezone: str = "UTC",
) -> int:
    """Score a single slot; every matching rule applies."""
    preferences = preferences or RankingPreferences()
    start_hours, end_hours = slot_hours(slot, timezone)
    score = BASE_SCORE

    if WORKDAY_HOURS[0] <= start_hours and end_hours <= WORKDAY_HOURS[1]:
        score += WORKDAY_BONUS

    if start_hours < EARLY_MORNING_HOUR:
        score -= EARLY_MORNING_PENALTY

    if end_hours > LATE_EVENING_HOUR:
        score -= LATE_EVENING_PENALTY

    if LUNCH_HOURS[0] <= start_hours and end_hours <= LUNCH_HOURS[1]:
        score += LUNCH_BONUS

    for window in preferences.preferred_windows:
        if start_hours < window.end_hours and end_hours > window.start_hours:
            score += PREFERRED_WINDOW_BONUS

    return score


def rank_free_slots(
    slots: Sequence[FreeSlot],
    preferences: Optional[RankingPreferences] = None,
    timezone: str = "UTC",
) -> List[ScoredSlot]:
    """
    Score free slots and order them best first.

    Equal scores keep their input order, so ranking the same input twice
    always yields the same sequence.
    """
    scored = [
        ScoredSlot(slot=slot, score=score_slot(slot, preferences, timezone), order=index)
        for index, slot in enumerate(slots)
    ]
    return sorted(scored, key=lambda s: (-s.score, s.order))
