"""
Application services for group availability lookups and block caching.

The service coordinates fetching busy times through a calendar store adapter
and delegates the actual calculations to the pure domain functions. The store
dependency is a simple protocol so tests can plug in a stub.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from pendulum import DateTime

from ..domain.filters import filter_by_day_of_week
from ..domain.free_time import DEFAULT_MIN_DURATION_MINUTES, find_common_free_time
from ..domain.materializer import build_availability_blocks
from ..domain.models import (
    AvailabilityBlock,
    CalendarEvent,
    DateRange,
    FreeSlot,
    ParticipantSchedule,
    RankingPreferences,
    ScoredSlot,
    TimeInterval,
)
from ..domain.ranking import rank_free_slots

logger = logging.getLogger(__name__)

ALL_DAYS = frozenset(range(7))


class BusyIntervalSource(Protocol):
    """Anything that can report a participant's busy intervals."""

    async def get_busy_intervals(
        self,
        participant_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[TimeInterval]:
        """Return busy intervals overlapping ``[start, end)``."""


class CalendarStoreProtocol(BusyIntervalSource, Protocol):
    """Protocol describing the calendar store behaviour needed by the service."""

    async def get_events(
        self,
        user_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CalendarEvent]:
        """Return concrete event instances overlapping ``[start, end)``."""

    async def save_availability_blocks(
        self,
        blocks: Sequence[AvailabilityBlock],
    ) -> int:
        """
        Persist blocks in one all-or-nothing batch, skipping duplicates.
        Return the number of rows actually written.
        """


class AvailabilityService:
    """
    Orchestrates busy-time retrieval, slot calculation and block caching.

    ``busy_source`` answers group lookups; ``block_store`` supplies a user's
    events and receives materialized blocks. When no block store is given the
    busy source is expected to fill both roles.
    """

    def __init__(
        self,
        busy_source: BusyIntervalSource,
        block_store: Optional[CalendarStoreProtocol] = None,
    ) -> None:
        self._busy_source = busy_source
        self._block_store = block_store if block_store is not None else busy_source

    async def fetch_schedules(
        self,
        *,
        participants: Sequence[str],
        search_range: TimeInterval,
    ) -> List[ParticipantSchedule]:
        """
        Fetch every participant's busy intervals concurrently.

        Schedules come back in participant order; repeated identifiers are
        fetched once.
        """
        participant_ids = _unique(participants)

        busy_lists = await asyncio.gather(
            *(
                self._busy_source.get_busy_intervals(
                    participant_id, search_range.start, search_range.end
                )
                for participant_id in participant_ids
            )
        )

        schedules = [
            ParticipantSchedule(participant_id=participant_id, busy_intervals=busy)
            for participant_id, busy in zip(participant_ids, busy_lists)
        ]
        logger.debug(
            "Fetched %d busy intervals for %d participants",
            sum(len(s.busy_intervals) for s in schedules),
            len(schedules),
        )
        return schedules

    async def find_slots(
        self,
        *,
        participants: Sequence[str],
        search_range: TimeInterval,
        min_duration_minutes: float = DEFAULT_MIN_DURATION_MINUTES,
        preferences: Optional[RankingPreferences] = None,
        allowed_days: Iterable[int] = ALL_DAYS,
        timezone: str = "UTC",
    ) -> List[ScoredSlot]:
        """
        Retrieve busy data, compute common free time, filter and rank it.
        """
        schedules = await self.fetch_schedules(
            participants=participants,
            search_range=search_range,
        )

        free_slots = self.calculate_free_slots(
            schedules=schedules,
            search_range=search_range,
            min_duration_minutes=min_duration_minutes,
            allowed_days=allowed_days,
            timezone=timezone,
        )

        return rank_free_slots(free_slots, preferences, timezone)

    def calculate_free_slots(
        self,
        *,
        schedules: Sequence[ParticipantSchedule],
        search_range: TimeInterval,
        min_duration_minutes: float,
        allowed_days: Iterable[int] = ALL_DAYS,
        timezone: str = "UTC",
    ) -> List[FreeSlot]:
        """Calculate common free slots from already fetched schedules."""
        free_slots = find_common_free_time(
            schedules, search_range, min_duration_minutes
        )
        filtered = filter_by_day_of_week(free_slots, allowed_days, timezone)
        logger.debug(
            "Found %d free slots, %d on allowed days", len(free_slots), len(filtered)
        )
        return filtered

    async def generate_availability_blocks(
        self,
        *,
        user_id: str,
        date_range: DateRange,
        events: Optional[Sequence[CalendarEvent]] = None,
        timezone: str = "UTC",
        include_occupied: bool = False,
    ) -> List[AvailabilityBlock]:
        """
        Materialize and persist one user's blocks for every day in the range.

        ``events`` are used as given when supplied; otherwise the user's
        events are loaded from the block store. The generated blocks are
        returned whether or not they were new to the store. Persistence
        errors propagate unchanged; nothing is retried.
        """
        if events is None:
            window = date_range.bounds(timezone)
            events = await self._block_store.get_events(user_id, window.start, window.end)

        blocks = build_availability_blocks(
            user_id,
            events,
            date_range,
            timezone=timezone,
            include_occupied=include_occupied,
        )

        if blocks:
            written = await self._block_store.save_availability_blocks(blocks)
            logger.info(
                "Materialized %d blocks for %s (%d new)", len(blocks), user_id, written
            )

        return blocks


def _unique(values: Sequence[str]) -> List[str]:
    seen: set[str] = set()
    unique: List[str] = []
    for value in values:
        if value not in seen:
            unique.append(value)
            seen.add(value)
    return unique
