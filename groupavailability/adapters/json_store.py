"""
File-backed calendar store.

Events are read from a JSON list; materialized availability blocks are kept
in memory and, when a blocks file is configured, written back as JSON.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarStoreError, PersistenceError
from ..domain.models import AvailabilityBlock, CalendarEvent, TimeInterval

logger = logging.getLogger(__name__)


class JsonCalendarStore:
    """
    Calendar store backed by plain JSON files.

    Event rows look like::

        {"calendarId": "alice@example.com", "start": "2024-11-25T09:00:00+01:00",
         "end": "2024-11-25T10:00:00+01:00", "source": "manual", "title": "Standup"}

    Saving blocks is idempotent: rows whose (user, date, start, end) already
    exist are skipped. A batch is written completely or not at all.
    """

    def __init__(
        self,
        events_file: Path | None = None,
        blocks_file: Path | None = None,
        config=None,
        events: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Initialize the store.

        Args:
            events_file: JSON file with event rows (ignored when ``events`` is given)
            blocks_file: Optional JSON file receiving availability blocks
            config: Optional AppConfig for participant -> calendar_id mapping
            events: Event rows supplied directly instead of a file
        """
        self.events_file = events_file
        self.blocks_file = blocks_file
        self.config = config
        self.calendar_events = events if events is not None else self._load_events()
        self._blocks: Dict[Tuple[str, str, str, str], AvailabilityBlock] = {}
        self._load_blocks()

    @property
    def blocks(self) -> List[AvailabilityBlock]:
        """All persisted blocks, in insertion order."""
        return list(self._blocks.values())

    def _load_events(self) -> List[Dict[str, Any]]:
        """Load event rows from the JSON file."""
        if self.events_file is None or not self.events_file.exists():
            return []

        try:
            with open(self.events_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CalendarStoreError(
                f"Could not read events from {self.events_file}: {exc}"
            ) from exc

        if not isinstance(data, list):
            raise CalendarStoreError(f"{self.events_file} must contain a JSON list of events")
        return data

    def _load_blocks(self) -> None:
        if self.blocks_file is None or not self.blocks_file.exists():
            return

        try:
            with open(self.blocks_file, "r", encoding="utf-8") as f:
                rows = json.load(f)
            if not isinstance(rows, list):
                raise ValueError("expected a JSON list of blocks")
            for row in rows:
                block = _block_from_row(row)
                self._blocks[block.key] = block
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(
                f"Could not read availability blocks from {self.blocks_file}: {exc}"
            ) from exc

    def _get_calendar_id(self, participant_id: str) -> str:
        """Map a participant identifier to its calendar_id using config."""
        if self.config:
            participant = self.config.find_participant_by_email(participant_id)
            if participant and participant.calendar_id:
                return participant.calendar_id

        # Fallback: use the identifier itself as calendar_id
        return participant_id

    def _events_for(
        self,
        participant_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CalendarEvent]:
        calendar_id = self._get_calendar_id(participant_id)
        events: List[CalendarEvent] = []

        for row in self.calendar_events:
            if row.get("calendarId") != calendar_id:
                continue

            try:
                event = CalendarEvent(
                    start=pendulum.parse(row["start"]),
                    end=pendulum.parse(row["end"]),
                    source=row.get("source", "manual"),
                    title=row.get("title", ""),
                )
            except (KeyError, ValueError, TypeError) as exc:
                logger.warning("Skipping malformed event for %s: %s", calendar_id, exc)
                continue

            if event.start < end and event.end > start:
                events.append(event)

        return events

    async def get_busy_intervals(
        self,
        participant_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[TimeInterval]:
        """Return the participant's events overlapping the window as busy intervals."""
        return [event.interval for event in self._events_for(participant_id, start, end)]

    async def get_events(
        self,
        user_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CalendarEvent]:
        """Return the user's events overlapping the window."""
        return self._events_for(user_id, start, end)

    async def save_availability_blocks(self, blocks: Sequence[AvailabilityBlock]) -> int:
        """
        Persist a batch of blocks, skipping duplicates.

        Returns:
            Number of newly stored blocks

        Raises:
            PersistenceError: If the blocks file cannot be written; the
                in-memory state is left untouched in that case
        """
        new_blocks: Dict[Tuple[str, str, str, str], AvailabilityBlock] = {}
        for block in blocks:
            if block.key not in self._blocks and block.key not in new_blocks:
                new_blocks[block.key] = block

        if not new_blocks:
            return 0

        merged = {**self._blocks, **new_blocks}
        if self.blocks_file is not None:
            self._write_blocks(list(merged.values()))

        self._blocks = merged
        logger.debug("Stored %d of %d availability blocks", len(new_blocks), len(blocks))
        return len(new_blocks)

    def _write_blocks(self, blocks: List[AvailabilityBlock]) -> None:
        """Replace the blocks file atomically."""
        rows = [_block_to_row(block) for block in blocks]
        directory = self.blocks_file.parent

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(rows, f, indent=2)
                os.replace(tmp_name, self.blocks_file)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise PersistenceError(
                f"Could not save availability blocks to {self.blocks_file}: {exc}"
            ) from exc


def _block_to_row(block: AvailabilityBlock) -> Dict[str, Any]:
    return {
        "userId": block.user_id,
        "date": block.date.isoformat(),
        "startTime": block.start_time.to_iso8601_string(),
        "endTime": block.end_time.to_iso8601_string(),
        "isFree": block.is_free,
    }


def _block_from_row(row: Dict[str, Any]) -> AvailabilityBlock:
    return AvailabilityBlock(
        user_id=row["userId"],
        date=pendulum.parse(row["date"]).date(),
        start_time=pendulum.parse(row["startTime"]),
        end_time=pendulum.parse(row["endTime"]),
        is_free=bool(row.get("isFree", True)),
    )
