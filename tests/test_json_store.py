"""
Tests for the JSON file calendar store.
"""

import asyncio
import json

import pendulum
import pytest

from groupavailability.adapters.json_store import JsonCalendarStore
from groupavailability.config import AppConfig
from groupavailability.domain.exceptions import CalendarStoreError, PersistenceError
from groupavailability.domain.models import AvailabilityBlock

EVENTS = [
    {"calendarId": "cal-alice", "start": "2024-11-25T09:00:00+00:00", "end": "2024-11-25T10:00:00+00:00", "source": "timetable"},
    {"calendarId": "cal-alice", "start": "2024-11-27T09:00:00+00:00", "end": "2024-11-27T10:00:00+00:00"},
    {"calendarId": "bob@example.com", "start": "2024-11-25T11:00:00+00:00", "end": "2024-11-25T12:00:00+00:00"},
    {"calendarId": "bob@example.com", "start": "not a date", "end": "2024-11-25T12:00:00+00:00"},
]


def _config() -> AppConfig:
    return AppConfig(participants=[
        {"name": "alice", "email": "alice@example.com", "calendar_id": "cal-alice"},
        {"name": "bob", "email": "bob@example.com"},
    ])


def _block(start: str, end: str, user_id: str = "alice") -> AvailabilityBlock:
    return AvailabilityBlock(
        user_id=user_id,
        date=pendulum.date(2024, 11, 25),
        start_time=pendulum.parse(f"2024-11-25 {start}"),
        end_time=pendulum.parse(f"2024-11-25 {end}"),
    )


def test_busy_intervals_are_mapped_through_calendar_id(tmp_path):
    events_file = tmp_path / "events.json"
    events_file.write_text(json.dumps(EVENTS), encoding="utf-8")
    store = JsonCalendarStore(events_file=events_file, config=_config())

    busy = asyncio.run(store.get_busy_intervals(
        "alice@example.com",
        pendulum.parse("2024-11-25 00:00"),
        pendulum.parse("2024-11-26 00:00"),
    ))

    assert len(busy) == 1
    assert busy[0].start == pendulum.parse("2024-11-25 09:00")


def test_malformed_events_are_skipped():
    store = JsonCalendarStore(events=EVENTS, config=_config())

    events = asyncio.run(store.get_events(
        "bob@example.com",
        pendulum.parse("2024-11-25 00:00"),
        pendulum.parse("2024-11-26 00:00"),
    ))

    assert len(events) == 1
    assert events[0].source == "manual"


def test_invalid_events_file_raises(tmp_path):
    events_file = tmp_path / "events.json"
    events_file.write_text("{not json", encoding="utf-8")

    with pytest.raises(CalendarStoreError):
        JsonCalendarStore(events_file=events_file)


def test_save_skips_duplicates_within_and_across_batches(tmp_path):
    blocks_file = tmp_path / "blocks.json"
    store = JsonCalendarStore(blocks_file=blocks_file)
    batch = [_block("07:00", "09:00"), _block("10:00", "23:00"), _block("07:00", "09:00")]

    first = asyncio.run(store.save_availability_blocks(batch))
    second = asyncio.run(store.save_availability_blocks(batch))

    assert first == 2
    assert second == 0
    assert len(json.loads(blocks_file.read_text(encoding="utf-8"))) == 2


def test_blocks_survive_reload(tmp_path):
    blocks_file = tmp_path / "blocks.json"
    asyncio.run(JsonCalendarStore(blocks_file=blocks_file).save_availability_blocks(
        [_block("07:00", "09:00")]
    ))

    reloaded = JsonCalendarStore(blocks_file=blocks_file)

    assert reloaded.blocks == [_block("07:00", "09:00")]
    assert asyncio.run(reloaded.save_availability_blocks([_block("07:00", "09:00")])) == 0


def test_failed_write_raises_and_keeps_state(tmp_path):
    blocked_parent = tmp_path / "not_a_directory"
    blocked_parent.write_text("", encoding="utf-8")
    store = JsonCalendarStore(blocks_file=blocked_parent / "blocks.json")

    with pytest.raises(PersistenceError):
        asyncio.run(store.save_availability_blocks([_block("07:00", "09:00")]))

    assert store.blocks == []


def test_blocks_file_that_is_not_a_list_raises(tmp_path):
    blocks_file = tmp_path / "blocks.json"
    blocks_file.write_text(json.dumps({"a": 1}), encoding="utf-8")

    with pytest.raises(PersistenceError, match="expected a JSON list"):
        JsonCalendarStore(blocks_file=blocks_file)


def test_blocks_file_with_non_object_rows_raises(tmp_path):
    blocks_file = tmp_path / "blocks.json"
    blocks_file.write_text(json.dumps(["row"]), encoding="utf-8")

    with pytest.raises(PersistenceError):
        JsonCalendarStore(blocks_file=blocks_file)
