"""
Domain models for intervals, free slots and materialized availability blocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidIntervalError


def as_instant(value: datetime) -> DateTime:
    """
    Normalise a datetime to a timezone-aware pendulum DateTime.

    Naive values are interpreted as UTC.
    """
    if not isinstance(value, datetime):
        raise TypeError(f"Expected a datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=pendulum.UTC)
    if isinstance(value, DateTime):
        return value
    return pendulum.instance(value)


def as_date(value: date) -> Date:
    """Normalise a date (or the date part of a datetime) to a pendulum Date."""
    return pendulum.date(value.year, value.month, value.day)


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must not be after end. Zero-length intervals are allowed.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        object.__setattr__(self, "start", as_instant(self.start))
        object.__setattr__(self, "end", as_instant(self.end))
        if self.start > self.end:
            raise InvalidIntervalError(
                f"Start time {self.start} must not be after end time {self.end}"
            )

    def duration_minutes(self) -> float:
        """Return the duration in minutes."""
        return (self.end - self.start).total_seconds() / 60

    def is_empty(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval shares any instant with another."""
        return self.start < other.end and self.end > other.start

    def clip_to(self, bounds: "TimeInterval") -> "TimeInterval | None":
        """
        Clip this interval to fit within bounds.
        Returns None if the interval lies completely outside bounds.
        """
        if self.end < bounds.start or self.start > bounds.end:
            return None

        start = max(self.start, bounds.start)
        end = min(self.end, bounds.end)

        return TimeInterval(start=start, end=end)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


# A free slot is an interval known not to intersect any merged busy interval.
FreeSlot = TimeInterval


@dataclass(frozen=True)
class ParticipantSchedule:
    """Busy intervals for one person in a group availability request."""
    participant_id: str
    busy_intervals: Tuple[TimeInterval, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "busy_intervals", tuple(self.busy_intervals))


@dataclass(frozen=True)
class PreferenceWindow:
    """
    A wall-clock time-of-day range the caller would like meetings to touch.
    Carries no date.
    """
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidIntervalError(
                f"Preference window start {self.start} must be before end {self.end}"
            )

    @classmethod
    def parse(cls, text: str) -> "PreferenceWindow":
        """
        Parse a window written as ``HH:MM-HH:MM``.

        Raises:
            ValueError: If the text is not in the expected format
        """
        try:
            start_text, end_text = text.split("-")
            start = time.fromisoformat(start_text.strip())
            end = time.fromisoformat(end_text.strip())
        except ValueError as exc:
            raise ValueError(
                f"Invalid preference window '{text}', expected HH:MM-HH:MM"
            ) from exc
        return cls(start=start, end=end)

    @property
    def start_hours(self) -> float:
        return self.start.hour + self.start.minute / 60

    @property
    def end_hours(self) -> float:
        return self.end.hour + self.end.minute / 60

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


@dataclass(frozen=True)
class RankingPreferences:
    """Caller-supplied ranking configuration."""
    preferred_windows: Tuple[PreferenceWindow, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "preferred_windows", tuple(self.preferred_windows))

    @classmethod
    def from_strings(cls, windows: Sequence[str]) -> "RankingPreferences":
        return cls(preferred_windows=tuple(PreferenceWindow.parse(w) for w in windows))


@dataclass(frozen=True)
class ScoredSlot:
    """
    A free slot with its heuristic score.

    ``order`` is the slot's position in the ranker's input and breaks ties.
    """
    slot: FreeSlot
    score: int
    order: int

    @property
    def start(self) -> DateTime:
        return self.slot.start

    @property
    def end(self) -> DateTime:
        return self.slot.end


@dataclass(frozen=True)
class CalendarEvent:
    """A concrete calendar event instance, tagged with where it came from."""
    start: DateTime
    end: DateTime
    source: str = "manual"
    title: str = ""

    def __post_init__(self):
        interval = TimeInterval(start=self.start, end=self.end)
        object.__setattr__(self, "start", interval.start)
        object.__setattr__(self, "end", interval.end)

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)


@dataclass(frozen=True)
class DateRange:
    """An inclusive range of calendar days."""
    start: Date
    end: Date

    def __post_init__(self):
        object.__setattr__(self, "start", as_date(self.start))
        object.__setattr__(self, "end", as_date(self.end))
        if self.start > self.end:
            raise InvalidIntervalError(
                f"Start date {self.start} must not be after end date {self.end}"
            )

    def days(self) -> List[Date]:
        """Return every calendar day in the range, both ends included."""
        days: List[Date] = []
        current = self.start
        while current <= self.end:
            days.append(current)
            current = current.add(days=1)
        return days

    def bounds(self, timezone: str = "UTC") -> TimeInterval:
        """Instants from local midnight of the first day to midnight after the last."""
        after_last = self.end.add(days=1)
        return TimeInterval(
            start=pendulum.datetime(self.start.year, self.start.month, self.start.day, tz=timezone),
            end=pendulum.datetime(after_last.year, after_last.month, after_last.day, tz=timezone),
        )


@dataclass(frozen=True)
class AvailabilityBlock:
    """
    A materialized free or occupied segment of one calendar day.

    Blocks are cache rows: they are regenerated wholesale, never patched.
    """
    user_id: str
    date: Date
    start_time: DateTime
    end_time: DateTime
    is_free: bool = True

    @property
    def key(self) -> Tuple[str, str, str, str]:
        """Identity used to skip duplicate rows on persistence."""
        return (
            self.user_id,
            self.date.isoformat(),
            self.start_time.in_timezone("UTC").to_iso8601_string(),
            self.end_time.in_timezone("UTC").to_iso8601_string(),
        )

    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60

    def format_display(self) -> str:
        """
        Format the block for display.
        Format: Weekday, DD.MM.YYYY | HH:MM – HH:MM (free|busy)
        """
        weekday = self.start_time.format("dddd")
        date_str = self.start_time.format("DD.MM.YYYY")
        time_str = f"{self.start_time.format('HH:mm')} – {self.end_time.format('HH:mm')}"
        status = "free" if self.is_free else "busy"
        return f"{weekday}, {date_str} | {time_str} ({status})"

