"""
Tests for the common free time finder.
"""

import random

import pendulum

from groupavailability.domain.free_time import find_common_free_time
from groupavailability.domain.intervals import merge_intervals
from groupavailability.domain.models import ParticipantSchedule, TimeInterval


def _interval(start: str, end: str, day: str = "2024-11-25") -> TimeInterval:
    return TimeInterval(
        start=pendulum.parse(f"{day} {start}"),
        end=pendulum.parse(f"{day} {end}"),
    )


def _schedule(participant_id, *busy):
    return ParticipantSchedule(participant_id=participant_id, busy_intervals=list(busy))


class TestFindCommonFreeTime:
    """Tests for find_common_free_time."""

    def test_single_participant(self):
        """One busy hour splits the range into two free slots."""
        slots = find_common_free_time(
            [_schedule("alice", _interval("09:00", "10:00"))],
            _interval("08:00", "12:00"),
            min_duration_minutes=30,
        )

        assert slots == [_interval("08:00", "09:00"), _interval("10:00", "12:00")]

    def test_overlapping_participants(self):
        """Busy time of any participant blocks the group."""
        slots = find_common_free_time(
            [
                _schedule("alice", _interval("09:00", "11:00")),
                _schedule("bob", _interval("10:30", "12:00")),
            ],
            _interval("08:00", "14:00"),
            min_duration_minutes=30,
        )

        assert slots == [_interval("08:00", "09:00"), _interval("12:00", "14:00")]

    def test_no_busy_intervals(self):
        search_range = _interval("08:00", "09:00")

        assert find_common_free_time([], search_range, 30) == [search_range]
        assert find_common_free_time([], search_range, 90) == []

    def test_participants_without_busy_time(self):
        search_range = _interval("08:00", "09:00")

        slots = find_common_free_time([_schedule("alice"), _schedule("bob")], search_range)

        assert slots == [search_range]

    def test_minimum_duration_filter(self):
        """Gaps shorter than the minimum are dropped."""
        schedules = [
            _schedule(
                "alice",
                _interval("09:00", "09:45"),
                _interval("10:00", "17:00"),
            )
        ]
        search_range = _interval("09:00", "17:00")

        assert find_common_free_time(schedules, search_range, 30) == []
        assert find_common_free_time(schedules, search_range, 15) == [_interval("09:45", "10:00")]

    def test_fractional_gap_below_minimum(self):
        schedules = [_schedule(
            "alice",
            TimeInterval(
                start=pendulum.parse("2024-11-25 08:00"),
                end=pendulum.parse("2024-11-25 08:30:30"),
            ),
        )]

        slots = find_common_free_time(schedules, _interval("08:00", "09:00"), 30)

        assert slots == []

    def test_non_positive_minimum_keeps_every_gap(self):
        schedules = [_schedule(
            "alice",
            _interval("09:00", "09:59"),
        )]

        slots = find_common_free_time(schedules, _interval("09:00", "10:00"), 0)

        assert slots == [_interval("09:59", "10:00")]
        assert find_common_free_time(schedules, _interval("09:00", "10:00"), -5) == slots

    def test_busy_before_range_adds_no_leading_gap(self):
        slots = find_common_free_time(
            [_schedule("alice", _interval("06:00", "09:00"))],
            _interval("08:00", "12:00"),
        )

        assert slots == [_interval("09:00", "12:00")]

    def test_busy_after_range_does_not_extend_results(self):
        slots = find_common_free_time(
            [_schedule("alice", _interval("13:00", "14:00"))],
            _interval("08:00", "12:00"),
        )

        assert slots == [_interval("08:00", "12:00")]

    def test_busy_covering_range(self):
        slots = find_common_free_time(
            [_schedule("alice", _interval("07:00", "13:00"))],
            _interval("08:00", "12:00"),
        )

        assert slots == []

    def test_zero_length_busy_interval_does_not_split_slot(self):
        slots = find_common_free_time(
            [_schedule("alice", _interval("10:00", "10:00"))],
            _interval("08:00", "12:00"),
        )

        assert slots == [_interval("08:00", "12:00")]

    def test_unsorted_input_and_deterministic_output(self):
        schedules = [
            _schedule("alice", _interval("15:00", "16:00"), _interval("09:00", "10:00")),
            _schedule("bob", _interval("11:00", "12:00")),
        ]
        search_range = _interval("08:00", "18:00")

        first = find_common_free_time(schedules, search_range)
        second = find_common_free_time(schedules, search_range)

        assert first == second
        assert [slot.start for slot in first] == sorted(slot.start for slot in first)
        assert first == [
            _interval("08:00", "09:00"),
            _interval("10:00", "11:00"),
            _interval("12:00", "15:00"),
            _interval("16:00", "18:00"),
        ]

    def test_free_and_busy_time_partition_the_range(self):
        """Free slots never touch busy time, and together they cover the range."""
        rng = random.Random(5)
        midnight = pendulum.parse("2024-11-25 00:00")
        schedules = []
        for participant in range(4):
            busy = []
            for _ in range(8):
                start = rng.randrange(0, 22 * 60)
                busy.append(TimeInterval(
                    start=midnight.add(minutes=start),
                    end=midnight.add(minutes=start + rng.randrange(5, 120)),
                ))
            schedules.append(_schedule(f"p{participant}", *busy))
        search_range = _interval("06:00", "20:00")

        free = find_common_free_time(schedules, search_range, min_duration_minutes=0)
        busy = merge_intervals(
            clipped
            for schedule in schedules
            for interval in schedule.busy_intervals
            if (clipped := interval.clip_to(search_range)) is not None
        )

        for slot in free:
            assert slot.duration_minutes() > 0
            for busy_interval in busy:
                assert not slot.overlaps(busy_interval)

        total = sum(s.duration_minutes() for s in free) + sum(b.duration_minutes() for b in busy)
        assert total == search_range.duration_minutes()

    def test_minimum_duration_is_enforced(self):
        rng = random.Random(9)
        midnight = pendulum.parse("2024-11-25 00:00")
        busy = []
        for _ in range(30):
            start = rng.randrange(0, 22 * 60)
            busy.append(TimeInterval(
                start=midnight.add(minutes=start),
                end=midnight.add(minutes=start + rng.randrange(5, 40)),
            ))

        free = find_common_free_time([_schedule("alice", *busy)], _interval("00:00", "23:59"), 45)

        assert all(slot.duration_minutes() >= 45 for slot in free)
