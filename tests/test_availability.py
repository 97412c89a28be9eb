from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from fakes import FakeLessonsRepository
from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.scheduling.availability import (
    default_weekly_availability,
    is_within_availability,
    minutes_of_day,
    minutes_to_time_string,
    sanitize_weekly_availability,
    time_string_to_minutes,
    weekday_key,
)
from lessonbook.modules.scheduling.service import SchedulingService
from lessonbook.shared.exceptions import BusinessRuleException

ZURICH = ZoneInfo("Europe/Zurich")


def local(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=ZURICH)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("00:00", 0),
        ("07:30", 450),
        ("23:59", 1439),
        ("24:00", None),
        ("12:60", None),
        ("7:30", None),
        ("07:30:00", None),
        (None, None),
        (730, None),
    ],
)
def test_time_string_to_minutes(value: object, expected: int | None) -> None:
    assert time_string_to_minutes(value) == expected


def test_minutes_to_time_string_pads() -> None:
    assert minutes_to_time_string(65) == "01:05"


def test_sanitize_merges_sorts_and_drops_invalid_entries() -> None:
    raw = {
        "monday": [
            {"start": "13:00", "end": "15:00"},
            {"start": "08:00", "end": "10:00"},
            {"start": "09:30", "end": "11:00"},
            {"start": "11:00", "end": "12:00"},
            {"start": "16:00", "end": "16:00"},
            {"start": "25:00", "end": "26:00"},
            "08:00-09:00",
        ],
        "tuesday": [{"start": "18:00", "end": "17:00"}],
        "funday": [{"start": "08:00", "end": "09:00"}],
        "friday": "all day",
    }

    assert sanitize_weekly_availability(raw) == {
        "monday": [
            {"start": "08:00", "end": "12:00"},
            {"start": "13:00", "end": "15:00"},
        ],
    }


@pytest.mark.parametrize("raw", [None, [], "monday", 42])
def test_sanitize_non_mapping_input_yields_empty_availability(raw: object) -> None:
    assert sanitize_weekly_availability(raw) == {}


def test_weekday_and_minutes_use_application_timezone() -> None:
    # 23:30 UTC on Monday is already Tuesday 00:30 in Zurich.
    moment = datetime(2026, 3, 2, 23, 30, tzinfo=UTC)

    assert weekday_key(moment, ZURICH) == "tuesday"
    assert minutes_of_day(moment, ZURICH) == 30


def test_containment_inside_single_interval() -> None:
    availability = {"tuesday": [{"start": "09:00", "end": "12:00"}, {"start": "14:00", "end": "18:00"}]}

    assert is_within_availability(local(3, 9), local(3, 12), availability, ZURICH)
    assert is_within_availability(local(3, 14, 15), local(3, 15), availability, ZURICH)
    assert not is_within_availability(local(3, 11, 30), local(3, 14, 30), availability, ZURICH)
    assert not is_within_availability(local(3, 8, 45), local(3, 9, 30), availability, ZURICH)


def test_day_without_intervals_rejects_everything() -> None:
    availability = {"tuesday": [{"start": "09:00", "end": "12:00"}]}

    assert not is_within_availability(local(4, 9), local(4, 10), availability, ZURICH)


def test_window_spanning_midnight_is_rejected() -> None:
    availability = {
        day: [{"start": "00:00", "end": "23:59"}] for day in ("monday", "tuesday")
    }

    assert not is_within_availability(local(2, 23), local(3, 0, 30), availability, ZURICH)


def test_default_availability_covers_every_day() -> None:
    availability = default_weekly_availability()

    assert len(availability) == 7
    assert is_within_availability(local(8, 7), local(8, 21), availability, ZURICH)
    assert not is_within_availability(local(8, 6, 45), local(8, 7, 30), availability, ZURICH)


def test_ensure_within_availability_raises_readable_error() -> None:
    checker = SchedulingService(FakeLessonsRepository())
    policy = BookingPolicy(weekly_availability={"tuesday": [{"start": "09:00", "end": "12:00"}]})

    checker.ensure_within_availability(local(3, 10), local(3, 10, 45), policy)
    with pytest.raises(BusinessRuleException) as exc:
        checker.ensure_within_availability(local(3, 12), local(3, 12, 45), policy)
    assert "available hours" in exc.value.message


def test_end_with_seconds_past_interval_edge_is_rejected() -> None:
    availability = {"tuesday": [{"start": "09:00", "end": "21:00"}]}
    start = local(3, 20, 15)

    assert is_within_availability(start, local(3, 21), availability, ZURICH)
    assert not is_within_availability(start, local(3, 21).replace(second=30), availability, ZURICH)
    assert not is_within_availability(
        start,
        local(3, 21).replace(microsecond=1),
        availability,
        ZURICH,
    )
