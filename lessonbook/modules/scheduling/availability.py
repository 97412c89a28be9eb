"""Weekly availability model.

Availability is stored as a mapping of weekday key to a list of
``{"start": "HH:MM", "end": "HH:MM"}`` intervals. All containment math is done
in minutes-of-day in one fixed, named timezone so the result does not depend on
the host clock or on DST offsets of the instants involved.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, tzinfo
from typing import Any

WEEKDAY_ORDER: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_DAILY_AVAILABILITY = {"start": "07:00", "end": "21:00"}

_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")

WeeklyAvailability = dict[str, list[dict[str, str]]]


def default_weekly_availability() -> WeeklyAvailability:
    return {day: [dict(DEFAULT_DAILY_AVAILABILITY)] for day in WEEKDAY_ORDER}


def time_string_to_minutes(value: Any) -> int | None:
    """Parse `HH:MM` into minutes after midnight, None when malformed."""
    if not isinstance(value, str):
        return None
    match = _TIME_PATTERN.match(value)
    if match is None:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def minutes_to_time_string(total_minutes: int) -> str:
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def _merge_intervals(intervals: list[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            previous_start, previous_end = merged[-1]
            merged[-1] = (previous_start, max(previous_end, end))
        else:
            merged.append((start, end))
    return merged


def sanitize_weekly_availability(raw: Any) -> WeeklyAvailability:
    """Drop malformed entries, then sort and merge each day's intervals.

    Days without a single valid interval are omitted from the result, which
    makes them unavailable.
    """
    if not isinstance(raw, Mapping):
        return {}

    availability: WeeklyAvailability = {}
    for day in WEEKDAY_ORDER:
        entries = raw.get(day)
        if not isinstance(entries, list):
            continue

        intervals: list[tuple[int, int]] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue
            start = time_string_to_minutes(entry.get("start"))
            end = time_string_to_minutes(entry.get("end"))
            if start is None or end is None or start >= end:
                continue
            intervals.append((start, end))

        if intervals:
            availability[day] = [
                {"start": minutes_to_time_string(start), "end": minutes_to_time_string(end)}
                for start, end in _merge_intervals(intervals)
            ]
    return availability


def weekday_key(moment: datetime, tz: tzinfo) -> str:
    return WEEKDAY_ORDER[moment.astimezone(tz).weekday()]


def minutes_of_day(moment: datetime, tz: tzinfo) -> int:
    local = moment.astimezone(tz)
    return local.hour * 60 + local.minute


def is_within_availability(
    start: datetime,
    end: datetime,
    availability: Mapping[str, list[Mapping[str, str]]],
    tz: tzinfo,
) -> bool:
    """Return True when [start, end] sits inside one interval of its weekday."""
    local_start = start.astimezone(tz)
    local_end = end.astimezone(tz)
    if local_start.date() != local_end.date():
        return False

    day_intervals = availability.get(weekday_key(start, tz)) or []
    if not day_intervals:
        return False

    start_minutes = minutes_of_day(start, tz)
    end_minutes = minutes_of_day(end, tz)
    # A partial minute on the end counts as the whole minute.
    if local_end.second or local_end.microsecond:
        end_minutes += 1
    for interval in day_intervals:
        interval_start = time_string_to_minutes(interval.get("start"))
        interval_end = time_string_to_minutes(interval.get("end"))
        if interval_start is None or interval_end is None:
            continue
        if start_minutes >= interval_start and end_minutes <= interval_end:
            return True
    return False
