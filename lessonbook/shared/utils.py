"""Shared utility functions."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_window(start: datetime, end: datetime, tz: tzinfo) -> str:
    """Render a lesson window as `dd.mm HH:MM–HH:MM` in the given timezone."""
    local_start = start.astimezone(tz)
    local_end = end.astimezone(tz)
    return f"{local_start:%d.%m %H:%M}–{local_end:%H:%M}"
