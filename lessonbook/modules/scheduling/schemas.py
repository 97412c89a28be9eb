"""Scheduling schemas."""

from __future__ import annotations

from pydantic import BaseModel

from lessonbook.modules.admin.schemas import IntervalRead


class AvailabilityRead(BaseModel):
    """Weekly availability response schema."""

    timezone: str
    default_duration_min: int
    slot_interval_minutes: int
    weekly_availability: dict[str, list[IntervalRead]]
