"""Admin schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lessonbook.modules.scheduling.availability import (
    default_weekly_availability,
    sanitize_weekly_availability,
)


class IntervalRead(BaseModel):
    start: str
    end: str


class AdminSettingsUpdate(BaseModel):
    """Update tutor booking configuration."""

    default_duration_min: int = Field(gt=0, le=600)
    buffer_min: int = Field(ge=0, le=600)
    cancel_window_hours: int = Field(ge=0, le=24 * 14)
    weekly_availability: dict[str, Any] | None = None

    @field_validator("weekly_availability", mode="before")
    @classmethod
    def clean_weekly_availability(cls, value: object) -> dict[str, Any] | None:
        """Store only well-formed, merged intervals; None keeps the stored hours."""
        if value is None:
            return None
        return sanitize_weekly_availability(value)


class AdminSettingsRead(BaseModel):
    """Effective tutor configuration, defaults already applied."""

    default_duration_min: int
    buffer_min: int
    cancel_window_hours: int
    min_lead_time_hours: int
    slot_interval_minutes: int
    timezone: str
    weekly_availability: dict[str, list[IntervalRead]]
    updated_at: datetime | None = None


class BookingPolicy(BaseModel):
    """Snapshot of the rules every booking validation runs against.

    Built once per operation from the stored admin settings and passed
    explicitly into the scheduling, booking and lesson services.
    """

    model_config = ConfigDict(frozen=True)

    default_duration_min: int = 45
    buffer_min: int = 30
    cancel_window_hours: int = 24
    min_lead_time_hours: int = 6
    slot_interval_minutes: int = 15
    timezone: str = "Europe/Zurich"
    weekly_availability: dict[str, list[dict[str, str]]] = Field(default_factory=default_weekly_availability)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
