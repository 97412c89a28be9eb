"""Scheduling API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.admin.service import get_booking_policy
from lessonbook.modules.scheduling.schemas import AvailabilityRead

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.get("/availability", response_model=AvailabilityRead)
async def get_weekly_availability(
    policy: BookingPolicy = Depends(get_booking_policy),
) -> AvailabilityRead:
    """Return the tutor's weekly open hours."""
    return AvailabilityRead(
        timezone=policy.timezone,
        default_duration_min=policy.default_duration_min,
        slot_interval_minutes=policy.slot_interval_minutes,
        weekly_availability=policy.weekly_availability,
    )
