"""Admin business logic layer."""

from __future__ import annotations

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.core.config import Settings, get_settings
from lessonbook.core.database import get_db_session
from lessonbook.core.security import Principal, get_current_principal
from lessonbook.modules.admin.models import AdminSettings
from lessonbook.modules.admin.repository import AdminRepository
from lessonbook.modules.admin.schemas import AdminSettingsRead, AdminSettingsUpdate, BookingPolicy
from lessonbook.modules.scheduling.availability import (
    default_weekly_availability,
    sanitize_weekly_availability,
)
from lessonbook.shared.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)


def build_policy(row: AdminSettings | None, settings: Settings) -> BookingPolicy:
    """Merge the stored settings row over environment defaults."""
    if row is None:
        return BookingPolicy(
            default_duration_min=settings.default_lesson_duration_minutes,
            buffer_min=settings.default_lesson_buffer_minutes,
            cancel_window_hours=settings.default_cancel_window_hours,
            min_lead_time_hours=settings.booking_min_lead_time_hours,
            slot_interval_minutes=settings.booking_slot_interval_minutes,
            timezone=settings.application_timezone,
            weekly_availability=default_weekly_availability(),
        )

    if row.weekly_availability is None:
        availability = default_weekly_availability()
    else:
        availability = sanitize_weekly_availability(row.weekly_availability)

    return BookingPolicy(
        default_duration_min=row.default_duration_min or settings.default_lesson_duration_minutes,
        buffer_min=(
            row.buffer_min if row.buffer_min is not None else settings.default_lesson_buffer_minutes
        ),
        cancel_window_hours=(
            row.cancel_window_hours
            if row.cancel_window_hours is not None
            else settings.default_cancel_window_hours
        ),
        min_lead_time_hours=settings.booking_min_lead_time_hours,
        slot_interval_minutes=settings.booking_slot_interval_minutes,
        timezone=settings.application_timezone,
        weekly_availability=availability,
    )


class AdminService:
    """Tutor settings service."""

    def __init__(self, repository: AdminRepository, settings: Settings | None = None) -> None:
        self.repository = repository
        self.settings = settings or get_settings()

    async def get_policy(self) -> BookingPolicy:
        """Load the current booking policy; fetched fresh for every operation."""
        return build_policy(await self.repository.get_settings(), self.settings)

    async def get_settings(self) -> AdminSettingsRead:
        row = await self.repository.get_settings()
        return self._to_read(build_policy(row, self.settings), row)

    async def update_settings(self, payload: AdminSettingsUpdate, actor: Principal) -> AdminSettingsRead:
        """Replace tutor settings (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can change booking settings")

        row = await self.repository.upsert_settings(
            default_duration_min=payload.default_duration_min,
            buffer_min=payload.buffer_min,
            cancel_window_hours=payload.cancel_window_hours,
            weekly_availability=payload.weekly_availability,
        )
        logger.info(
            "Admin settings updated by %s: duration=%s buffer=%s cancel_window=%s",
            actor.id,
            row.default_duration_min,
            row.buffer_min,
            row.cancel_window_hours,
        )
        return self._to_read(build_policy(row, self.settings), row)

    @staticmethod
    def _to_read(policy: BookingPolicy, row: AdminSettings | None) -> AdminSettingsRead:
        return AdminSettingsRead(
            **policy.model_dump(),
            updated_at=row.updated_at if row is not None else None,
        )


async def get_admin_service(session: AsyncSession = Depends(get_db_session)) -> AdminService:
    """Dependency provider for admin service."""
    return AdminService(AdminRepository(session))


async def get_booking_policy(service: AdminService = Depends(get_admin_service)) -> BookingPolicy:
    """Dependency provider for the per-request booking policy."""
    return await service.get_policy()


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Dependency that only lets the tutor through."""
    if not principal.is_admin:
        raise UnauthorizedException("Only admin can perform this action")
    return principal
