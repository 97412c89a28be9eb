"""Admin repository layer."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.modules.admin.models import ADMIN_SETTINGS_ROW_ID, AdminSettings


class AdminRepository:
    """DB operations for tutor settings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_settings(self) -> AdminSettings | None:
        stmt = select(AdminSettings).where(AdminSettings.id == ADMIN_SETTINGS_ROW_ID)
        return await self.session.scalar(stmt)

    async def upsert_settings(
        self,
        default_duration_min: int,
        buffer_min: int,
        cancel_window_hours: int,
        weekly_availability: dict | None,
    ) -> AdminSettings:
        stmt = (
            select(AdminSettings)
            .where(AdminSettings.id == ADMIN_SETTINGS_ROW_ID)
            .with_for_update()
        )
        row = await self.session.scalar(stmt)
        if row is None:
            row = AdminSettings(id=ADMIN_SETTINGS_ROW_ID)
            self.session.add(row)

        row.default_duration_min = default_duration_min
        row.buffer_min = buffer_min
        row.cancel_window_hours = cancel_window_hours
        if weekly_availability is not None:
            row.weekly_availability = weekly_availability
        await self.session.flush()
        return row
