"""Admin API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lessonbook.core.security import Principal, get_current_principal
from lessonbook.modules.admin.schemas import AdminSettingsRead, AdminSettingsUpdate
from lessonbook.modules.admin.service import AdminService, get_admin_service, require_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/settings", response_model=AdminSettingsRead)
async def get_settings(
    service: AdminService = Depends(get_admin_service),
    _: Principal = Depends(get_current_principal),
) -> AdminSettingsRead:
    """Return effective booking settings."""
    return await service.get_settings()


@router.put("/settings", response_model=AdminSettingsRead)
async def update_settings(
    payload: AdminSettingsUpdate,
    service: AdminService = Depends(get_admin_service),
    current_user: Principal = Depends(require_admin),
) -> AdminSettingsRead:
    """Replace booking settings (admin)."""
    return await service.update_settings(payload, current_user)
