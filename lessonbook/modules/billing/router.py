"""Billing API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from lessonbook.core.security import Principal, get_current_principal
from lessonbook.modules.admin.service import require_admin
from lessonbook.modules.billing.schemas import PackageCreate, PackageRead
from lessonbook.modules.billing.service import BillingService, get_billing_service
from lessonbook.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/billing", tags=["billing"])


@router.post("/packages", response_model=PackageRead, status_code=status.HTTP_201_CREATED)
async def activate_package(
    payload: PackageCreate,
    service: BillingService = Depends(get_billing_service),
    current_user: Principal = Depends(require_admin),
) -> PackageRead:
    """Activate a lesson package for a student (admin only)."""
    package = await service.activate_package(payload, current_user)
    return PackageRead.model_validate(package)


@router.get("/packages/students/{student_id}", response_model=Page[PackageRead])
async def list_student_packages(
    student_id: UUID,
    pagination=Depends(get_pagination_params),
    service: BillingService = Depends(get_billing_service),
    current_user: Principal = Depends(get_current_principal),
) -> Page[PackageRead]:
    """List packages for a specific student."""
    items, total = await service.list_student_packages(
        student_id=student_id,
        actor=current_user,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [PackageRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/packages/students/{student_id}/active", response_model=PackageRead)
async def get_active_package(
    student_id: UUID,
    service: BillingService = Depends(get_billing_service),
    current_user: Principal = Depends(get_current_principal),
) -> PackageRead:
    """Return the student's active package."""
    package = await service.get_active_package(student_id, current_user)
    return PackageRead.model_validate(package)


@router.post("/packages/{package_id}/remove", response_model=PackageRead)
async def remove_package(
    package_id: UUID,
    service: BillingService = Depends(get_billing_service),
    current_user: Principal = Depends(require_admin),
) -> PackageRead:
    """Revoke remaining credits of an active package (admin)."""
    package = await service.remove_package(package_id, current_user)
    return PackageRead.model_validate(package)


@router.post("/packages/students/{student_id}/active/remove", response_model=PackageRead)
async def remove_active_package(
    student_id: UUID,
    service: BillingService = Depends(get_billing_service),
    current_user: Principal = Depends(require_admin),
) -> PackageRead:
    """Revoke remaining credits of the student's active package (admin)."""
    package = await service.remove_active_package(student_id, current_user)
    return PackageRead.model_validate(package)
