"""Billing business logic layer: the lesson credit ledger."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.core.database import get_db_session
from lessonbook.core.enums import PackageStatusEnum
from lessonbook.core.metrics import record_credit_operation
from lessonbook.core.security import Principal
from lessonbook.modules.billing.models import StudentPackage
from lessonbook.modules.billing.repository import BillingRepository
from lessonbook.modules.billing.schemas import PackageCreate
from lessonbook.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NoCreditsAvailableException,
    NotFoundException,
    UnauthorizedException,
)

logger = logging.getLogger(__name__)


class BillingService:
    """Charge/refund operations on student packages.

    Every mutation re-reads the package row with FOR UPDATE so concurrent
    charges and refunds on the same package are serialized.
    """

    def __init__(self, repository: BillingRepository) -> None:
        self.repository = repository

    async def _get_locked_package(self, package_id: UUID) -> StudentPackage:
        package = await self.repository.get_package_by_id(package_id, for_update=True)
        if package is None:
            raise NotFoundException("Package not found")
        return package

    async def _next_status(self, package: StudentPackage) -> PackageStatusEnum:
        derived = package.derive_status()
        if derived != PackageStatusEnum.ACTIVE or package.status == PackageStatusEnum.ACTIVE:
            return derived

        # Re-activating an older package must not shadow the student's current one.
        current = await self.repository.get_active_package(package.student_id)
        if current is not None and current.id != package.id:
            return package.status
        return derived

    async def find_active_package(
        self,
        student_id: UUID,
        for_update: bool = False,
    ) -> StudentPackage | None:
        return await self.repository.get_active_package(student_id, for_update=for_update)

    async def charge_credit(self, package_id: UUID) -> StudentPackage:
        """Consume one credit from the package."""
        package = await self._get_locked_package(package_id)
        if package.lessons_total > 0 and package.lessons_used >= package.lessons_total:
            raise NoCreditsAvailableException(
                "No credits left in the package, please activate a new package",
            )

        package.lessons_used += 1
        status = await self._next_status(package)
        package = await self.repository.set_credit_counters(package, package.lessons_used, status)
        record_credit_operation("charge")
        logger.info(
            "Charged credit on package %s: used=%s/%s status=%s",
            package.id,
            package.lessons_used,
            package.lessons_total,
            package.status,
        )
        return package

    async def refund_credit(self, package_id: UUID) -> StudentPackage:
        """Return one credit to the package, never below zero used."""
        package = await self._get_locked_package(package_id)
        package.lessons_used = max(package.lessons_used - 1, 0)
        status = await self._next_status(package)
        package = await self.repository.set_credit_counters(package, package.lessons_used, status)
        record_credit_operation("refund")
        logger.info(
            "Refunded credit on package %s: used=%s/%s status=%s",
            package.id,
            package.lessons_used,
            package.lessons_total,
            package.status,
        )
        return package

    async def remove_package(self, package_id: UUID, actor: Principal) -> StudentPackage:
        """Revoke all remaining credits of an active package (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can remove packages")

        package = await self._get_locked_package(package_id)
        if package.status != PackageStatusEnum.ACTIVE:
            raise ConflictException("Only an active package can be removed")

        package = await self.repository.set_credit_counters(
            package,
            package.lessons_total,
            PackageStatusEnum.COMPLETED,
        )
        record_credit_operation("remove")
        logger.info("Package %s removed by %s", package.id, actor.id)
        return package

    async def remove_active_package(self, student_id: UUID, actor: Principal) -> StudentPackage:
        """Remove whatever package is currently active for the student."""
        package = await self.repository.get_active_package(student_id)
        if package is None:
            raise NotFoundException("The student has no active package")
        return await self.remove_package(package.id, actor)

    async def get_active_package(self, student_id: UUID, actor: Principal) -> StudentPackage:
        if not actor.is_admin and actor.id != student_id:
            raise UnauthorizedException("Access denied")
        package = await self.repository.get_active_package(student_id)
        if package is None:
            raise NotFoundException("The student has no active package")
        return package

    async def activate_package(self, payload: PackageCreate, actor: Principal) -> StudentPackage:
        """Grant a new active package (admin only).

        An exhausted active package is closed first; one that still has
        credits blocks the activation.
        """
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can activate lesson packages")

        current = await self.repository.get_active_package(payload.student_id, for_update=True)
        if current is not None:
            if current.lessons_left > 0:
                raise BusinessRuleException(
                    "The student already has an active package, its credits must be used first",
                )
            await self.repository.set_credit_counters(
                current,
                current.lessons_used,
                PackageStatusEnum.COMPLETED,
            )

        package = await self.repository.create_package(payload.student_id, payload.lessons_total)
        record_credit_operation("activate")
        logger.info(
            "Package %s with %s lessons activated for student %s",
            package.id,
            package.lessons_total,
            package.student_id,
        )
        return package

    async def list_student_packages(
        self,
        student_id: UUID,
        actor: Principal,
        limit: int,
        offset: int,
    ) -> tuple[list[StudentPackage], int]:
        """List packages for student."""
        if not actor.is_admin and actor.id != student_id:
            raise UnauthorizedException("Access denied")
        return await self.repository.list_packages_by_student(
            student_id=student_id,
            limit=limit,
            offset=offset,
        )


async def get_billing_service(session: AsyncSession = Depends(get_db_session)) -> BillingService:
    """Dependency provider for billing service."""
    return BillingService(BillingRepository(session))
