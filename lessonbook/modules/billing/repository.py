"""Billing repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.core.enums import PackageStatusEnum
from lessonbook.modules.billing.models import StudentPackage


class BillingRepository:
    """DB access methods for student packages."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_package(self, student_id: UUID, lessons_total: int) -> StudentPackage:
        package = StudentPackage(
            student_id=student_id,
            lessons_total=lessons_total,
            lessons_used=0,
            status=PackageStatusEnum.ACTIVE,
        )
        self.session.add(package)
        await self.session.flush()
        return package

    async def get_package_by_id(self, package_id: UUID, for_update: bool = False) -> StudentPackage | None:
        stmt = select(StudentPackage).where(StudentPackage.id == package_id)
        if for_update:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def get_active_package(self, student_id: UUID, for_update: bool = False) -> StudentPackage | None:
        stmt = (
            select(StudentPackage)
            .where(
                StudentPackage.student_id == student_id,
                StudentPackage.status == PackageStatusEnum.ACTIVE,
            )
            .order_by(StudentPackage.created_at.desc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def list_packages_by_student(
        self,
        student_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[StudentPackage], int]:
        base_stmt: Select[tuple[StudentPackage]] = select(StudentPackage).where(
            StudentPackage.student_id == student_id,
        )
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(StudentPackage.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def set_credit_counters(
        self,
        package: StudentPackage,
        lessons_used: int,
        status: PackageStatusEnum,
    ) -> StudentPackage:
        package.lessons_used = lessons_used
        package.status = status
        await self.session.flush()
        return package
