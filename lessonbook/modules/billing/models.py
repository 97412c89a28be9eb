"""Billing ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, Index, Integer, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from lessonbook.core.database import Base, BaseModelMixin, enum_values
from lessonbook.core.enums import PackageStatusEnum


class StudentPackage(BaseModelMixin, Base):
    """Prepaid bundle of lesson credits owned by one student."""

    __tablename__ = "student_packages"
    __table_args__ = (
        CheckConstraint("lessons_total >= 0", name="lessons_total_non_negative"),
        CheckConstraint("lessons_used >= 0", name="lessons_used_non_negative"),
        Index(
            "uq_student_packages_active_student_id",
            "student_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
        ),
    )

    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    lessons_total: Mapped[int] = mapped_column(Integer, nullable=False)
    lessons_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[PackageStatusEnum] = mapped_column(
        SAEnum(
            PackageStatusEnum,
            name="package_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=PackageStatusEnum.ACTIVE,
        nullable=False,
    )

    @property
    def lessons_left(self) -> int:
        return max(self.lessons_total - self.lessons_used, 0)

    def derive_status(self) -> PackageStatusEnum:
        """Status implied by the credit counters."""
        if self.lessons_total > 0 and self.lessons_used >= self.lessons_total:
            return PackageStatusEnum.COMPLETED
        return PackageStatusEnum.ACTIVE
