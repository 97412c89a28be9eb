"""Lessons ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from lessonbook.core.database import Base, BaseModelMixin, enum_values
from lessonbook.core.enums import LessonStatusEnum


class Lesson(BaseModelMixin, Base):
    """Scheduled one-on-one session between the tutor and a student."""

    __tablename__ = "lessons"
    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="window_ordered"),
        Index("ix_lessons_student_id_starts_at", "student_id", "starts_at"),
    )

    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    student_package_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("student_packages.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[LessonStatusEnum] = mapped_column(
        SAEnum(
            LessonStatusEnum,
            name="lesson_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=LessonStatusEnum.BOOKED,
        nullable=False,
        index=True,
    )
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
