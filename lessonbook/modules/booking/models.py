"""Booking ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from lessonbook.core.database import Base, BaseModelMixin, enum_values
from lessonbook.core.enums import BookingDirectionEnum, BookingKindEnum, BookingRequestStatusEnum


class BookingRequest(BaseModelMixin, Base):
    """Proposed lesson window awaiting an answer from the other party."""

    __tablename__ = "booking_requests"
    __table_args__ = (
        CheckConstraint("proposed_ends_at > proposed_starts_at", name="window_ordered"),
        CheckConstraint("kind <> 'reschedule' OR lesson_id IS NOT NULL", name="reschedule_has_lesson"),
        Index(
            "uq_booking_requests_pending_reschedule_lesson_id",
            "lesson_id",
            unique=True,
            postgresql_where=text("status = 'pending' AND kind = 'reschedule'"),
        ),
    )

    student_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    requester_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    direction: Mapped[BookingDirectionEnum] = mapped_column(
        SAEnum(
            BookingDirectionEnum,
            name="booking_direction_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        nullable=False,
    )
    kind: Mapped[BookingKindEnum] = mapped_column(
        SAEnum(
            BookingKindEnum,
            name="booking_kind_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=BookingKindEnum.BOOKING,
        nullable=False,
    )
    status: Mapped[BookingRequestStatusEnum] = mapped_column(
        SAEnum(
            BookingRequestStatusEnum,
            name="booking_request_status_enum",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=BookingRequestStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    proposed_starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    proposed_ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)

    lesson_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("lessons.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    counter_of: Mapped[UUID | None] = mapped_column(
        ForeignKey("booking_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
