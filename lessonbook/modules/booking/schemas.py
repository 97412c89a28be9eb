"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from lessonbook.core.enums import (
    BookingDirectionEnum,
    BookingKindEnum,
    BookingRequestStatusEnum,
)
from lessonbook.modules.lessons.schemas import LessonRead

MESSAGE_MAX_LENGTH = 500


def _clean_message(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    return cleaned[:MESSAGE_MAX_LENGTH]


class BookingRequestCreate(BaseModel):
    """Propose a new lesson or a new time for an existing one."""

    student_id: UUID | None = None
    starts_at: datetime
    ends_at: datetime | None = None
    message: str | None = None
    kind: BookingKindEnum = BookingKindEnum.BOOKING
    lesson_id: UUID | None = None

    @field_validator("message")
    @classmethod
    def clean_message(cls, value: str | None) -> str | None:
        return _clean_message(value)

    @model_validator(mode="after")
    def check_lesson_reference(self) -> BookingRequestCreate:
        if self.kind == BookingKindEnum.RESCHEDULE and self.lesson_id is None:
            raise ValueError("lesson_id is required for reschedule requests")
        if self.kind == BookingKindEnum.BOOKING and self.lesson_id is not None:
            raise ValueError("lesson_id is only allowed for reschedule requests")
        return self


class BookingCounterCreate(BaseModel):
    """Counter-proposal for a pending request."""

    starts_at: datetime
    ends_at: datetime | None = None
    message: str | None = None

    @field_validator("message")
    @classmethod
    def clean_message(cls, value: str | None) -> str | None:
        return _clean_message(value)


class BookingRequestRead(BaseModel):
    """Booking request response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    requester_id: UUID | None
    direction: BookingDirectionEnum
    kind: BookingKindEnum
    status: BookingRequestStatusEnum
    proposed_starts_at: datetime
    proposed_ends_at: datetime
    message: str | None
    lesson_id: UUID | None
    counter_of: UUID | None
    created_at: datetime
    updated_at: datetime


class BookingAcceptRead(BaseModel):
    request: BookingRequestRead
    lesson: LessonRead
