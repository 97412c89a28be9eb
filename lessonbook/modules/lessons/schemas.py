"""Lessons schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lessonbook.core.enums import LessonStatusEnum


class LessonCancelRequest(BaseModel):
    """Cancel lesson request."""

    reason: str | None = Field(default=None, max_length=2000)


class LessonStatusUpdate(BaseModel):
    """Administrative status change."""

    status: LessonStatusEnum


class LessonNoShowRequest(BaseModel):
    refund_credit: bool = False


class LessonTimeUpdate(BaseModel):
    """Direct move of a booked lesson."""

    starts_at: datetime
    ends_at: datetime | None = None


class LessonRead(BaseModel):
    """Lesson response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    student_package_id: UUID | None
    starts_at: datetime
    ends_at: datetime
    status: LessonStatusEnum
    cancellation_reason: str | None
    cancelled_at: datetime | None
    cancelled_by: UUID | None
    created_at: datetime
    updated_at: datetime
