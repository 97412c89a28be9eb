"""Billing schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lessonbook.core.enums import PackageStatusEnum


class PackageCreate(BaseModel):
    """Grant a lesson package to a student."""

    student_id: UUID
    lessons_total: int = Field(ge=1, le=200)


class PackageRead(BaseModel):
    """Student package response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    lessons_total: int
    lessons_used: int
    lessons_left: int
    status: PackageStatusEnum
    created_at: datetime
    updated_at: datetime
