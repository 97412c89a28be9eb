"""Lessons API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from lessonbook.core.security import Principal, get_current_principal
from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.admin.service import get_booking_policy, require_admin
from lessonbook.modules.lessons.schemas import (
    LessonCancelRequest,
    LessonNoShowRequest,
    LessonRead,
    LessonStatusUpdate,
    LessonTimeUpdate,
)
from lessonbook.modules.lessons.service import LessonsService, get_lessons_service
from lessonbook.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("/my", response_model=Page[LessonRead])
async def list_my_lessons(
    pagination=Depends(get_pagination_params),
    service: LessonsService = Depends(get_lessons_service),
    current_user: Principal = Depends(get_current_principal),
) -> Page[LessonRead]:
    """List own lessons (every lesson for admin)."""
    items, total = await service.list_lessons(
        actor=current_user,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [LessonRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.post("/{lesson_id}/cancel", response_model=LessonRead)
async def cancel_lesson(
    lesson_id: UUID,
    payload: LessonCancelRequest,
    service: LessonsService = Depends(get_lessons_service),
    policy: BookingPolicy = Depends(get_booking_policy),
    current_user: Principal = Depends(get_current_principal),
) -> LessonRead:
    """Cancel a booked lesson and return its credit."""
    lesson = await service.cancel_lesson(lesson_id, current_user, payload.reason, policy)
    return LessonRead.model_validate(lesson)


@router.patch("/{lesson_id}/status", response_model=LessonRead)
async def set_lesson_status(
    lesson_id: UUID,
    payload: LessonStatusUpdate,
    service: LessonsService = Depends(get_lessons_service),
    policy: BookingPolicy = Depends(get_booking_policy),
    current_user: Principal = Depends(require_admin),
) -> LessonRead:
    lesson = await service.set_status(lesson_id, payload.status, current_user, policy)
    return LessonRead.model_validate(lesson)


@router.post("/{lesson_id}/no-show", response_model=LessonRead)
async def register_no_show(
    lesson_id: UUID,
    payload: LessonNoShowRequest,
    service: LessonsService = Depends(get_lessons_service),
    policy: BookingPolicy = Depends(get_booking_policy),
    current_user: Principal = Depends(require_admin),
) -> LessonRead:
    """Record a no-show, charging or refunding the credit."""
    lesson = await service.register_no_show(lesson_id, payload.refund_credit, current_user, policy)
    return LessonRead.model_validate(lesson)


@router.patch("/{lesson_id}/time", response_model=LessonRead)
async def reschedule_lesson(
    lesson_id: UUID,
    payload: LessonTimeUpdate,
    service: LessonsService = Depends(get_lessons_service),
    policy: BookingPolicy = Depends(get_booking_policy),
    current_user: Principal = Depends(require_admin),
) -> LessonRead:
    """Move a booked lesson to another time (admin)."""
    lesson = await service.reschedule_lesson(
        lesson_id,
        payload.starts_at,
        payload.ends_at,
        policy,
        current_user,
    )
    return LessonRead.model_validate(lesson)
