"""Lessons business logic layer: lesson life-cycle and its credit effects."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.core.database import get_db_session
from lessonbook.core.enums import (
    CREDIT_RELEASED_LESSON_STATUSES,
    LESSON_STATUS_TRANSITIONS,
    LessonStatusEnum,
)
from lessonbook.core.security import Principal
from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.billing.repository import BillingRepository
from lessonbook.modules.billing.service import BillingService
from lessonbook.modules.booking.repository import BookingRepository
from lessonbook.modules.lessons.models import Lesson
from lessonbook.modules.lessons.repository import LessonsRepository
from lessonbook.modules.scheduling.service import SchedulingService
from lessonbook.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)
from lessonbook.shared.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

ADMIN_CANCEL_REASON = "Cancelled by admin"
CANCEL_REASON_MAX_LENGTH = 500
ADMIN_STATUS_TARGETS = frozenset({LessonStatusEnum.COMPLETED, LessonStatusEnum.BOOKED})


class LessonsService:
    """Cancellation, status changes, no-shows and direct moves of lessons."""

    def __init__(
        self,
        repository: LessonsRepository,
        billing_service: BillingService,
        booking_repository: BookingRepository,
        scheduling_service: SchedulingService,
    ) -> None:
        self.repository = repository
        self.billing_service = billing_service
        self.booking_repository = booking_repository
        self.scheduling_service = scheduling_service

    async def _get_locked_lesson(self, lesson_id: UUID) -> Lesson:
        lesson = await self.repository.get_lesson_by_id(lesson_id, for_update=True)
        if lesson is None:
            raise NotFoundException("Lesson not found")
        return lesson

    async def _apply_status(
        self,
        lesson: Lesson,
        target: LessonStatusEnum,
        policy: BookingPolicy,
    ) -> Lesson:
        """Move the lesson and settle its credit.

        Leaving a credit-released status charges the package again, entering
        one refunds it. The charge happens before the lesson is touched so an
        exhausted package leaves the lesson as it was. A cancelled lesson only
        comes back when its slot is still free for the student.
        """
        if target not in LESSON_STATUS_TRANSITIONS[lesson.status]:
            raise ConflictException(f"Invalid lesson transition {lesson.status} -> {target}")

        if lesson.status == LessonStatusEnum.CANCELLED:
            await self.repository.lock_student(lesson.student_id)
            await self.scheduling_service.ensure_no_collision(
                student_id=lesson.student_id,
                starts_at=ensure_utc(lesson.starts_at),
                ends_at=ensure_utc(lesson.ends_at),
                policy=policy,
                ignore_lesson_id=lesson.id,
            )

        released_before = lesson.status in CREDIT_RELEASED_LESSON_STATUSES
        released_after = target in CREDIT_RELEASED_LESSON_STATUSES
        if lesson.student_package_id is not None:
            if released_before and not released_after:
                await self.billing_service.charge_credit(lesson.student_package_id)
            elif released_after and not released_before:
                await self.billing_service.refund_credit(lesson.student_package_id)

        previous = lesson.status
        lesson.status = target
        if previous == LessonStatusEnum.CANCELLED:
            lesson.cancellation_reason = None
            lesson.cancelled_at = None
            lesson.cancelled_by = None
        lesson = await self.repository.save(lesson)
        logger.info("Lesson %s moved %s -> %s", lesson.id, previous, target)
        return lesson

    async def cancel_lesson(
        self,
        lesson_id: UUID,
        actor: Principal,
        reason: str | None,
        policy: BookingPolicy,
    ) -> Lesson:
        """Cancel a booked lesson and return its credit.

        Students need a reason and must cancel at least `cancel_window_hours`
        before the start; the tutor may cancel any time.
        """
        lesson = await self._get_locked_lesson(lesson_id)
        if not actor.is_admin and lesson.student_id != actor.id:
            raise UnauthorizedException("Not authorized for this lesson")
        if lesson.status != LessonStatusEnum.BOOKED:
            raise ConflictException("Only booked lessons can be cancelled")

        cleaned = (reason or "").strip()
        now = utc_now()
        if actor.is_admin:
            cleaned = cleaned or ADMIN_CANCEL_REASON
        else:
            if not cleaned:
                raise BusinessRuleException("Please provide a reason for the cancellation")
            deadline = ensure_utc(lesson.starts_at) - timedelta(hours=policy.cancel_window_hours)
            if now > deadline:
                raise BusinessRuleException(
                    f"Lessons can only be cancelled up to {policy.cancel_window_hours} hours in advance",
                )

        if lesson.student_package_id is not None:
            await self.billing_service.refund_credit(lesson.student_package_id)

        lesson.status = LessonStatusEnum.CANCELLED
        lesson.cancellation_reason = cleaned[:CANCEL_REASON_MAX_LENGTH]
        lesson.cancelled_at = now
        lesson.cancelled_by = actor.id
        lesson = await self.repository.save(lesson)

        declined = await self.booking_repository.decline_pending_reschedules(lesson.id)
        logger.info(
            "Lesson %s cancelled by %s (%s pending reschedule requests declined)",
            lesson.id,
            actor.id,
            declined,
        )
        return lesson

    async def set_status(
        self,
        lesson_id: UUID,
        target: LessonStatusEnum,
        actor: Principal,
        policy: BookingPolicy,
    ) -> Lesson:
        """Mark a lesson completed or back to booked (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can change lesson status")
        if target not in ADMIN_STATUS_TARGETS:
            raise BusinessRuleException("Status can only be set to completed or booked")

        lesson = await self._get_locked_lesson(lesson_id)
        if lesson.status == target:
            return lesson
        return await self._apply_status(lesson, target, policy)

    async def register_no_show(
        self,
        lesson_id: UUID,
        refund_credit: bool,
        actor: Principal,
        policy: BookingPolicy,
    ) -> Lesson:
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can register no-shows")

        target = LessonStatusEnum.NO_SHOW_REFUNDED if refund_credit else LessonStatusEnum.NO_SHOW_CHARGED
        lesson = await self._get_locked_lesson(lesson_id)
        if lesson.status == target:
            return lesson
        return await self._apply_status(lesson, target, policy)

    async def reschedule_lesson(
        self,
        lesson_id: UUID,
        starts_at: datetime,
        ends_at: datetime | None,
        policy: BookingPolicy,
        actor: Principal,
    ) -> Lesson:
        """Move a booked lesson directly, without a request round-trip (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can move lessons directly")

        lesson = await self._get_locked_lesson(lesson_id)
        if lesson.status != LessonStatusEnum.BOOKED:
            raise ConflictException("Only booked lessons can be rescheduled")

        start = ensure_utc(starts_at)
        end = ensure_utc(ends_at) if ends_at is not None else start + timedelta(
            minutes=policy.default_duration_min,
        )
        await self.repository.lock_student(lesson.student_id)
        await self.scheduling_service.ensure_no_collision(
            student_id=lesson.student_id,
            starts_at=start,
            ends_at=end,
            policy=policy,
            ignore_lesson_id=lesson.id,
        )

        lesson.starts_at = start
        lesson.ends_at = end
        lesson = await self.repository.save(lesson)
        logger.info("Lesson %s moved to %s by %s", lesson.id, start.isoformat(), actor.id)
        return lesson

    async def list_lessons(
        self,
        actor: Principal,
        limit: int,
        offset: int,
    ) -> tuple[list[Lesson], int]:
        return await self.repository.list_lessons(
            student_id=None if actor.is_admin else actor.id,
            limit=limit,
            offset=offset,
        )


async def get_lessons_service(session: AsyncSession = Depends(get_db_session)) -> LessonsService:
    """Dependency provider for lessons service."""
    repository = LessonsRepository(session)
    return LessonsService(
        repository=repository,
        billing_service=BillingService(BillingRepository(session)),
        booking_repository=BookingRepository(session),
        scheduling_service=SchedulingService(repository),
    )
