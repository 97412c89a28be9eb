"""Scheduling business logic: availability containment and collision checks."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.lessons.repository import LessonsRepository
from lessonbook.modules.scheduling.availability import is_within_availability
from lessonbook.shared.exceptions import BusinessRuleException, CollisionException
from lessonbook.shared.utils import format_window

logger = logging.getLogger(__name__)


class SchedulingService:
    """Validates candidate lesson windows against availability and other lessons."""

    def __init__(self, lessons_repository: LessonsRepository) -> None:
        self.lessons_repository = lessons_repository

    def ensure_within_availability(
        self,
        starts_at: datetime,
        ends_at: datetime,
        policy: BookingPolicy,
    ) -> None:
        if not is_within_availability(starts_at, ends_at, policy.weekly_availability, policy.tz):
            raise BusinessRuleException("The requested time is outside of the available hours")

    async def ensure_no_collision(
        self,
        student_id: UUID,
        starts_at: datetime,
        ends_at: datetime,
        policy: BookingPolicy,
        buffer_minutes: int | None = None,
        ignore_lesson_id: UUID | None = None,
    ) -> None:
        """Fail when another non-cancelled lesson sits within the buffered window.

        Bounds are inclusive: a lesson ending exactly `buffer` minutes before
        the candidate start still conflicts.
        """
        if ends_at <= starts_at:
            raise BusinessRuleException("Lesson end must be after its start")

        effective_buffer = policy.buffer_min if buffer_minutes is None else buffer_minutes
        effective_buffer = max(0, effective_buffer)
        buffer = timedelta(minutes=effective_buffer)

        clash = await self.lessons_repository.find_overlapping_lesson(
            student_id=student_id,
            window_start=starts_at - buffer,
            window_end=ends_at + buffer,
            ignore_lesson_id=ignore_lesson_id,
        )
        if clash is None:
            return

        logger.info(
            "Collision for student %s: candidate %s-%s clashes with lesson %s",
            student_id,
            starts_at.isoformat(),
            ends_at.isoformat(),
            clash.id,
        )
        buffer_suffix = f" (including {effective_buffer} min buffer)" if effective_buffer > 0 else ""
        raise CollisionException(
            f"The time window collides{buffer_suffix} with "
            f"{format_window(clash.starts_at, clash.ends_at, policy.tz)}",
        )

