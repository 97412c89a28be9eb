"""Lessons repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.core.database import acquire_advisory_xact_lock
from lessonbook.core.enums import LessonStatusEnum
from lessonbook.modules.lessons.models import Lesson


class LessonsRepository:
    """DB operations for lessons domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def lock_student(self, student_id: UUID) -> None:
        await acquire_advisory_xact_lock(self.session, student_id)

    async def create_lesson(
        self,
        student_id: UUID,
        starts_at: datetime,
        ends_at: datetime,
        student_package_id: UUID | None,
    ) -> Lesson:
        lesson = Lesson(
            student_id=student_id,
            student_package_id=student_package_id,
            starts_at=starts_at,
            ends_at=ends_at,
            status=LessonStatusEnum.BOOKED,
        )
        self.session.add(lesson)
        await self.session.flush()
        return lesson

    async def get_lesson_by_id(self, lesson_id: UUID, for_update: bool = False) -> Lesson | None:
        stmt = select(Lesson).where(Lesson.id == lesson_id)
        if for_update:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def find_overlapping_lesson(
        self,
        student_id: UUID,
        window_start: datetime,
        window_end: datetime,
        ignore_lesson_id: UUID | None = None,
    ) -> Lesson | None:
        stmt = select(Lesson).where(
            Lesson.student_id == student_id,
            Lesson.status != LessonStatusEnum.CANCELLED,
            Lesson.starts_at <= window_end,
            Lesson.ends_at >= window_start,
        )
        if ignore_lesson_id is not None:
            stmt = stmt.where(Lesson.id != ignore_lesson_id)
        stmt = stmt.order_by(Lesson.starts_at.asc()).limit(1)
        return await self.session.scalar(stmt)

    async def list_lessons(
        self,
        student_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Lesson], int]:
        base_stmt: Select[tuple[Lesson]] = select(Lesson)
        if student_id is not None:
            base_stmt = base_stmt.where(Lesson.student_id == student_id)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Lesson.starts_at.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def save(self, lesson: Lesson) -> Lesson:
        await self.session.flush()
        return lesson
