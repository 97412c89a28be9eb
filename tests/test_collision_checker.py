from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from fakes import FakeLessonsRepository, make_lesson
from lessonbook.core.enums import LessonStatusEnum
from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.scheduling.service import SchedulingService
from lessonbook.shared.exceptions import BusinessRuleException, CollisionException

LESSON_START = datetime(2026, 3, 3, 9, 0, tzinfo=UTC)
LESSON_END = LESSON_START + timedelta(minutes=45)
POLICY = BookingPolicy(buffer_min=30)


def make_checker(*lessons) -> SchedulingService:
    return SchedulingService(FakeLessonsRepository(list(lessons)))


@pytest.mark.asyncio
async def test_window_inside_buffer_collides() -> None:
    student_id = uuid4()
    checker = make_checker(make_lesson(student_id, LESSON_START, LESSON_END))

    with pytest.raises(CollisionException):
        await checker.ensure_no_collision(
            student_id,
            LESSON_END + timedelta(minutes=15),
            LESSON_END + timedelta(minutes=60),
            POLICY,
        )


@pytest.mark.asyncio
async def test_window_touching_buffer_edge_collides() -> None:
    student_id = uuid4()
    checker = make_checker(make_lesson(student_id, LESSON_START, LESSON_END))

    with pytest.raises(CollisionException):
        await checker.ensure_no_collision(
            student_id,
            LESSON_END + timedelta(minutes=30),
            LESSON_END + timedelta(minutes=75),
            POLICY,
        )


@pytest.mark.asyncio
async def test_window_beyond_buffer_is_free() -> None:
    student_id = uuid4()
    checker = make_checker(make_lesson(student_id, LESSON_START, LESSON_END))

    await checker.ensure_no_collision(
        student_id,
        LESSON_END + timedelta(minutes=31),
        LESSON_END + timedelta(minutes=76),
        POLICY,
    )
    await checker.ensure_no_collision(
        student_id,
        LESSON_START - timedelta(minutes=76),
        LESSON_START - timedelta(minutes=31),
        POLICY,
    )


@pytest.mark.asyncio
async def test_explicit_buffer_overrides_policy_and_negative_clamps_to_zero() -> None:
    student_id = uuid4()
    checker = make_checker(make_lesson(student_id, LESSON_START, LESSON_END))

    await checker.ensure_no_collision(
        student_id,
        LESSON_END + timedelta(minutes=1),
        LESSON_END + timedelta(minutes=46),
        POLICY,
        buffer_minutes=-15,
    )
    with pytest.raises(CollisionException) as exc:
        await checker.ensure_no_collision(
            student_id,
            LESSON_END,
            LESSON_END + timedelta(minutes=45),
            POLICY,
            buffer_minutes=0,
        )
    assert "buffer" not in exc.value.message


@pytest.mark.asyncio
async def test_cancelled_ignored_and_other_students_lessons_do_not_collide() -> None:
    student_id = uuid4()
    cancelled = make_lesson(student_id, LESSON_START, LESSON_END, status=LessonStatusEnum.CANCELLED)
    foreign = make_lesson(uuid4(), LESSON_START, LESSON_END)
    own = make_lesson(student_id, LESSON_START, LESSON_END)
    checker = make_checker(cancelled, foreign, own)

    await checker.ensure_no_collision(
        student_id,
        LESSON_START,
        LESSON_END,
        POLICY,
        ignore_lesson_id=own.id,
    )


@pytest.mark.asyncio
async def test_collision_message_uses_application_timezone() -> None:
    student_id = uuid4()
    checker = make_checker(make_lesson(student_id, LESSON_START, LESSON_END))

    with pytest.raises(CollisionException) as exc:
        await checker.ensure_no_collision(student_id, LESSON_START, LESSON_END, POLICY)

    assert "03.03 10:00–10:45" in exc.value.message
    assert "30 min buffer" in exc.value.message


@pytest.mark.asyncio
async def test_inverted_window_is_rejected() -> None:
    checker = make_checker()

    with pytest.raises(BusinessRuleException):
        await checker.ensure_no_collision(uuid4(), LESSON_END, LESSON_START, POLICY)
