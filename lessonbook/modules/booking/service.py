"""Booking business logic layer: the request state machine."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.core.database import get_db_session
from lessonbook.core.enums import (
    BOOKING_REQUEST_STATUS_TRANSITIONS,
    BookingDirectionEnum,
    BookingKindEnum,
    BookingRequestStatusEnum,
    LessonStatusEnum,
)
from lessonbook.core.metrics import record_request_transition
from lessonbook.core.security import Principal
from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.billing.repository import BillingRepository
from lessonbook.modules.billing.service import BillingService
from lessonbook.modules.booking.models import BookingRequest
from lessonbook.modules.booking.repository import BookingRepository
from lessonbook.modules.booking.schemas import BookingCounterCreate, BookingRequestCreate
from lessonbook.modules.lessons.models import Lesson
from lessonbook.modules.lessons.repository import LessonsRepository
from lessonbook.modules.scheduling.service import SchedulingService
from lessonbook.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    RequestNotFoundException,
    UnauthorizedException,
)
from lessonbook.shared.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def incoming_direction(actor: Principal) -> BookingDirectionEnum:
    """Direction of the requests the actor is expected to answer."""
    if actor.is_admin:
        return BookingDirectionEnum.STUDENT_TO_ADMIN
    return BookingDirectionEnum.ADMIN_TO_STUDENT


class BookingService:
    """Proposals, acceptances, declines and counter-proposals of lesson windows."""

    def __init__(
        self,
        repository: BookingRepository,
        lessons_repository: LessonsRepository,
        billing_service: BillingService,
        scheduling_service: SchedulingService,
    ) -> None:
        self.repository = repository
        self.lessons_repository = lessons_repository
        self.billing_service = billing_service
        self.scheduling_service = scheduling_service

    @staticmethod
    def _resolve_student(student_id: UUID | None, actor: Principal) -> UUID:
        if actor.is_admin:
            if student_id is None:
                raise BusinessRuleException("A student must be selected")
            return student_id
        if student_id is not None and student_id != actor.id:
            raise UnauthorizedException("Students can only request lessons for themselves")
        return actor.id

    @staticmethod
    def _resolve_window(
        starts_at: datetime,
        ends_at: datetime | None,
        policy: BookingPolicy,
        kind: BookingKindEnum,
        enforce_slot_grid: bool = False,
    ) -> tuple[datetime, datetime]:
        start = ensure_utc(starts_at)
        if ends_at is None:
            end = start + timedelta(minutes=policy.default_duration_min)
        else:
            end = ensure_utc(ends_at)

        if end <= start:
            raise BusinessRuleException("Lesson end must be after its start")

        if kind == BookingKindEnum.BOOKING:
            min_start = utc_now() + timedelta(hours=policy.min_lead_time_hours)
            if start < min_start:
                raise BusinessRuleException(
                    f"Lessons must be requested at least {policy.min_lead_time_hours} hours in advance",
                )

        if enforce_slot_grid:
            local_start = start.astimezone(policy.tz)
            interval = policy.slot_interval_minutes
            if local_start.minute % interval != 0 or local_start.second or local_start.microsecond:
                raise BusinessRuleException(
                    f"Lessons must start on a {interval} minute boundary",
                )
        return start, end

    async def _ensure_reschedulable(
        self,
        lesson_id: UUID,
        student_id: UUID,
        superseded_request_id: UUID | None = None,
    ) -> Lesson:
        lesson = await self.lessons_repository.get_lesson_by_id(lesson_id)
        if lesson is None:
            raise NotFoundException("Lesson not found")
        if lesson.student_id != student_id:
            raise UnauthorizedException("The lesson belongs to another student")
        if lesson.status != LessonStatusEnum.BOOKED:
            raise ConflictException("Only booked lessons can be rescheduled")

        pending = await self.repository.find_pending_reschedule(lesson_id)
        if pending is not None and pending.id != superseded_request_id:
            raise ConflictException("There is already an open reschedule request for this lesson")
        return lesson

    async def _validate_window(
        self,
        student_id: UUID,
        starts_at: datetime,
        ends_at: datetime,
        kind: BookingKindEnum,
        lesson_id: UUID | None,
        policy: BookingPolicy,
        superseded_request_id: UUID | None = None,
    ) -> None:
        if kind == BookingKindEnum.RESCHEDULE:
            if lesson_id is None:
                raise BusinessRuleException("A reschedule request must reference a lesson")
            await self._ensure_reschedulable(lesson_id, student_id, superseded_request_id)

        self.scheduling_service.ensure_within_availability(starts_at, ends_at, policy)
        await self.scheduling_service.ensure_no_collision(
            student_id=student_id,
            starts_at=starts_at,
            ends_at=ends_at,
            policy=policy,
            ignore_lesson_id=lesson_id if kind == BookingKindEnum.RESCHEDULE else None,
        )

    async def _ensure_credit_available(self, student_id: UUID) -> None:
        package = await self.billing_service.find_active_package(student_id)
        if package is None or package.lessons_left <= 0:
            raise BusinessRuleException(
                "No active lesson package with remaining credits, please contact the tutor",
            )

    async def _get_pending_request(
        self,
        request_id: UUID,
        expected_direction: BookingDirectionEnum,
        student_id: UUID | None = None,
    ) -> BookingRequest:
        request = await self.repository.get_request_by_id(request_id)
        if (
            request is None
            or request.status != BookingRequestStatusEnum.PENDING
            or request.direction != expected_direction
        ):
            raise RequestNotFoundException("Request or suggestion not found")
        if student_id is not None and request.student_id != student_id:
            raise UnauthorizedException("Not authorized for this request")
        return request

    async def _resolve(self, request: BookingRequest, target: BookingRequestStatusEnum) -> None:
        if target not in BOOKING_REQUEST_STATUS_TRANSITIONS[request.status]:
            raise ConflictException(f"Invalid request transition {request.status} -> {target}")

        claimed = await self.repository.transition_status(
            request,
            BookingRequestStatusEnum.PENDING,
            target,
        )
        if not claimed:
            raise RequestNotFoundException("The request has already been answered")
        record_request_transition(request.kind, request.direction, target)

    async def submit_request(
        self,
        payload: BookingRequestCreate,
        actor: Principal,
        policy: BookingPolicy,
    ) -> BookingRequest:
        """Validate and persist a new pending proposal.

        Students address the tutor, the tutor addresses a student. Nothing is
        written unless every check passes.
        """
        student_id = self._resolve_student(payload.student_id, actor)
        direction = (
            BookingDirectionEnum.ADMIN_TO_STUDENT if actor.is_admin else BookingDirectionEnum.STUDENT_TO_ADMIN
        )
        student_booking = not actor.is_admin and payload.kind == BookingKindEnum.BOOKING

        starts_at, ends_at = self._resolve_window(
            payload.starts_at,
            payload.ends_at,
            policy,
            payload.kind,
            enforce_slot_grid=student_booking,
        )
        await self._validate_window(
            student_id,
            starts_at,
            ends_at,
            payload.kind,
            payload.lesson_id,
            policy,
        )
        if student_booking:
            await self._ensure_credit_available(student_id)

        request = await self.repository.create_request(
            student_id=student_id,
            requester_id=actor.id,
            direction=direction,
            kind=payload.kind,
            proposed_starts_at=starts_at,
            proposed_ends_at=ends_at,
            message=payload.message,
            lesson_id=payload.lesson_id,
            counter_of=None,
        )
        record_request_transition(request.kind, request.direction, request.status)
        logger.info(
            "Booking request %s (%s, %s) submitted for student %s",
            request.id,
            request.kind,
            request.direction,
            student_id,
        )
        return request

    async def accept_request(
        self,
        request_id: UUID,
        expected_direction: BookingDirectionEnum,
        policy: BookingPolicy,
        student_id: UUID | None = None,
    ) -> tuple[BookingRequest, Lesson]:
        """Accept a pending request and apply it to the lesson calendar."""
        request = await self._get_pending_request(request_id, expected_direction, student_id)
        await self.lessons_repository.lock_student(request.student_id)

        if request.kind == BookingKindEnum.RESCHEDULE:
            lesson = await self._accept_reschedule(request, policy)
        else:
            lesson = await self._accept_booking(request, policy)

        logger.info("Booking request %s accepted, lesson %s", request.id, lesson.id)
        return request, lesson

    async def _accept_booking(self, request: BookingRequest, policy: BookingPolicy) -> Lesson:
        await self.scheduling_service.ensure_no_collision(
            student_id=request.student_id,
            starts_at=request.proposed_starts_at,
            ends_at=request.proposed_ends_at,
            policy=policy,
        )
        package = await self.billing_service.find_active_package(request.student_id, for_update=True)

        await self._resolve(request, BookingRequestStatusEnum.ACCEPTED)
        lesson = await self.lessons_repository.create_lesson(
            student_id=request.student_id,
            starts_at=request.proposed_starts_at,
            ends_at=request.proposed_ends_at,
            student_package_id=package.id if package is not None else None,
        )
        if package is not None:
            await self.billing_service.charge_credit(package.id)
        return lesson

    async def _accept_reschedule(self, request: BookingRequest, policy: BookingPolicy) -> Lesson:
        if request.lesson_id is None:
            raise BusinessRuleException("A reschedule request must reference a lesson")

        lesson = await self.lessons_repository.get_lesson_by_id(request.lesson_id, for_update=True)
        if lesson is None:
            raise NotFoundException("Lesson not found")
        if lesson.student_id != request.student_id:
            raise UnauthorizedException("The lesson belongs to another student")
        if lesson.status != LessonStatusEnum.BOOKED:
            raise ConflictException("Only booked lessons can be rescheduled")

        await self.scheduling_service.ensure_no_collision(
            student_id=request.student_id,
            starts_at=request.proposed_starts_at,
            ends_at=request.proposed_ends_at,
            policy=policy,
            ignore_lesson_id=lesson.id,
        )

        await self._resolve(request, BookingRequestStatusEnum.ACCEPTED)
        lesson.starts_at = request.proposed_starts_at
        lesson.ends_at = request.proposed_ends_at
        return await self.lessons_repository.save(lesson)

    async def decline_request(
        self,
        request_id: UUID,
        expected_direction: BookingDirectionEnum,
        student_id: UUID | None = None,
    ) -> BookingRequest:
        request = await self._get_pending_request(request_id, expected_direction, student_id)
        await self._resolve(request, BookingRequestStatusEnum.DECLINED)
        logger.info("Booking request %s declined", request.id)
        return request

    async def counter_request(
        self,
        request_id: UUID,
        payload: BookingCounterCreate,
        actor: Principal,
        policy: BookingPolicy,
    ) -> BookingRequest:
        """Decline a pending request and propose another window in its place."""
        expected_direction = incoming_direction(actor)
        owner_id = None if actor.is_admin else actor.id
        original = await self._get_pending_request(request_id, expected_direction, owner_id)

        starts_at, ends_at = self._resolve_window(
            payload.starts_at,
            payload.ends_at,
            policy,
            original.kind,
        )
        await self._validate_window(
            original.student_id,
            starts_at,
            ends_at,
            original.kind,
            original.lesson_id,
            policy,
            superseded_request_id=original.id,
        )

        # The superseded request must leave pending before its successor exists.
        await self._resolve(original, BookingRequestStatusEnum.DECLINED)
        counter = await self.repository.create_request(
            student_id=original.student_id,
            requester_id=actor.id,
            direction=original.direction.opposite,
            kind=original.kind,
            proposed_starts_at=starts_at,
            proposed_ends_at=ends_at,
            message=payload.message,
            lesson_id=original.lesson_id,
            counter_of=original.id,
        )
        record_request_transition(counter.kind, counter.direction, counter.status)
        logger.info("Booking request %s countered by %s", original.id, counter.id)
        return counter

    async def delete_request(self, request_id: UUID, actor: Principal) -> None:
        """Remove an answered student request (admin only)."""
        if not actor.is_admin:
            raise UnauthorizedException("Only admin can delete requests")

        request = await self.repository.get_request_by_id(request_id)
        if request is None:
            raise RequestNotFoundException("Request not found")
        if request.direction != BookingDirectionEnum.STUDENT_TO_ADMIN:
            raise ConflictException("Only student requests can be deleted")
        if request.status == BookingRequestStatusEnum.PENDING:
            raise ConflictException("Pending requests must be accepted or declined first")

        await self.repository.clear_counter_references(request.id)
        await self.repository.delete_request(request)
        logger.info("Booking request %s deleted by %s", request.id, actor.id)

    async def list_requests(
        self,
        actor: Principal,
        status: BookingRequestStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[BookingRequest], int]:
        return await self.repository.list_requests(
            student_id=None if actor.is_admin else actor.id,
            status=status,
            limit=limit,
            offset=offset,
        )


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    lessons_repository = LessonsRepository(session)
    return BookingService(
        repository=BookingRepository(session),
        lessons_repository=lessons_repository,
        billing_service=BillingService(BillingRepository(session)),
        scheduling_service=SchedulingService(lessons_repository),
    )
