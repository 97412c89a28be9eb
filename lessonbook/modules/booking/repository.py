"""Booking repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lessonbook.core.enums import BookingDirectionEnum, BookingKindEnum, BookingRequestStatusEnum
from lessonbook.modules.booking.models import BookingRequest


class BookingRepository:
    """DB operations for booking requests."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_request(
        self,
        student_id: UUID,
        requester_id: UUID | None,
        direction: BookingDirectionEnum,
        kind: BookingKindEnum,
        proposed_starts_at: datetime,
        proposed_ends_at: datetime,
        message: str | None,
        lesson_id: UUID | None,
        counter_of: UUID | None,
    ) -> BookingRequest:
        request = BookingRequest(
            student_id=student_id,
            requester_id=requester_id,
            direction=direction,
            kind=kind,
            status=BookingRequestStatusEnum.PENDING,
            proposed_starts_at=proposed_starts_at,
            proposed_ends_at=proposed_ends_at,
            message=message,
            lesson_id=lesson_id,
            counter_of=counter_of,
        )
        self.session.add(request)
        await self.session.flush()
        return request

    async def get_request_by_id(self, request_id: UUID) -> BookingRequest | None:
        stmt = select(BookingRequest).where(BookingRequest.id == request_id)
        return await self.session.scalar(stmt)

    async def find_pending_reschedule(self, lesson_id: UUID) -> BookingRequest | None:
        stmt = select(BookingRequest).where(
            BookingRequest.lesson_id == lesson_id,
            BookingRequest.kind == BookingKindEnum.RESCHEDULE,
            BookingRequest.status == BookingRequestStatusEnum.PENDING,
        )
        return await self.session.scalar(stmt.limit(1))

    async def transition_status(
        self,
        request: BookingRequest,
        expected: BookingRequestStatusEnum,
        target: BookingRequestStatusEnum,
    ) -> bool:
        """Conditionally move the request; False when someone else got there first."""
        stmt = (
            update(BookingRequest)
            .where(BookingRequest.id == request.id, BookingRequest.status == expected)
            .values(status=target)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return False
        request.status = target
        return True

    async def decline_pending_reschedules(self, lesson_id: UUID) -> int:
        stmt = (
            update(BookingRequest)
            .where(
                BookingRequest.lesson_id == lesson_id,
                BookingRequest.kind == BookingKindEnum.RESCHEDULE,
                BookingRequest.status == BookingRequestStatusEnum.PENDING,
            )
            .values(status=BookingRequestStatusEnum.DECLINED)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def clear_counter_references(self, request_id: UUID) -> None:
        stmt = (
            update(BookingRequest)
            .where(BookingRequest.counter_of == request_id)
            .values(counter_of=None)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)

    async def delete_request(self, request: BookingRequest) -> None:
        await self.session.execute(delete(BookingRequest).where(BookingRequest.id == request.id))

    async def list_requests(
        self,
        student_id: UUID | None,
        status: BookingRequestStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[BookingRequest], int]:
        base_stmt: Select[tuple[BookingRequest]] = select(BookingRequest)
        if student_id is not None:
            base_stmt = base_stmt.where(BookingRequest.student_id == student_id)
        if status is not None:
            base_stmt = base_stmt.where(BookingRequest.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(BookingRequest.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total
