"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from lessonbook.core.enums import BookingRequestStatusEnum
from lessonbook.core.security import Principal, get_current_principal
from lessonbook.modules.admin.schemas import BookingPolicy
from lessonbook.modules.admin.service import get_booking_policy
from lessonbook.modules.booking.schemas import (
    BookingAcceptRead,
    BookingCounterCreate,
    BookingRequestCreate,
    BookingRequestRead,
)
from lessonbook.modules.booking.service import BookingService, get_booking_service, incoming_direction
from lessonbook.modules.lessons.schemas import LessonRead
from lessonbook.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/booking", tags=["booking"])


def _owner_scope(current_user: Principal) -> UUID | None:
    return None if current_user.is_admin else current_user.id


@router.post("/requests", response_model=BookingRequestRead, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: BookingRequestCreate,
    service: BookingService = Depends(get_booking_service),
    policy: BookingPolicy = Depends(get_booking_policy),
    current_user: Principal = Depends(get_current_principal),
) -> BookingRequestRead:
    """Propose a lesson or a new time for a booked lesson."""
    request = await service.submit_request(payload, current_user, policy)
    return BookingRequestRead.model_validate(request)


@router.get("/requests", response_model=Page[BookingRequestRead])
async def list_requests(
    request_status: BookingRequestStatusEnum | None = Query(default=None, alias="status"),
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    current_user: Principal = Depends(get_current_principal),
) -> Page[BookingRequestRead]:
    """List requests visible to the caller."""
    items, total = await service.list_requests(
        actor=current_user,
        status=request_status,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [BookingRequestRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.post("/requests/{request_id}/accept", response_model=BookingAcceptRead)
async def accept_request(
    request_id: UUID,
    service: BookingService = Depends(get_booking_service),
    policy: BookingPolicy = Depends(get_booking_policy),
    current_user: Principal = Depends(get_current_principal),
) -> BookingAcceptRead:
    """Accept a pending request addressed to the caller."""
    request, lesson = await service.accept_request(
        request_id,
        incoming_direction(current_user),
        policy,
        student_id=_owner_scope(current_user),
    )
    return BookingAcceptRead(
        request=BookingRequestRead.model_validate(request),
        lesson=LessonRead.model_validate(lesson),
    )


@router.post("/requests/{request_id}/decline", response_model=BookingRequestRead)
async def decline_request(
    request_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: Principal = Depends(get_current_principal),
) -> BookingRequestRead:
    """Decline a pending request addressed to the caller."""
    request = await service.decline_request(
        request_id,
        incoming_direction(current_user),
        student_id=_owner_scope(current_user),
    )
    return BookingRequestRead.model_validate(request)


@router.post(
    "/requests/{request_id}/counter",
    response_model=BookingRequestRead,
    status_code=status.HTTP_201_CREATED,
)
async def counter_request(
    request_id: UUID,
    payload: BookingCounterCreate,
    service: BookingService = Depends(get_booking_service),
    policy: BookingPolicy = Depends(get_booking_policy),
    current_user: Principal = Depends(get_current_principal),
) -> BookingRequestRead:
    """Answer a pending request with another proposed window."""
    request = await service.counter_request(request_id, payload, current_user, policy)
    return BookingRequestRead.model_validate(request)


@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: Principal = Depends(get_current_principal),
) -> Response:
    await service.delete_request(request_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
