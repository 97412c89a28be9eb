from __future__ import annotations

import pytest
from fastapi import Request, Response

import lessonbook.main as main_module
from lessonbook.core.enums import BookingDirectionEnum, BookingKindEnum, BookingRequestStatusEnum
from lessonbook.core.metrics import (
    BOOKING_REQUEST_TRANSITIONS_TOTAL,
    PACKAGE_CREDIT_OPERATIONS_TOTAL,
    build_metrics_response,
    instrument_http_request,
    record_credit_operation,
    record_request_transition,
)


def _make_request(path: str) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": b"",
    }
    return Request(scope)


@pytest.mark.asyncio
async def test_http_metrics_instrumentation_tracks_status_and_path() -> None:
    async def _no_content(_: Request) -> Response:
        return Response(status_code=204)

    request = _make_request("/health")
    await instrument_http_request(request, _no_content)

    payload = build_metrics_response().body.decode("utf-8")
    assert "lessonbook_http_requests_total" in payload
    assert 'path="/health"' in payload
    assert 'status_code="204"' in payload


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_prometheus_payload() -> None:
    response = await main_module.metrics_endpoint(_make_request("/metrics"))
    payload = response.body.decode("utf-8")

    assert response.status_code == 200
    assert "lessonbook_http_requests_total" in payload


def test_request_transitions_are_labelled_by_enum_values() -> None:
    counter = BOOKING_REQUEST_TRANSITIONS_TOTAL.labels(
        kind="reschedule",
        direction="admin_to_student",
        status="declined",
    )
    before = counter._value.get()

    record_request_transition(
        BookingKindEnum.RESCHEDULE,
        BookingDirectionEnum.ADMIN_TO_STUDENT,
        BookingRequestStatusEnum.DECLINED,
    )

    assert counter._value.get() == before + 1


def test_credit_operations_are_counted() -> None:
    counter = PACKAGE_CREDIT_OPERATIONS_TOTAL.labels(operation="refund")
    before = counter._value.get()

    record_credit_operation("refund")

    assert counter._value.get() == before + 1
    assert "lessonbook_package_credit_operations_total" in build_metrics_response().body.decode("utf-8")
