from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from lessonbook.shared.exceptions import (
    CollisionException,
    NoCreditsAvailableException,
    RequestNotFoundException,
    UnauthorizedException,
    register_exception_handlers,
)


def _make_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/collision")
    async def collision() -> None:
        raise CollisionException("The time window collides with 03.03 10:00–10:45")

    @app.get("/credits")
    async def credits() -> None:
        raise NoCreditsAvailableException("No credits left")

    @app.get("/request")
    async def request() -> None:
        raise RequestNotFoundException("Request or suggestion not found")

    @app.get("/forbidden")
    async def forbidden() -> None:
        raise UnauthorizedException("Not authorized for this request")

    @app.get("/database")
    async def database() -> None:
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    return app


def test_booking_errors_render_code_and_message() -> None:
    client = TestClient(_make_app())

    cases = {
        "/collision": (409, "collision"),
        "/credits": (422, "no_credits_available"),
        "/request": (404, "request_not_found"),
        "/forbidden": (403, "forbidden"),
    }
    for path, (status_code, code) in cases.items():
        response = client.get(path)
        assert response.status_code == status_code
        assert response.json()["error"]["code"] == code


def test_persistence_failure_hides_driver_details() -> None:
    client = TestClient(_make_app(), raise_server_exceptions=False)

    response = client.get("/database")

    assert response.status_code == 503
    body = response.json()["error"]
    assert body["code"] == "persistence_error"
    assert "connection refused" not in body["message"]
