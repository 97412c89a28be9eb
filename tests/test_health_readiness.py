from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import lessonbook.main as main_module


def _stub_settings_source(monkeypatch: pytest.MonkeyPatch, source: str | None) -> None:
    async def _source() -> str | None:
        return source

    monkeypatch.setattr(main_module, "_load_booking_settings_source", _source)


def test_healthcheck_does_not_touch_the_database(monkeypatch: pytest.MonkeyPatch) -> None:
    _stub_settings_source(monkeypatch, None)
    client = TestClient(main_module.app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("source", ["stored", "defaults"])
def test_ready_reports_where_the_booking_policy_comes_from(
    monkeypatch: pytest.MonkeyPatch,
    source: str,
) -> None:
    _stub_settings_source(monkeypatch, source)
    client = TestClient(main_module.app)

    body = client.get("/ready").json()

    assert body["status"] == "ready"
    assert body["database"] == "ok"
    assert body["booking_settings"] == source
    assert body["timezone"] == main_module.settings.application_timezone
    assert "timestamp" in body


def test_ready_answers_503_in_the_error_envelope_when_database_is_down(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _stub_settings_source(monkeypatch, None)
    client = TestClient(main_module.app)

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"error": {"code": "http_error", "message": "Database is not ready"}}
