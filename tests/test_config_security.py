from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import jwt
from pydantic import ValidationError

from lessonbook.core.config import Settings
from lessonbook.core.enums import RoleEnum
from lessonbook.core.security import create_access_token, principal_from_token, settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me-in-production")


def test_custom_secret_key_allowed_in_production() -> None:
    settings = Settings(_env_file=None, app_env="production", secret_key="super-secure-value")
    assert settings.secret_key == "super-secure-value"


def test_unknown_application_timezone_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, application_timezone="Mars/Olympus_Mons")


def test_booking_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.booking_min_lead_time_hours == 6
    assert settings.booking_slot_interval_minutes == 15
    assert settings.default_lesson_duration_minutes == 45
    assert settings.default_lesson_buffer_minutes == 30
    assert settings.default_cancel_window_hours == 24
    assert settings.tzinfo.key == "Europe/Zurich"


def test_access_token_round_trips_to_principal() -> None:
    user_id = uuid4()
    principal = principal_from_token(create_access_token(str(user_id), RoleEnum.ADMIN))

    assert principal.id == user_id
    assert principal.is_admin


def test_token_with_wrong_type_or_role_is_rejected() -> None:
    refresh = create_access_token(str(uuid4()), RoleEnum.STUDENT, type="refresh")
    unknown_role = jwt.encode(
        {"sub": str(uuid4()), "role": "teacher", "type": "access"},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(HTTPException) as exc:
        principal_from_token(refresh)
    assert exc.value.status_code == 401

    with pytest.raises(HTTPException):
        principal_from_token(unknown_role)
    with pytest.raises(HTTPException):
        principal_from_token("not-a-jwt")
