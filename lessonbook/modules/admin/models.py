"""Admin ORM models."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from lessonbook.core.database import Base, TimestampMixin

ADMIN_SETTINGS_ROW_ID = 1


class AdminSettings(TimestampMixin, Base):
    """Tutor-wide booking configuration, a single row with id=1."""

    __tablename__ = "admin_settings"
    __table_args__ = (
        CheckConstraint("id = 1", name="singleton"),
        CheckConstraint("default_duration_min IS NULL OR default_duration_min > 0", name="duration_positive"),
        CheckConstraint("buffer_min IS NULL OR buffer_min >= 0", name="buffer_non_negative"),
        CheckConstraint("cancel_window_hours IS NULL OR cancel_window_hours >= 0", name="cancel_window_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=ADMIN_SETTINGS_ROW_ID)
    default_duration_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    buffer_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cancel_window_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weekly_availability: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
