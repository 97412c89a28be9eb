"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


package_status_enum = sa.Enum("active", "completed", "inactive", name="package_status_enum", native_enum=False)
lesson_status_enum = sa.Enum(
    "booked",
    "completed",
    "cancelled",
    "no_show_charged",
    "no_show_refunded",
    name="lesson_status_enum",
    native_enum=False,
)
booking_direction_enum = sa.Enum(
    "student_to_admin",
    "admin_to_student",
    name="booking_direction_enum",
    native_enum=False,
)
booking_kind_enum = sa.Enum("booking", "reschedule", name="booking_kind_enum", native_enum=False)
booking_request_status_enum = sa.Enum(
    "pending",
    "accepted",
    "declined",
    name="booking_request_status_enum",
    native_enum=False,
)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "admin_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _created_col(),
        _updated_col(),
        sa.Column("default_duration_min", sa.Integer(), nullable=True),
        sa.Column("buffer_min", sa.Integer(), nullable=True),
        sa.Column("cancel_window_hours", sa.Integer(), nullable=True),
        sa.Column("weekly_availability", postgresql.JSONB(), nullable=True),
        sa.CheckConstraint("id = 1", name="ck_admin_settings_singleton"),
        sa.CheckConstraint(
            "default_duration_min IS NULL OR default_duration_min > 0",
            name="ck_admin_settings_duration_positive",
        ),
        sa.CheckConstraint("buffer_min IS NULL OR buffer_min >= 0", name="ck_admin_settings_buffer_non_negative"),
        sa.CheckConstraint(
            "cancel_window_hours IS NULL OR cancel_window_hours >= 0",
            name="ck_admin_settings_cancel_window_non_negative",
        ),
    )

    op.create_table(
        "student_packages",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lessons_total", sa.Integer(), nullable=False),
        sa.Column("lessons_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", package_status_enum, nullable=False),
        sa.CheckConstraint("lessons_total >= 0", name="ck_student_packages_lessons_total_non_negative"),
        sa.CheckConstraint("lessons_used >= 0", name="ck_student_packages_lessons_used_non_negative"),
    )
    op.create_index("ix_student_packages_student_id", "student_packages", ["student_id"])
    op.create_index(
        "uq_student_packages_active_student_id",
        "student_packages",
        ["student_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "lessons",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "student_package_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(
                "student_packages.id",
                ondelete="SET NULL",
                name="fk_lessons_student_package_id_student_packages",
            ),
            nullable=True,
        ),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", lesson_status_enum, nullable=False),
        sa.Column("cancellation_reason", sa.String(length=500), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint("ends_at > starts_at", name="ck_lessons_window_ordered"),
    )
    op.create_index("ix_lessons_student_id", "lessons", ["student_id"])
    op.create_index("ix_lessons_student_package_id", "lessons", ["student_package_id"])
    op.create_index("ix_lessons_status", "lessons", ["status"])
    op.create_index("ix_lessons_student_id_starts_at", "lessons", ["student_id", "starts_at"])

    op.create_table(
        "booking_requests",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("requester_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("direction", booking_direction_enum, nullable=False),
        sa.Column("kind", booking_kind_enum, nullable=False),
        sa.Column("status", booking_request_status_enum, nullable=False),
        sa.Column("proposed_starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("proposed_ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("message", sa.String(length=500), nullable=True),
        sa.Column(
            "lesson_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("lessons.id", ondelete="RESTRICT", name="fk_booking_requests_lesson_id_lessons"),
            nullable=True,
        ),
        sa.Column(
            "counter_of",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(
                "booking_requests.id",
                ondelete="SET NULL",
                name="fk_booking_requests_counter_of_booking_requests",
            ),
            nullable=True,
        ),
        sa.CheckConstraint("proposed_ends_at > proposed_starts_at", name="ck_booking_requests_window_ordered"),
        sa.CheckConstraint(
            "kind <> 'reschedule' OR lesson_id IS NOT NULL",
            name="ck_booking_requests_reschedule_has_lesson",
        ),
    )
    op.create_index("ix_booking_requests_student_id", "booking_requests", ["student_id"])
    op.create_index("ix_booking_requests_status", "booking_requests", ["status"])
    op.create_index("ix_booking_requests_lesson_id", "booking_requests", ["lesson_id"])
    op.create_index(
        "uq_booking_requests_pending_reschedule_lesson_id",
        "booking_requests",
        ["lesson_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending' AND kind = 'reschedule'"),
    )


def downgrade() -> None:
    op.drop_index("uq_booking_requests_pending_reschedule_lesson_id", table_name="booking_requests")
    op.drop_index("ix_booking_requests_lesson_id", table_name="booking_requests")
    op.drop_index("ix_booking_requests_status", table_name="booking_requests")
    op.drop_index("ix_booking_requests_student_id", table_name="booking_requests")
    op.drop_table("booking_requests")

    op.drop_index("ix_lessons_student_id_starts_at", table_name="lessons")
    op.drop_index("ix_lessons_status", table_name="lessons")
    op.drop_index("ix_lessons_student_package_id", table_name="lessons")
    op.drop_index("ix_lessons_student_id", table_name="lessons")
    op.drop_table("lessons")

    op.drop_index("uq_student_packages_active_student_id", table_name="student_packages")
    op.drop_index("ix_student_packages_student_id", table_name="student_packages")
    op.drop_table("student_packages")

    op.drop_table("admin_settings")
