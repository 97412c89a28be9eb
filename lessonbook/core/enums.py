"""Core enums and status transition tables used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    STUDENT = "student"
    ADMIN = "admin"


class LessonStatusEnum(StrEnum):
    """Lesson status."""

    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW_CHARGED = "no_show_charged"
    NO_SHOW_REFUNDED = "no_show_refunded"


class BookingRequestStatusEnum(StrEnum):
    """Booking request negotiation status."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class BookingDirectionEnum(StrEnum):
    """Who proposed the request and who has to answer it."""

    STUDENT_TO_ADMIN = "student_to_admin"
    ADMIN_TO_STUDENT = "admin_to_student"

    @property
    def opposite(self) -> "BookingDirectionEnum":
        if self is BookingDirectionEnum.STUDENT_TO_ADMIN:
            return BookingDirectionEnum.ADMIN_TO_STUDENT
        return BookingDirectionEnum.STUDENT_TO_ADMIN


class BookingKindEnum(StrEnum):
    """What a booking request asks for."""

    BOOKING = "booking"
    RESCHEDULE = "reschedule"


class PackageStatusEnum(StrEnum):
    """Student package status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    INACTIVE = "inactive"


BOOKING_REQUEST_STATUS_TRANSITIONS: dict[BookingRequestStatusEnum, frozenset[BookingRequestStatusEnum]] = {
    BookingRequestStatusEnum.PENDING: frozenset(
        {BookingRequestStatusEnum.ACCEPTED, BookingRequestStatusEnum.DECLINED},
    ),
    BookingRequestStatusEnum.ACCEPTED: frozenset(),
    BookingRequestStatusEnum.DECLINED: frozenset(),
}

# Cancellation is only reachable from BOOKED; everything else is an admin override.
LESSON_STATUS_TRANSITIONS: dict[LessonStatusEnum, frozenset[LessonStatusEnum]] = {
    LessonStatusEnum.BOOKED: frozenset(
        {
            LessonStatusEnum.COMPLETED,
            LessonStatusEnum.CANCELLED,
            LessonStatusEnum.NO_SHOW_CHARGED,
            LessonStatusEnum.NO_SHOW_REFUNDED,
        },
    ),
    LessonStatusEnum.COMPLETED: frozenset(
        {
            LessonStatusEnum.BOOKED,
            LessonStatusEnum.NO_SHOW_CHARGED,
            LessonStatusEnum.NO_SHOW_REFUNDED,
        },
    ),
    LessonStatusEnum.NO_SHOW_CHARGED: frozenset(
        {
            LessonStatusEnum.BOOKED,
            LessonStatusEnum.COMPLETED,
            LessonStatusEnum.NO_SHOW_REFUNDED,
        },
    ),
    LessonStatusEnum.NO_SHOW_REFUNDED: frozenset(
        {
            LessonStatusEnum.BOOKED,
            LessonStatusEnum.COMPLETED,
            LessonStatusEnum.NO_SHOW_CHARGED,
        },
    ),
    LessonStatusEnum.CANCELLED: frozenset(
        {
            LessonStatusEnum.BOOKED,
            LessonStatusEnum.COMPLETED,
            LessonStatusEnum.NO_SHOW_CHARGED,
            LessonStatusEnum.NO_SHOW_REFUNDED,
        },
    ),
}

# Statuses in which the lesson's credit has already been returned to the package.
CREDIT_RELEASED_LESSON_STATUSES = frozenset(
    {LessonStatusEnum.CANCELLED, LessonStatusEnum.NO_SHOW_REFUNDED},
)
