from enum import StrEnum


class ScheduleType(StrEnum):
    """Kinds of clinician work."""

    APPOINTMENT = "appointment"
    SURGERY = "surgery"
    TASK = "task"
    ADMINISTRATIVE = "administrative"
    MEETING = "meeting"
    TRAINING = "training"
    CONSULTATION = "consultation"
    ON_CALL = "on-call"
    BREAK = "break"
    OTHER = "other"


class ScheduleStatus(StrEnum):
    """Schedule item statuses."""

    PENDING = "pending"  # Waiting for approval
    APPROVED = "approved"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that lock date, time and descriptive fields
LOCKED_STATUSES = frozenset({ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED})


class Priority(StrEnum):
    """Display priority, no workflow effect."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Operation(StrEnum):
    """Operations accepted by the status engine."""

    APPROVE = "approve"
    REJECT = "reject"
    ACCEPT = "accept"
    COMPLETE = "complete"
    CANCEL = "cancel"
    EDIT = "edit"


class ActorRole(StrEnum):
    """Role classification supplied by the caller."""

    CLINICIAN = "clinician"
    HOSPITAL_ADMIN = "hospital-admin"
    SUPER_ADMIN = "super-admin"


class CalendarView(StrEnum):
    """Named calendar windows."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    PREVIOUS_DAY = "previous-day"
    PREVIOUS_WEEK = "previous-week"
    PREVIOUS_MONTH = "previous-month"


class AppointmentStatus(StrEnum):
    """Patient appointment statuses."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
