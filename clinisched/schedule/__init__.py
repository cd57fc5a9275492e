from .engine import (
    TransitionOutcome,
    allowed_operations,
    apply_batch,
    apply_transition,
    create_item,
    edit_fields,
    initial_status,
    try_transition,
)
from .enums import (
    ActorRole,
    AppointmentStatus,
    CalendarView,
    Operation,
    Priority,
    ScheduleStatus,
    ScheduleType,
)
from .errors import (
    EditRejected,
    InvalidTransition,
    PermissionDenied,
    RangeResolutionError,
    ScheduleError,
    ValidationError,
)
from .models import (
    ActorContext,
    Appointment,
    DateRange,
    ScheduleFilters,
    ScheduleItem,
    ScheduleItemCreate,
    ScheduleItemPatch,
    ScheduleSummary,
    StatusChange,
)
from .slots import SlotConfig, book_appointment, generate_slots
from .views import (
    agenda,
    group_by_date,
    resolve_range,
    select_in_range,
    sort_chronologically,
    summarize,
    view_dates,
)

__all__ = [
    "ActorContext",
    "ActorRole",
    "Appointment",
    "AppointmentStatus",
    "CalendarView",
    "DateRange",
    "EditRejected",
    "InvalidTransition",
    "Operation",
    "PermissionDenied",
    "Priority",
    "RangeResolutionError",
    "ScheduleError",
    "ScheduleFilters",
    "ScheduleItem",
    "ScheduleItemCreate",
    "ScheduleItemPatch",
    "ScheduleStatus",
    "ScheduleSummary",
    "ScheduleType",
    "SlotConfig",
    "StatusChange",
    "TransitionOutcome",
    "ValidationError",
    "agenda",
    "allowed_operations",
    "apply_batch",
    "apply_transition",
    "book_appointment",
    "create_item",
    "edit_fields",
    "generate_slots",
    "group_by_date",
    "initial_status",
    "resolve_range",
    "select_in_range",
    "sort_chronologically",
    "summarize",
    "try_transition",
    "view_dates",
]
