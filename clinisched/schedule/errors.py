"""Domain errors of the scheduling core."""

from typing import Optional

from clinisched.schedule.enums import ActorRole, Operation, ScheduleStatus


class ScheduleError(Exception):
    """Base class for expected scheduling failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ScheduleError):
    """Malformed input at creation or edit time."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidTransition(ScheduleError):
    """Status change not allowed from the current status."""

    def __init__(
        self,
        operation: Operation,
        current_status: ScheduleStatus,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(
            message
            or f"cannot {operation.value} an item that is {current_status.value}",
        )
        self.operation = operation
        self.current_status = current_status


class EditRejected(ScheduleError):
    """Field edit attempted on a completed or cancelled item."""

    def __init__(self, current_status: ScheduleStatus) -> None:
        super().__init__(f"cannot edit an item that is {current_status.value}")
        self.current_status = current_status


class PermissionDenied(ScheduleError):
    """Actor role may not trigger the operation."""

    def __init__(self, operation: Operation, role: ActorRole) -> None:
        super().__init__(f"{role.value} is not allowed to {operation.value} items")
        self.operation = operation
        self.role = role


class RangeResolutionError(ScheduleError):
    """Unknown calendar view name. Indicates a caller bug."""

    def __init__(self, view: str) -> None:
        super().__init__(f"Unknown calendar view: {view!r}")
        self.view = view
