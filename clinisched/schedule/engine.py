"""Status engine for schedule items.

Every mutation of a :class:`ScheduleItem` goes through this module. Items are
immutable, so each operation returns a new item and leaves the input
untouched when it fails.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional
from uuid import uuid4

import pydantic
from loguru import logger

from clinisched.schedule.enums import LOCKED_STATUSES, Operation, ScheduleStatus
from clinisched.schedule.errors import (
    EditRejected,
    InvalidTransition,
    ScheduleError,
    ValidationError,
)
from clinisched.schedule.models import (
    ActorContext,
    ScheduleItem,
    ScheduleItemCreate,
    ScheduleItemPatch,
    StatusChange,
)

# operation -> (allowed source statuses, resulting status)
TRANSITIONS: dict[Operation, tuple[frozenset[ScheduleStatus], ScheduleStatus]] = {
    Operation.APPROVE: (frozenset({ScheduleStatus.PENDING}), ScheduleStatus.APPROVED),
    Operation.REJECT: (frozenset({ScheduleStatus.PENDING}), ScheduleStatus.REJECTED),
    Operation.ACCEPT: (frozenset({ScheduleStatus.APPROVED}), ScheduleStatus.ACCEPTED),
    Operation.COMPLETE: (
        frozenset({ScheduleStatus.ACCEPTED, ScheduleStatus.APPROVED}),
        ScheduleStatus.COMPLETED,
    ),
    Operation.CANCEL: (
        frozenset(set(ScheduleStatus) - LOCKED_STATUSES),
        ScheduleStatus.CANCELLED,
    ),
}

# Operations that only exist for items behind the approval gate
APPROVAL_OPERATIONS = frozenset({Operation.APPROVE, Operation.REJECT})


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of one operation on one item."""

    item: ScheduleItem
    change: Optional[StatusChange] = None
    error: Optional[ScheduleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def initial_status(requires_approval: bool) -> ScheduleStatus:
    """Starting status of a new item."""
    return ScheduleStatus.PENDING if requires_approval else ScheduleStatus.ACCEPTED


def needs_approval(data: ScheduleItemCreate) -> bool:
    """
    Decide whether a new item goes through the approval gate.

    An explicit flag wins. Otherwise an item assigned by somebody other than
    the clinician requires approval.
    """
    if data.requires_approval is not None:
        return data.requires_approval
    if data.assigned_by_id is not None:
        return data.assigned_by_id != data.clinician_id
    return data.assigned_by is not None


def _validation_error(err: pydantic.ValidationError) -> ValidationError:
    first = err.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    return ValidationError(first["msg"], field=field)


def parse_create(data: ScheduleItemCreate | Mapping[str, Any]) -> ScheduleItemCreate:
    """
    Validate raw creation input.

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    if isinstance(data, ScheduleItemCreate):
        return data
    try:
        return ScheduleItemCreate.model_validate(data)
    except pydantic.ValidationError as e:
        raise _validation_error(e) from e


def create_item(
    data: ScheduleItemCreate | Mapping[str, Any],
    now: Optional[datetime] = None,
) -> ScheduleItem:
    """
    Build a new schedule item from creation input.

    Args:
        data: Creation input, as a model or a raw mapping
        now: Creation timestamp, defaults to the current time

    Returns:
        The new item with its approval flag and initial status set

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    data = parse_create(data)
    try:
        requires_approval = needs_approval(data)
        stamp = now or datetime.now()
        fields = data.model_dump(exclude={"id", "requires_approval"})
        item = ScheduleItem(
            **fields,
            id=data.id or uuid4().hex,
            status=initial_status(requires_approval),
            requires_approval=requires_approval,
            created_at=stamp,
            updated_at=stamp,
        )
    except pydantic.ValidationError as e:
        raise _validation_error(e) from e

    logger.info(
        f"Created schedule item {item.id} ({item.type}) "
        f"on {item.date} with status {item.status}",
    )
    return item


def parse_operation(operation: Operation | str) -> Operation:
    """
    Resolve an operation name.

    Raises:
        ValidationError: If the name is not a known operation
    """
    try:
        return Operation(operation)
    except ValueError as e:
        raise ValidationError(f"Unknown operation: {operation!r}", "operation") from e


def allowed_operations(item: ScheduleItem) -> list[Operation]:
    """Operations that would succeed on the item right now."""
    allowed = [
        operation
        for operation in TRANSITIONS
        if _precondition_error(item, operation) is None
    ]
    if item.status not in LOCKED_STATUSES:
        allowed.append(Operation.EDIT)
    return allowed


def _precondition_error(
    item: ScheduleItem,
    operation: Operation,
) -> Optional[InvalidTransition]:
    sources, _ = TRANSITIONS[operation]
    if item.status not in sources:
        expected = " or ".join(sorted(status.value for status in sources))
        if operation is Operation.CANCEL:
            message = f"cannot cancel an item that is {item.status.value}"
        else:
            message = f"cannot {operation.value} an item that is not {expected}"
        return InvalidTransition(operation, item.status, message)
    if operation in APPROVAL_OPERATIONS and not item.requires_approval:
        return InvalidTransition(
            operation,
            item.status,
            f"cannot {operation.value} an item that does not require approval",
        )
    return None


def edit_fields(
    item: ScheduleItem,
    patch: ScheduleItemPatch | Mapping[str, Any],
    now: Optional[datetime] = None,
) -> ScheduleItem:
    """
    Apply a field edit to an item that is still open.

    :func:`try_transition` with ``Operation.EDIT`` gives the same edit with
    failures returned as values.

    Raises:
        EditRejected: If the item is completed or cancelled
        ValidationError: If the patch or the edited item is invalid
    """
    if item.status in LOCKED_STATUSES:
        raise EditRejected(item.status)

    try:
        if not isinstance(patch, ScheduleItemPatch):
            patch = ScheduleItemPatch.model_validate(patch)
        changes = patch.model_dump(exclude_unset=True)
        merged = {**item.model_dump(), **changes, "updated_at": now or datetime.now()}
        return ScheduleItem.model_validate(merged)
    except pydantic.ValidationError as e:
        raise _validation_error(e) from e


def apply_transition(
    item: ScheduleItem,
    operation: Operation | str,
    actor: ActorContext,
    payload: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> TransitionOutcome:
    """
    Apply one operation to an item.

    Failures are raised. Callers processing many items should use
    :func:`try_transition` or :func:`apply_batch`, which return them as
    ``TransitionOutcome.error`` instead.

    Args:
        item: Current item
        operation: Operation to apply
        actor: Caller-resolved actor, recorded on the status change
        payload: ``{"reason": ...}`` for reject, the field patch for edit
        now: Timestamp of the change, defaults to the current time

    Returns:
        Outcome with the new item and the status change it produced

    Raises:
        InvalidTransition: If the operation is not legal from the current status
        EditRejected: If an edit targets a completed or cancelled item
        ValidationError: If the operation name or the payload is invalid
    """
    operation = parse_operation(operation)
    stamp = now or datetime.now()
    payload = payload or {}

    if operation is Operation.EDIT:
        updated = edit_fields(item, payload, now=stamp)
        change = StatusChange(
            item_id=item.id,
            operation=operation,
            previous_status=item.status,
            status=updated.status,
            actor_role=actor.role,
            actor_id=actor.actor_id,
            changed_at=stamp,
        )
        logger.info(f"Edited schedule item {item.id} by {actor.role}")
        return TransitionOutcome(item=updated, change=change)

    error = _precondition_error(item, operation)
    if error is not None:
        raise error

    _, target = TRANSITIONS[operation]
    reason = payload.get("reason") if operation is Operation.REJECT else None
    if reason is not None and not isinstance(reason, str):
        raise ValidationError("reason must be text", "reason")
    update: dict[str, Any] = {"status": target, "updated_at": stamp}
    if operation is Operation.REJECT:
        update["rejection_reason"] = reason or None

    updated = item.model_copy(update=update)
    change = StatusChange(
        item_id=item.id,
        operation=operation,
        previous_status=item.status,
        status=target,
        actor_role=actor.role,
        actor_id=actor.actor_id,
        reason=reason or None,
        changed_at=stamp,
    )
    logger.info(
        f"Schedule item {item.id}: {item.status} -> {target} "
        f"({operation}) by {actor.role}",
    )
    return TransitionOutcome(item=updated, change=change)


def try_transition(
    item: ScheduleItem,
    operation: Operation | str,
    actor: ActorContext,
    payload: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> TransitionOutcome:
    """Like :func:`apply_transition`, but returns failures as values."""
    try:
        return apply_transition(item, operation, actor, payload, now)
    except ScheduleError as e:
        logger.warning(f"Rejected {operation} on schedule item {item.id}: {e.message}")
        return TransitionOutcome(item=item, error=e)


def apply_batch(
    items: Iterable[ScheduleItem],
    operation: Operation | str,
    actor: ActorContext,
    payload: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> list[TransitionOutcome]:
    """Apply the same operation to many items, one outcome per item."""
    stamp = now or datetime.now()
    outcomes = [try_transition(item, operation, actor, payload, stamp) for item in items]
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    logger.info(
        f"Batch {operation}: {len(outcomes) - failed} applied, {failed} rejected",
    )
    return outcomes
