"""Role table for schedule operations.

The status engine checks statuses only. Callers combine these role checks
with the engine before applying an operation.
"""

from loguru import logger

from clinisched.schedule.enums import ActorRole, Operation
from clinisched.schedule.errors import PermissionDenied
from clinisched.schedule.models import ActorContext

_ADMINS = frozenset({ActorRole.HOSPITAL_ADMIN, ActorRole.SUPER_ADMIN})
_EVERYONE = frozenset(ActorRole)

PERMITTED_ROLES: dict[Operation, frozenset[ActorRole]] = {
    Operation.APPROVE: _EVERYONE,
    Operation.REJECT: _EVERYONE,
    Operation.ACCEPT: frozenset({ActorRole.CLINICIAN}),
    Operation.COMPLETE: frozenset({ActorRole.CLINICIAN}),
    Operation.CANCEL: _EVERYONE,
    Operation.EDIT: _EVERYONE,
}


def is_permitted(operation: Operation, actor: ActorContext) -> bool:
    """Whether the actor's role may trigger the operation."""
    return actor.role in PERMITTED_ROLES[operation]


def is_admin(actor: ActorContext) -> bool:
    return actor.role in _ADMINS


def ensure_permitted(operation: Operation, actor: ActorContext) -> None:
    """
    Raise when the actor's role may not trigger the operation.

    Raises:
        PermissionDenied: If the role is not in the table for the operation
    """
    if not is_permitted(operation, actor):
        logger.warning(f"Denied {operation} for {actor.role} {actor.actor_id}")
        raise PermissionDenied(operation, actor.role)
