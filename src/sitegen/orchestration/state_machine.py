"""Execution status state machine.

PENDING -> RUNNING -> COMPLETED | FAILED, and PENDING | RUNNING -> CANCELLED.
COMPLETED, FAILED and CANCELLED have no outgoing transitions. The retry
coordinator's supersession (FAILED -> CANCELLED) is the only exception and
does not go through :func:`allowed_predecessors`.
"""

from typing import Final
from uuid import UUID

from src.sitegen.core.exceptions import InvalidTransitionError
from src.sitegen.models.enums import ExecutionStatus

_PREDECESSORS: Final[dict[ExecutionStatus, frozenset[ExecutionStatus]]] = {
    # PENDING is only ever set on creation
    ExecutionStatus.PENDING: frozenset(),
    ExecutionStatus.RUNNING: frozenset({ExecutionStatus.PENDING}),
    ExecutionStatus.COMPLETED: frozenset({ExecutionStatus.RUNNING}),
    ExecutionStatus.FAILED: frozenset({ExecutionStatus.RUNNING}),
    ExecutionStatus.CANCELLED: frozenset({ExecutionStatus.PENDING, ExecutionStatus.RUNNING}),
}

SUPERSEDABLE: Final[frozenset[ExecutionStatus]] = frozenset({ExecutionStatus.FAILED})


def allowed_predecessors(new_status: ExecutionStatus) -> frozenset[ExecutionStatus]:
    """Statuses from which ``new_status`` may be entered."""
    return _PREDECESSORS[new_status]


def can_transition(current: ExecutionStatus | str, new_status: ExecutionStatus | str) -> bool:
    return ExecutionStatus(current) in _PREDECESSORS[ExecutionStatus(new_status)]


def ensure_transition(
    entity: str,
    entity_id: UUID,
    current: ExecutionStatus | str,
    new_status: ExecutionStatus | str,
) -> None:
    """Raise InvalidTransitionError unless ``current -> new_status`` is allowed."""
    if not can_transition(current, new_status):
        raise InvalidTransitionError(
            entity, entity_id, ExecutionStatus(current).value, ExecutionStatus(new_status).value
        )
