from dataclasses import replace
from typing import Dict, FrozenSet

from ...exceptions import InvalidTransitionError

PENDING = "pending"
CONFIRMED = "confirmed"
IN_ROOM = "in-room"
COMPLETED = "completed"
CANCELLED = "cancelled"
WAITING = "waiting"

STATUSES = (PENDING, CONFIRMED, IN_ROOM, COMPLETED, CANCELLED)

# Older rows use "waiting" for patients that were accepted but not yet called in
STATUS_ALIASES: Dict[str, str] = {WAITING: CONFIRMED}

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({IN_ROOM, CANCELLED}),
    IN_ROOM: frozenset({COMPLETED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

# Statuses shown in the doctor's active queue
QUEUED_STATUSES = frozenset({CONFIRMED, IN_ROOM})


def normalize_status(status: str) -> str:
    value = (status or "").strip().lower()
    return STATUS_ALIASES.get(value, value)


def can_transition(current: str, new_status: str) -> bool:
    return normalize_status(new_status) in ALLOWED_TRANSITIONS.get(normalize_status(current), frozenset())


def is_terminal(status: str) -> bool:
    return not ALLOWED_TRANSITIONS.get(normalize_status(status), frozenset())


def transition(appointment, new_status: str):
    """Return a copy of ``appointment`` moved to ``new_status``.

    The input is never mutated. Raises InvalidTransitionError when the edge is
    not part of the lifecycle, including any move out of a terminal status.
    """
    if not can_transition(appointment.status, new_status):
        raise InvalidTransitionError(appointment.status, new_status)
    return replace(appointment, status=normalize_status(new_status))
