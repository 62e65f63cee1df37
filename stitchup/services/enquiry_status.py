from __future__ import annotations

from stitchup.services.errors import InvalidStatusTransition

OPEN = "open"
ACCEPTED = "accepted"
REJECTED = "rejected"

_ALLOWED_TRANSITIONS = {
    OPEN: {ACCEPTED, REJECTED},
    ACCEPTED: set(),
    REJECTED: set(),
}

# Message types that may still be sent once the enquiry left "open".
_TERMINAL_SAFE_TYPES = {"plain", "voice"}


def normalize_status(status: str | None) -> str:
    """The stored value is NULL while the enquiry is open."""
    value = (status or "").strip().lower()
    return value or OPEN


def to_stored(status: str) -> str | None:
    return None if status == OPEN else status


def validate_status_transition(current_status: str | None, new_status: str) -> None:
    current = normalize_status(current_status)
    allowed = _ALLOWED_TRANSITIONS.get(current, set())
    if new_status not in allowed:
        raise InvalidStatusTransition(current, new_status)


def allows_message(current_status: str | None, message_type: str) -> bool:
    if normalize_status(current_status) == OPEN:
        return True
    return message_type in _TERMINAL_SAFE_TYPES
