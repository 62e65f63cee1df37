from __future__ import annotations

from stitchup.models.user import User


def resolve_thread_key(customer_id: str, tailor_id: str) -> str:
    """Composite key of the conversation between one customer and one tailor.

    Order matters: the customer always comes first. Identifiers are used as
    given, callers pass canonical ids.
    """
    if not customer_id or not tailor_id:
        raise ValueError("customer_id and tailor_id are required")
    return f"{customer_id}_{tailor_id}"


def participants_for(user: User, counterpart_id: str) -> tuple[str, str]:
    """Return (customer_id, tailor_id) for a thread seen from ``user``'s side."""
    if user.role == "tailor":
        return counterpart_id, user.id
    return user.id, counterpart_id


def thread_key_for(user: User, counterpart_id: str) -> str:
    customer_id, tailor_id = participants_for(user, counterpart_id)
    return resolve_thread_key(customer_id, tailor_id)
