from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from stitchup.core.timeutils import isoformat, now_ms, utcnow
from stitchup.models.enquiry import Enquiry
from stitchup.models.order import Order
from stitchup.models.user import User
from stitchup.schemas.messages import RejectionMessage, SystemMessage
from stitchup.services.enquiries import add_message
from stitchup.services.enquiry_status import ACCEPTED, REJECTED, normalize_status, validate_status_transition
from stitchup.services.errors import EnquiryNotFound, InvalidStatusTransition, NotAParticipant

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "Tailoring Service"
INITIAL_ORDER_STATUS = "working"
WORK_TYPES = {"light", "heavy"}
WORK_STARTED_TEXT = "Work started! {tailor_name} has accepted your request. Tracking ID: {order_id}"


def _parse_price(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not number.is_finite():
        return Decimal("0")
    return number


def _next_order_id(db: Session) -> str:
    stamp = now_ms()
    while db.get(Order, f"order_{stamp}") is not None:
        stamp += 1
    return f"order_{stamp}"


def _load_for_tailor(db: Session, enquiry_key: str, tailor: User) -> Enquiry:
    enquiry = db.get(Enquiry, enquiry_key)
    if not enquiry:
        raise EnquiryNotFound(enquiry_key)
    if enquiry.tailor_id != tailor.id:
        raise NotAParticipant(enquiry_key)
    return enquiry


def _claim_status(db: Session, enquiry: Enquiry, new_status: str, now) -> None:
    """Move an open enquiry to ``new_status``; a concurrent decision makes this fail."""
    updated = (
        db.query(Enquiry)
        .filter(Enquiry.id == enquiry.id, Enquiry.status.is_(None))
        .update({Enquiry.status: new_status, Enquiry.last_updated: now}, synchronize_session=False)
    )
    if updated != 1:
        current = db.query(Enquiry.status).filter(Enquiry.id == enquiry.id).scalar()
        raise InvalidStatusTransition(normalize_status(current), new_status)


def accept_work(
    db: Session,
    *,
    enquiry_key: str,
    tailor: User,
    service_name: str | None = None,
    price: Any = None,
    work_type: str = "light",
) -> Order:
    """Turn an open enquiry into an order.

    The order row, the system message that announces it and the status change
    commit together or not at all.
    """
    if work_type not in WORK_TYPES:
        raise ValueError(f"work_type must be one of {sorted(WORK_TYPES)}")
    enquiry = _load_for_tailor(db, enquiry_key, tailor)
    validate_status_transition(enquiry.status, ACCEPTED)

    now = utcnow()
    try:
        order = Order(
            id=_next_order_id(db),
            enquiry_id=enquiry.id,
            customer_id=enquiry.customer_id,
            customer_name=enquiry.customer_name,
            tailor_id=enquiry.tailor_id,
            tailor_name=enquiry.tailor_name,
            service=(service_name or "").strip() or DEFAULT_SERVICE,
            price=_parse_price(price),
            status=INITIAL_ORDER_STATUS,
            work_type=work_type,
            start_time=now,
            created_at=now,
            last_update=now,
        )
        db.add(order)
        db.flush()
        text = WORK_STARTED_TEXT.format(tailor_name=tailor.display_name, order_id=order.id)
        add_message(db, enquiry, SystemMessage(text=text, order_id=order.id), now=now)
        _claim_status(db, enquiry, ACCEPTED, now)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Accept failed, nothing written", extra={"enquiry_key": enquiry_key})
        raise

    db.refresh(order)
    logger.info("Order created", extra={"enquiry_key": enquiry_key, "order_id": order.id})
    return order


def reject_enquiry(db: Session, *, enquiry_key: str, tailor: User, reason: str | None) -> Enquiry | None:
    """Decline an open enquiry with a reason; a blank reason changes nothing."""
    reason = (reason or "").strip()
    if not reason:
        return None
    enquiry = _load_for_tailor(db, enquiry_key, tailor)
    validate_status_transition(enquiry.status, REJECTED)

    now = utcnow()
    try:
        add_message(db, enquiry, RejectionMessage.because(reason), now=now)
        _claim_status(db, enquiry, REJECTED, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enquiry)
    logger.info("Enquiry rejected", extra={"enquiry_key": enquiry_key})
    return enquiry


def list_orders_for(db: Session, user: User) -> list[Order]:
    query = db.query(Order)
    if user.role == "tailor":
        query = query.filter(Order.tailor_id == user.id)
    else:
        query = query.filter(Order.customer_id == user.id)
    return query.order_by(Order.created_at.desc()).all()


def get_order(db: Session, order_id: str) -> Order | None:
    return db.get(Order, order_id)


def classify_order_status(status: str | None) -> str:
    value = (status or "").strip().lower()
    if value == "ready":
        return "ready"
    if value == "satisfied":
        return "satisfied"
    if value in {"not satisfied", "rejected"}:
        return "not_satisfied"
    return "in_progress"


def is_trackable(status: str | None) -> bool:
    return classify_order_status(status) in {"ready", "satisfied", "not_satisfied"}


def serialize_order(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "enquiry_id": order.enquiry_id,
        "customer_id": order.customer_id,
        "customer_name": order.customer_name,
        "tailor_id": order.tailor_id,
        "tailor_name": order.tailor_name,
        "service": order.service,
        "price": float(order.price or 0),
        "status": order.status,
        "status_group": classify_order_status(order.status),
        "trackable": is_trackable(order.status),
        "work_type": order.work_type,
        "start_time": isoformat(order.start_time),
        "created_at": isoformat(order.created_at),
        "last_update": isoformat(order.last_update),
    }


def list_orders_for_participant(db: Session, role: str, participant_id: str) -> list[dict[str, Any]]:
    viewer = User(id=participant_id, role=role)
    return [serialize_order(order) for order in list_orders_for(db, viewer)]
