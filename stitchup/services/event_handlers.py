from __future__ import annotations

import functools

from sqlalchemy.orm import Session

from stitchup.core.database import SessionLocal
from stitchup.models.user import User
from stitchup.services.enquiries import get_conversation, list_enquiries_for_participant
from stitchup.services.enquiry_events import ENQUIRY_CREATED, ENQUIRY_STATUS_CHANGED, MESSAGE_APPENDED, ORDER_CREATED
from stitchup.services.event_bus import event_bus
from stitchup.services.live import (
    enquiries_channel,
    enquiry_channel,
    orders_channel,
    session_channel,
    snapshot_hub,
)
from stitchup.services.notifications import notify_tailor_of_enquiry
from stitchup.services.orders import list_orders_for_participant
from stitchup.services.session import AUTH_CHANGED, CART_UPDATED, build_session_context, serialize_session


def _with_session(handler):
    @functools.wraps(handler)
    def wrapper(payload: dict) -> None:
        db: Session = SessionLocal()
        try:
            handler(db, payload)
        finally:
            db.close()

    return wrapper


@_with_session
def handle_enquiry_created(db: Session, payload: dict) -> None:
    notify_tailor_of_enquiry(db, payload)


@_with_session
def handle_enquiry_changed(db: Session, payload: dict) -> None:
    key = payload["enquiry_key"]
    channel = enquiry_channel(key)
    if snapshot_hub.has_subscribers(channel):
        snapshot_hub.publish(channel, get_conversation(db, key))
    for role, participant_id in (("tailor", payload["tailor_id"]), ("customer", payload["customer_id"])):
        channel = enquiries_channel(role, participant_id)
        if snapshot_hub.has_subscribers(channel):
            snapshot_hub.publish(channel, list_enquiries_for_participant(db, role, participant_id))


@_with_session
def handle_order_created(db: Session, payload: dict) -> None:
    for role, participant_id in (("tailor", payload["tailor_id"]), ("customer", payload["customer_id"])):
        channel = orders_channel(role, participant_id)
        if snapshot_hub.has_subscribers(channel):
            snapshot_hub.publish(channel, list_orders_for_participant(db, role, participant_id))


@_with_session
def handle_session_event(db: Session, payload: dict) -> None:
    channel = session_channel(payload["user_id"])
    if not snapshot_hub.has_subscribers(channel):
        return
    user = db.get(User, payload["user_id"])
    if user:
        snapshot_hub.publish(channel, serialize_session(build_session_context(db, user)))


event_bus.subscribe(ENQUIRY_CREATED, handle_enquiry_created)
event_bus.subscribe(MESSAGE_APPENDED, handle_enquiry_changed)
event_bus.subscribe(ENQUIRY_STATUS_CHANGED, handle_enquiry_changed)
event_bus.subscribe(ORDER_CREATED, handle_order_created)
event_bus.subscribe(AUTH_CHANGED, handle_session_event)
event_bus.subscribe(CART_UPDATED, handle_session_event)
