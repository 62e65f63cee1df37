from __future__ import annotations

from stitchup.models.enquiry import Enquiry
from stitchup.models.order import Order
from stitchup.services.enquiry_status import normalize_status
from stitchup.services.event_bus import event_bus

ENQUIRY_CREATED = "enquiry.created"
MESSAGE_APPENDED = "enquiry.message.appended"
ENQUIRY_STATUS_CHANGED = "enquiry.status.changed"
ORDER_CREATED = "order.created"


def build_enquiry_payload(enquiry: Enquiry) -> dict:
    return {
        "enquiry_key": enquiry.id,
        "customer_id": enquiry.customer_id,
        "tailor_id": enquiry.tailor_id,
        "status": normalize_status(enquiry.status),
    }


def build_order_payload(order: Order) -> dict:
    return {
        "order_id": order.id,
        "enquiry_key": order.enquiry_id,
        "customer_id": order.customer_id,
        "tailor_id": order.tailor_id,
        "status": order.status,
    }


def emit_message_appended(payload: dict, created: bool) -> None:
    event_bus.emit(MESSAGE_APPENDED, payload)
    if created:
        event_bus.emit(ENQUIRY_CREATED, payload)


def emit_enquiry_status_changed(payload: dict) -> None:
    event_bus.emit(ENQUIRY_STATUS_CHANGED, payload)


def emit_order_created(order_payload: dict, enquiry_payload: dict) -> None:
    event_bus.emit(ORDER_CREATED, order_payload)
    event_bus.emit(ENQUIRY_STATUS_CHANGED, enquiry_payload)
