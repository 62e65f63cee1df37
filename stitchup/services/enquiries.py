from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stitchup.core.timeutils import isoformat, now_ms, utcnow
from stitchup.models.enquiry import Enquiry, EnquiryMessage
from stitchup.models.user import User
from stitchup.schemas.messages import (
    MessageContent,
    PlainMessage,
    PricingMessage,
    RejectionMessage,
    SystemMessage,
    VoiceMessage,
)
from stitchup.services.enquiry_status import allows_message, normalize_status
from stitchup.services.errors import CounterpartNotFound, EnquiryClosed
from stitchup.services.threads import resolve_thread_key, thread_key_for

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100
VOICE_PREVIEW = "🎤 Voice message"
CONTACT_SHARE_TEXT = "My contact number is: {phone}. Feel free to call me!"


@dataclass
class AppendResult:
    enquiry: Enquiry
    message: EnquiryMessage
    created: bool


def resolve_participants(db: Session, user: User, counterpart_id: str) -> tuple[User, User]:
    """Load the other side of the conversation and return (customer, tailor)."""
    expected_role = "customer" if user.role == "tailor" else "tailor"
    counterpart = db.get(User, counterpart_id)
    if not counterpart or counterpart.role != expected_role:
        raise CounterpartNotFound(counterpart_id)
    if user.role == "tailor":
        return counterpart, user
    return user, counterpart


def contact_share_message(tailor: User) -> PlainMessage:
    return PlainMessage(sender="tailor", text=CONTACT_SHARE_TEXT.format(phone=tailor.phone or "N/A"))


def add_message(
    db: Session,
    enquiry: Enquiry,
    content: MessageContent,
    *,
    client_id: int | None = None,
    now=None,
) -> EnquiryMessage:
    """Stage one message row on ``enquiry``; the caller owns the transaction."""
    now = now or utcnow()
    row = EnquiryMessage(
        enquiry=enquiry,
        client_id=client_id or now_ms(),
        sender=content.sender,
        type=content.type,
        text=content.text,
        created_at=now,
    )
    if isinstance(content, PricingMessage):
        row.pricing_service = content.pricing.service
        row.pricing_price = content.pricing.price
    elif isinstance(content, RejectionMessage):
        row.reason = content.reason
    elif isinstance(content, SystemMessage):
        row.order_id = content.order_id
    elif isinstance(content, VoiceMessage):
        row.audio_url = content.audio_url
        row.duration_seconds = content.duration_seconds
    db.add(row)
    enquiry.last_updated = now
    return row


def _append_once(
    db: Session,
    key: str,
    customer: User,
    tailor: User,
    content: MessageContent,
    client_id: int | None,
) -> AppendResult:
    now = utcnow()
    enquiry = db.get(Enquiry, key)
    created = enquiry is None
    if created:
        enquiry = Enquiry(
            id=key,
            customer_id=customer.id,
            customer_name=customer.display_name,
            tailor_id=tailor.id,
            tailor_name=tailor.display_name,
            status=None,
            last_updated=now,
            created_at=now,
        )
        db.add(enquiry)
        db.flush()
    elif not allows_message(enquiry.status, content.type):
        raise EnquiryClosed(normalize_status(enquiry.status), f"send a {content.type} message")

    message = add_message(db, enquiry, content, client_id=client_id, now=now)
    db.commit()
    db.refresh(message)
    return AppendResult(enquiry=enquiry, message=message, created=created)


def append_message(
    db: Session,
    *,
    customer: User,
    tailor: User,
    content: MessageContent,
    client_id: int | None = None,
) -> AppendResult:
    """Append ``content`` to the customer/tailor conversation, creating it on first use.

    Identity fields are written once when the conversation is created and never
    overwritten afterwards. Two writers racing to create the same conversation
    both succeed: the loser of the insert retries against the existing row.
    """
    key = resolve_thread_key(customer.id, tailor.id)
    for attempt in range(2):
        try:
            return _append_once(db, key, customer, tailor, content, client_id)
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.info("Enquiry created concurrently, retrying append", extra={"enquiry_key": key})
        except Exception:
            db.rollback()
            raise
    raise RuntimeError("unreachable")


def get_enquiry(db: Session, key: str) -> Enquiry | None:
    return db.get(Enquiry, key)


def last_message(db: Session, key: str) -> EnquiryMessage | None:
    return (
        db.query(EnquiryMessage)
        .filter(EnquiryMessage.enquiry_id == key)
        .order_by(EnquiryMessage.seq.desc())
        .first()
    )


def serialize_message(message: EnquiryMessage) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": message.client_id,
        "seq": message.seq,
        "from": message.sender,
        "type": message.type,
        "text": message.text,
        "created_at": isoformat(message.created_at),
    }
    if message.type == "pricing":
        data["pricing"] = {
            "service": message.pricing_service,
            "price": float(message.pricing_price or 0),
        }
    elif message.type == "rejection":
        data["reason"] = message.reason
    elif message.type == "system":
        data["order_id"] = message.order_id
    elif message.type == "voice":
        data["audio_url"] = message.audio_url
        data["duration_seconds"] = message.duration_seconds
    return data


def serialize_enquiry(enquiry: Enquiry) -> dict[str, Any]:
    return {
        "id": enquiry.id,
        "customer_id": enquiry.customer_id,
        "customer_name": enquiry.customer_name,
        "tailor_id": enquiry.tailor_id,
        "tailor_name": enquiry.tailor_name,
        "status": normalize_status(enquiry.status),
        "last_updated": isoformat(enquiry.last_updated),
        "messages": [serialize_message(message) for message in enquiry.messages],
    }


def empty_conversation(key: str) -> dict[str, Any]:
    return {"id": key, "status": "open", "last_updated": None, "messages": []}


def get_conversation(db: Session, key: str) -> dict[str, Any]:
    """Full conversation snapshot; an unknown key reads as an empty open thread."""
    enquiry = get_enquiry(db, key)
    if not enquiry:
        return empty_conversation(key)
    return serialize_enquiry(enquiry)


def conversation_for(db: Session, user: User, counterpart_id: str) -> dict[str, Any]:
    return get_conversation(db, thread_key_for(user, counterpart_id))


def message_preview(message: EnquiryMessage | None) -> str:
    if not message:
        return ""
    if message.type == "voice":
        return VOICE_PREVIEW
    return (message.text or "")[:PREVIEW_LENGTH]


def summarize_enquiry(enquiry: Enquiry, last: EnquiryMessage | None, viewer_role: str) -> dict[str, Any]:
    last_sender = last.sender if last else None
    if viewer_role == "tailor":
        has_new = last_sender == "customer"
    else:
        has_new = last_sender in {"tailor", "system"}
    return {
        "id": enquiry.id,
        "customer_id": enquiry.customer_id,
        "customer_name": enquiry.customer_name,
        "tailor_id": enquiry.tailor_id,
        "tailor_name": enquiry.tailor_name,
        "status": normalize_status(enquiry.status),
        "last_updated": isoformat(enquiry.last_updated),
        "preview": message_preview(last),
        "last_sender": last_sender,
        "has_new": has_new,
    }


def list_enquiries_for(db: Session, user: User) -> list[dict[str, Any]]:
    query = db.query(Enquiry)
    if user.role == "tailor":
        query = query.filter(Enquiry.tailor_id == user.id)
    else:
        query = query.filter(Enquiry.customer_id == user.id)
    enquiries = query.order_by(Enquiry.last_updated.desc()).all()
    return [summarize_enquiry(enquiry, last_message(db, enquiry.id), user.role) for enquiry in enquiries]


def list_enquiries_for_participant(db: Session, role: str, participant_id: str) -> list[dict[str, Any]]:
    """Listing snapshot by id, used when no loaded ``User`` is at hand."""
    viewer = User(id=participant_id, role=role)
    return list_enquiries_for(db, viewer)
