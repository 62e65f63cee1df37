from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from stitchup.core.database import get_db
from stitchup.deps import get_current_user, require_role
from stitchup.models.user import User
from stitchup.schemas.messages import AcceptPayload, PricingMessage, PricingPayload, RejectPayload, SendMessagePayload
from stitchup.services.enquiries import (
    AppendResult,
    append_message,
    contact_share_message,
    conversation_for,
    get_enquiry,
    list_enquiries_for,
    resolve_participants,
    serialize_message,
)
from stitchup.services.enquiry_events import (
    build_enquiry_payload,
    build_order_payload,
    emit_enquiry_status_changed,
    emit_message_appended,
    emit_order_created,
)
from stitchup.services.errors import (
    CounterpartNotFound,
    EnquiryClosed,
    EnquiryError,
    EnquiryNotFound,
    InvalidStatusTransition,
    NotAParticipant,
)
from stitchup.services.orders import accept_work, reject_enquiry, serialize_order
from stitchup.services.presence import set_currently_chatting
from stitchup.services.threads import thread_key_for

router = APIRouter(prefix="/api/enquiries", tags=["enquiries"])


class PresencePayload(BaseModel):
    is_chatting: bool


def _to_http(exc: EnquiryError) -> HTTPException:
    if isinstance(exc, EnquiryNotFound):
        return HTTPException(status_code=404, detail="Enquiry not found")
    if isinstance(exc, CounterpartNotFound):
        return HTTPException(status_code=404, detail="User not found")
    if isinstance(exc, NotAParticipant):
        return HTTPException(status_code=403, detail="Not a participant of this enquiry")
    if isinstance(exc, (InvalidStatusTransition, EnquiryClosed)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _append_response(result: AppendResult, background_tasks: BackgroundTasks) -> dict:
    background_tasks.add_task(emit_message_appended, build_enquiry_payload(result.enquiry), result.created)
    return {
        "enquiry_id": result.enquiry.id,
        "created": result.created,
        "message": serialize_message(result.message),
    }


def _append(db: Session, user: User, counterpart_id: str, content, client_id: int | None = None) -> AppendResult:
    try:
        customer, tailor = resolve_participants(db, user, counterpart_id)
        return append_message(db, customer=customer, tailor=tailor, content=content, client_id=client_id)
    except EnquiryError as exc:
        raise _to_http(exc) from exc


@router.get("")
def list_enquiries(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return list_enquiries_for(db, user)


@router.get("/{counterpart_id}")
def get_enquiry_thread(
    counterpart_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return conversation_for(db, user, counterpart_id)


@router.post("/{counterpart_id}/messages", status_code=201)
def send_message(
    counterpart_id: str,
    payload: SendMessagePayload,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = _append(db, user, counterpart_id, payload.to_content(user.role), payload.client_id)
    return _append_response(result, background_tasks)


@router.post("/{counterpart_id}/pricing", status_code=201)
def send_pricing(
    counterpart_id: str,
    payload: PricingPayload,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("tailor")),
):
    content = PricingMessage.offer(payload.service.strip(), payload.price)
    result = _append(db, user, counterpart_id, content, payload.client_id)
    return _append_response(result, background_tasks)


@router.post("/{counterpart_id}/share-contact", status_code=201)
def share_contact(
    counterpart_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("tailor")),
):
    result = _append(db, user, counterpart_id, contact_share_message(user))
    return _append_response(result, background_tasks)


@router.post("/{counterpart_id}/accept", status_code=201)
def accept(
    counterpart_id: str,
    payload: AcceptPayload,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("tailor")),
):
    key = thread_key_for(user, counterpart_id)
    try:
        order = accept_work(
            db,
            enquiry_key=key,
            tailor=user,
            service_name=payload.service,
            price=payload.price,
            work_type=payload.work_type,
        )
    except EnquiryError as exc:
        raise _to_http(exc) from exc

    enquiry = get_enquiry(db, key)
    background_tasks.add_task(emit_order_created, build_order_payload(order), build_enquiry_payload(enquiry))
    return serialize_order(order)


@router.post("/{counterpart_id}/reject")
def reject(
    counterpart_id: str,
    payload: RejectPayload,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("tailor")),
):
    key = thread_key_for(user, counterpart_id)
    try:
        enquiry = reject_enquiry(db, enquiry_key=key, tailor=user, reason=payload.reason)
    except EnquiryError as exc:
        raise _to_http(exc) from exc

    if enquiry is None:
        return {"rejected": False}
    background_tasks.add_task(emit_enquiry_status_changed, build_enquiry_payload(enquiry))
    return {"rejected": True, "status": "rejected"}


@router.put("/{counterpart_id}/presence")
def update_presence(
    counterpart_id: str,
    payload: PresencePayload,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("tailor")),
):
    return {"ok": set_currently_chatting(db, user.id, payload.is_chatting)}
