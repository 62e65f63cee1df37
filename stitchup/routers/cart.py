from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from stitchup.core.database import get_db
from stitchup.deps import get_customer_session_context
from stitchup.services.session import (
    SessionContext,
    add_to_cart,
    remove_from_cart,
    serialize_cart_item,
    serialize_session,
)
from stitchup.services.tailors import get_tailor

router = APIRouter(prefix="/api/cart", tags=["cart"])


class CartAddPayload(BaseModel):
    tailor_id: str = Field(..., min_length=1)


@router.get("")
def get_cart(context: SessionContext = Depends(get_customer_session_context)):
    return serialize_session(context)


@router.post("")
def add_cart_item(
    payload: CartAddPayload,
    context: SessionContext = Depends(get_customer_session_context),
    db: Session = Depends(get_db),
):
    tailor = get_tailor(db, payload.tailor_id)
    if not tailor:
        raise HTTPException(status_code=404, detail="Tailor not found")
    item, added = add_to_cart(db, context.user, tailor)
    return {"added": added, "item": serialize_cart_item(item)}


@router.delete("/{tailor_id}")
def delete_cart_item(
    tailor_id: str,
    context: SessionContext = Depends(get_customer_session_context),
    db: Session = Depends(get_db),
):
    return {"removed": remove_from_cart(db, context.user, tailor_id)}
