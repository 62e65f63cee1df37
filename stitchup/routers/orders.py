from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from stitchup.core.database import get_db
from stitchup.deps import get_current_user, require_role
from stitchup.models.user import User
from stitchup.services.dashboard import tailor_dashboard
from stitchup.services.orders import get_order, list_orders_for, serialize_order

router = APIRouter(prefix="/api", tags=["orders"])


@router.get("/orders")
def list_orders(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return [serialize_order(order) for order in list_orders_for(db, user)]


@router.get("/orders/{order_id}")
def get_order_detail(
    order_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    order = get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if user.id not in {order.customer_id, order.tailor_id}:
        raise HTTPException(status_code=403, detail="Not a participant of this order")
    return serialize_order(order)


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    user: User = Depends(require_role("tailor")),
):
    return tailor_dashboard(db, user)
