from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stitchup.core.timeutils import isoformat, utcnow
from stitchup.models.cart_item import CartItem
from stitchup.models.user import User
from stitchup.services.event_bus import event_bus

logger = logging.getLogger(__name__)

AUTH_CHANGED = "auth.changed"
CART_UPDATED = "cart.updated"


@dataclass
class SessionContext:
    """Per-request view of who is signed in and what they saved."""

    user: User
    cart: list[CartItem] = field(default_factory=list)

    @property
    def cart_count(self) -> int:
        return len(self.cart)


def list_cart(db: Session, user: User) -> list[CartItem]:
    return (
        db.query(CartItem)
        .filter(CartItem.user_id == user.id)
        .order_by(CartItem.added_at.asc(), CartItem.id.asc())
        .all()
    )


def build_session_context(db: Session, user: User) -> SessionContext:
    return SessionContext(user=user, cart=list_cart(db, user))


def emit_auth_changed(user: User, reason: str) -> None:
    event_bus.emit(AUTH_CHANGED, {"user_id": user.id, "role": user.role, "reason": reason})


def _emit_cart_updated(db: Session, user: User) -> None:
    event_bus.emit(CART_UPDATED, {"user_id": user.id, "cart_count": len(list_cart(db, user))})


def add_to_cart(db: Session, user: User, tailor: User) -> tuple[CartItem, bool]:
    """Save a tailor to the user's cart; returns (item, added). Adding twice is a no-op."""
    existing = (
        db.query(CartItem)
        .filter(CartItem.user_id == user.id, CartItem.tailor_id == tailor.id)
        .first()
    )
    if existing:
        return existing, False

    item = CartItem(
        user_id=user.id,
        tailor_id=tailor.id,
        tailor_name=tailor.display_name,
        tailor_image=tailor.shop_photo_url,
        price_from=tailor.price_from or 0,
        distance_km=tailor.distance_km or 0,
        rating=tailor.rating,
        added_at=utcnow(),
    )
    db.add(item)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = (
            db.query(CartItem)
            .filter(CartItem.user_id == user.id, CartItem.tailor_id == tailor.id)
            .one()
        )
        return existing, False
    db.refresh(item)
    _emit_cart_updated(db, user)
    return item, True


def remove_from_cart(db: Session, user: User, tailor_id: str) -> bool:
    removed = (
        db.query(CartItem)
        .filter(CartItem.user_id == user.id, CartItem.tailor_id == tailor_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if removed:
        _emit_cart_updated(db, user)
    return bool(removed)


def serialize_cart_item(item: CartItem) -> dict[str, Any]:
    return {
        "tailor_id": item.tailor_id,
        "tailor_name": item.tailor_name,
        "tailor_image": item.tailor_image,
        "price_from": float(item.price_from or 0),
        "distance_km": item.distance_km,
        "rating": item.rating,
        "added_at": isoformat(item.added_at),
    }


def serialize_session(context: SessionContext) -> dict[str, Any]:
    return {
        "user_id": context.user.id,
        "role": context.user.role,
        "cart_count": context.cart_count,
        "cart": [serialize_cart_item(item) for item in context.cart],
    }
