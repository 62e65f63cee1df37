from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stitchup.core.timeutils import utcnow
from stitchup.models.user import User
from stitchup.services.eta import estimate_hours, format_eta
from stitchup.services.errors import ProfileSaveError
from stitchup.services.rate_card import DEFAULT_HOURS, DEFAULT_SKILLS, clean_pricing, min_price, rate_card_rows

logger = logging.getLogger(__name__)

DEFAULT_RATING = 4.5
DEFAULT_YEARS = 5
DEFAULT_LOCATION = "Local Area"
DEFAULT_ABOUT = (
    "Premium tailoring services with doorstep pickup and delivery. "
    "Skilled in alterations and custom stitching."
)


def tailor_card(tailor: User) -> dict[str, Any]:
    hours = estimate_hours(tailor.heavy_tasks or 0, tailor.light_tasks or 0)
    return {
        "id": tailor.id,
        "name": tailor.display_name,
        "image": tailor.shop_photo_url,
        "rating": tailor.rating if tailor.rating is not None else DEFAULT_RATING,
        "reviews_count": tailor.reviews_count or 0,
        "price_from": float(tailor.price_from or 0),
        "distance_km": tailor.distance_km or 0,
        "current_orders": tailor.current_orders or 0,
        "heavy_tasks": tailor.heavy_tasks or 0,
        "light_tasks": tailor.light_tasks or 0,
        "eta_hours": hours,
        "eta": format_eta(hours),
        "is_available": tailor.is_available if tailor.is_available is not None else True,
        "is_currently_chatting": bool(tailor.is_currently_chatting),
    }


def tailor_detail(tailor: User) -> dict[str, Any]:
    data = tailor_card(tailor)
    data.update(
        {
            "years": tailor.years_exp or DEFAULT_YEARS,
            "location": tailor.address or DEFAULT_LOCATION,
            "about": tailor.about or DEFAULT_ABOUT,
            "banner": tailor.banner_url,
            "hours": tailor.hours or dict(DEFAULT_HOURS),
            "skills": tailor.skills or dict(DEFAULT_SKILLS),
            "is_online": data["is_available"],
            "rate_card": rate_card_rows(tailor.pricing),
        }
    )
    return data


def list_tailors(db: Session, *, available: bool | None = None, q: str | None = None) -> list[User]:
    query = db.query(User).filter(User.role == "tailor")
    if available is not None:
        query = query.filter(User.is_available.is_(available))
    tailors = query.order_by(User.distance_km.asc(), User.id.asc()).all()
    needle = (q or "").strip().lower()
    if needle:
        tailors = [tailor for tailor in tailors if needle in tailor.display_name.lower()]
    return tailors


def get_tailor(db: Session, tailor_id: str) -> User | None:
    tailor = db.get(User, tailor_id)
    if not tailor or tailor.role != "tailor":
        return None
    return tailor


def save_profile(db: Session, tailor: User, changes: dict[str, Any]) -> User:
    """Persist the tailor's settings; ``price_from`` always follows the rate card."""
    if "pricing" in changes and changes["pricing"] is not None:
        tailor.pricing = clean_pricing(changes["pricing"])
    tailor.price_from = min_price(tailor.pricing)
    for field in ("skills", "hours", "kyc"):
        if changes.get(field) is not None:
            setattr(tailor, field, dict(changes[field]))
    for field in ("is_available", "heavy_tasks", "light_tasks", "years_exp", "about", "address"):
        if changes.get(field) is not None:
            setattr(tailor, field, changes[field])
    tailor.updated_at = utcnow()
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to save profile for tailor %s", tailor.id)
        raise ProfileSaveError("Failed to save profile") from exc
    db.refresh(tailor)
    return tailor
