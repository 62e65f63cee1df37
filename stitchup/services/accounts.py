from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from stitchup.core.timeutils import utcnow
from stitchup.models.user import User
from stitchup.services.errors import AccountExists, AccountNotFound
from stitchup.services.otp import COUNTRY_PREFIX, VerifiedIdentity
from stitchup.services.rate_card import DEFAULT_HOURS, DEFAULT_SKILLS

logger = logging.getLogger(__name__)

ROLES = {"customer", "tailor"}
PROFILE_FIELDS = ("name", "full_name", "address", "about")
NO_ACCOUNT_MESSAGE = "No account found for this number. Please sign up first."


def find_user_for_identity(db: Session, identity: VerifiedIdentity) -> User | None:
    """Direct id/uid match first; phone lookup second, which links the uid to the record."""
    user = db.query(User).filter(or_(User.id == identity.uid, User.uid == identity.uid)).first()
    if user:
        return user

    user = (
        db.query(User)
        .filter(User.phone.in_([identity.phone, f"{COUNTRY_PREFIX}{identity.phone}"]))
        .order_by(User.created_at.asc())
        .first()
    )
    if user:
        user.uid = identity.uid
        user.phone = identity.phone
        db.commit()
        db.refresh(user)
        logger.info("Linked verified phone to existing account %s", user.id)
    return user


def login_with_identity(db: Session, identity: VerifiedIdentity) -> User:
    user = find_user_for_identity(db, identity)
    if not user:
        raise AccountNotFound(NO_ACCOUNT_MESSAGE)
    return user


def signup(db: Session, identity: VerifiedIdentity, *, name: str, role: str) -> User:
    if role not in ROLES:
        raise ValueError(f"role must be one of {sorted(ROLES)}")
    if find_user_for_identity(db, identity):
        raise AccountExists("An account already exists for this number")

    now = utcnow()
    user = User(
        id=identity.uid,
        uid=identity.uid,
        phone=identity.phone,
        role=role,
        name=name.strip(),
        created_at=now,
        updated_at=now,
    )
    if role == "tailor":
        user.skills = dict(DEFAULT_SKILLS)
        user.hours = dict(DEFAULT_HOURS)
        user.pricing = {}
        user.is_available = True
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Account created for role %s", role)
    return user


def update_profile(db: Session, user: User, changes: dict[str, Any]) -> User:
    for field in PROFILE_FIELDS:
        value = changes.get(field)
        if value is None or not str(value).strip():
            continue
        setattr(user, field, str(value).strip())
    user.updated_at = utcnow()
    db.commit()
    db.refresh(user)
    return user


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "uid": user.uid,
        "phone": user.phone,
        "role": user.role,
        "name": user.name,
        "full_name": user.full_name,
        "display_name": user.display_name,
        "address": user.address,
        "about": user.about,
    }
