from __future__ import annotations

import logging
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from stitchup.core import config
from stitchup.core.timeutils import as_naive_utc, utcnow
from stitchup.models.otp_challenge import OtpChallenge
from stitchup.services.auth import hash_code, verify_code
from stitchup.services.errors import OtpAttemptsExceeded, OtpExpired, OtpInvalid

logger = logging.getLogger(__name__)

COUNTRY_PREFIX = "+91"
CODE_LENGTH = 6
# Fixed namespace so the same phone always maps to the same external uid.
_UID_NAMESPACE = uuid.UUID("6f1c2a7e-3b7d-4c55-9a43-0c7e2f7d9b10")


def normalize_phone(raw: str | None) -> str:
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) < 10:
        raise ValueError("Enter a valid 10-digit phone number")
    return digits[-10:]


def external_uid_for(phone: str) -> str:
    return uuid.uuid5(_UID_NAMESPACE, f"{COUNTRY_PREFIX}{phone}").hex


def generate_code() -> str:
    return f"{secrets.randbelow(10 ** CODE_LENGTH):0{CODE_LENGTH}d}"


@dataclass
class VerifiedIdentity:
    uid: str
    phone: str


def request_challenge(db: Session, raw_phone: str) -> tuple[OtpChallenge, str]:
    """Create a one-time code for ``raw_phone``; returns the challenge and the plain code."""
    phone = normalize_phone(raw_phone)
    code = generate_code()
    challenge = OtpChallenge(
        id=secrets.token_hex(16),
        phone=phone,
        code_hash=hash_code(code),
        attempts=0,
        expires_at=utcnow() + timedelta(seconds=config.OTP_TTL_SECONDS),
    )
    db.add(challenge)
    db.commit()
    db.refresh(challenge)
    logger.info("OTP challenge created")
    return challenge, code


def verify_challenge(db: Session, verification_id: str, code: str) -> VerifiedIdentity:
    challenge = db.get(OtpChallenge, verification_id)
    if not challenge or challenge.consumed_at is not None:
        raise OtpInvalid("Invalid verification code")
    if as_naive_utc(challenge.expires_at) <= as_naive_utc(utcnow()):
        raise OtpExpired("Verification code expired")
    if challenge.attempts >= config.OTP_MAX_ATTEMPTS:
        raise OtpAttemptsExceeded("Too many attempts, request a new code")

    challenge.attempts += 1
    if not verify_code((code or "").strip(), challenge.code_hash):
        db.commit()
        raise OtpInvalid("Invalid verification code")

    challenge.consumed_at = utcnow()
    db.commit()
    return VerifiedIdentity(uid=external_uid_for(challenge.phone), phone=challenge.phone)
