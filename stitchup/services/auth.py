from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import jwt

from stitchup.core.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET_KEY


# =========================
# OTP CODE HASHING (bcrypt directly)
# =========================
def hash_code(code: str) -> str:
    hashed = bcrypt.hashpw((code or "").encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_code(plain_code: str, code_hash: str) -> bool:
    try:
        return bcrypt.checkpw((plain_code or "").encode("utf-8"), (code_hash or "").encode("utf-8"))
    except ValueError:
        return False


# =========================
# JWT HELPERS
# =========================
def create_access_token(
    user_id: str,
    extra: Optional[Dict[str, Any]] = None,
    expires_minutes: int = JWT_EXPIRE_MINUTES,
) -> str:
    """
    "sub" must be a string, python-jose rejects anything else.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if extra:
        payload.update(extra)

    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Returns the JWT payload or raises ValueError when invalid or expired.
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except Exception as e:
        raise ValueError("Invalid or expired token") from e
