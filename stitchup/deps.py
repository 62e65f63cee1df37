from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from stitchup.core.database import get_db
from stitchup.models.user import User
from stitchup.services.auth import decode_access_token
from stitchup.services.session import SessionContext, build_session_context

bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


def _extract_user_id(payload: Dict[str, Any]) -> Optional[str]:
    raw = payload.get("sub")
    if raw is None:
        return None
    raw = str(raw).strip()
    return raw or None


def authenticate_token(token: str | None, db: Session) -> User | None:
    """Resolve a bearer token to a user, or None. Used by HTTP and WebSocket routes."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except ValueError:
        return None
    user_id = _extract_user_id(payload)
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Reads the JWT, validates it and returns the user from the database."""
    token = credentials.credentials if credentials else None
    user = authenticate_token(token, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.user_id = user.id
    return user


def require_role(*roles: str):
    allowed = {role.strip().lower() for role in roles}

    def _dependency(user: User = Depends(get_current_user)) -> User:
        if (user.role or "").lower() not in allowed:
            logger.warning("Access denied: user_id=%s role=%s allowed=%s", user.id, user.role, sorted(allowed))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this role")
        return user

    return _dependency


require_customer = require_role("customer")


def get_customer_session_context(
    user: User = Depends(require_customer),
    db: Session = Depends(get_db),
) -> SessionContext:
    return build_session_context(db, user)
