from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stitchup.models.user import User

logger = logging.getLogger(__name__)


def set_currently_chatting(db: Session, tailor_id: str, value: bool) -> bool:
    """Best-effort busy flag shown to customers; failures are only logged."""
    try:
        tailor = db.get(User, tailor_id)
        if not tailor or tailor.role != "tailor":
            logger.info("Presence update skipped, unknown tailor %s", tailor_id)
            return False
        tailor.is_currently_chatting = bool(value)
        db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Presence update failed for tailor %s", tailor_id)
        return False
