from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from stitchup.core import config
from stitchup.models.user import User
from stitchup.sms.base import SmsSendResult, clean_phone
from stitchup.sms.service import SmsService, sms_service as default_sms_service

logger = logging.getLogger(__name__)


def notify_tailor_of_enquiry(
    db: Session,
    payload: dict[str, Any],
    sms_service: SmsService | None = None,
) -> SmsSendResult | None:
    """Text the tailor once when a conversation is opened. Never raises."""
    service = sms_service or default_sms_service
    enquiry_key = payload.get("enquiry_key")
    tailor_id = payload.get("tailor_id")
    if not enquiry_key or not tailor_id:
        logger.info("Enquiry notification skipped, incomplete payload")
        return None

    tailor = db.get(User, tailor_id)
    if not tailor:
        logger.info("Enquiry notification skipped, tailor not found", extra={"enquiry_key": enquiry_key})
        return None
    if not clean_phone(tailor.phone):
        logger.info("Enquiry notification skipped, tailor has no phone", extra={"enquiry_key": enquiry_key})
        return None

    try:
        result = service.send_text(
            db,
            phone=tailor.phone,
            message=config.ENQUIRY_SMS_TEXT,
            purpose="enquiry_created",
            reference_id=enquiry_key,
        )
    except Exception:
        logger.exception("Enquiry notification failed", extra={"enquiry_key": enquiry_key})
        return None
    if result.success:
        logger.info("Enquiry notification sent", extra={"enquiry_key": enquiry_key})
    return result


def send_otp_code(
    db: Session,
    *,
    phone: str,
    code: str,
    verification_id: str,
    sms_service: SmsService | None = None,
) -> bool:
    service = sms_service or default_sms_service
    try:
        result = service.send_otp(db, phone=phone, code=code, reference_id=verification_id)
    except Exception:
        logger.exception("OTP SMS failed")
        return False
    return result.success
