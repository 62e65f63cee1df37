from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stitchup.core import config
from stitchup.models.sms_message_log import SmsMessageLog
from stitchup.sms.base import SmsProvider, SmsSendResult, clean_phone, safe_json, sanitize_payload
from stitchup.sms.fast2sms_provider import Fast2SmsProvider
from stitchup.sms.mock_provider import MockSmsProvider

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "SMS gateway not configured"


class SmsService:
    def __init__(self, provider: SmsProvider | None = None) -> None:
        self._provider = provider
        self._mock_provider = MockSmsProvider()

    def _select_provider(self) -> SmsProvider | None:
        if self._provider is not None:
            return self._provider
        # Read at call time so a key set after import is honoured.
        api_key = config.FAST2SMS_API_KEY
        if api_key:
            return Fast2SmsProvider(api_key)
        if config.IS_DEV or config.IS_TEST:
            return self._mock_provider
        return None

    def send_text(
        self,
        db: Session,
        *,
        phone: str | None,
        message: str,
        purpose: str,
        reference_id: str | None = None,
    ) -> SmsSendResult:
        numbers = clean_phone(phone)
        if not numbers:
            return self.record_skipped(db, purpose=purpose, phone=phone, reference_id=reference_id, reason="No phone number")
        provider = self._select_provider()
        if provider is None:
            return self.record_skipped(db, purpose=purpose, phone=numbers, reference_id=reference_id, reason=NOT_CONFIGURED)
        result = self._call(provider.send_sms, numbers, message, provider_name=provider.name)
        self._log(db, purpose=purpose, phone=numbers, reference_id=reference_id, message=message, result=result)
        return result

    def send_otp(self, db: Session, *, phone: str, code: str, reference_id: str | None = None) -> SmsSendResult:
        numbers = clean_phone(phone)
        provider = self._select_provider()
        if provider is None:
            return self.record_skipped(db, purpose="otp", phone=numbers, reference_id=reference_id, reason=NOT_CONFIGURED)
        result = self._call(provider.send_otp, numbers, code, provider_name=provider.name)
        # The code itself is never written to the log.
        self._log(db, purpose="otp", phone=numbers, reference_id=reference_id, message=None, result=result)
        return result

    def record_skipped(
        self,
        db: Session,
        *,
        purpose: str,
        phone: str | None,
        reference_id: str | None,
        reason: str,
    ) -> SmsSendResult:
        logger.info("SMS skipped (%s): %s", purpose, reason)
        result = SmsSendResult(success=False, message=reason)
        self._log(db, purpose=purpose, phone=phone, reference_id=reference_id, message=None, result=result, status="skipped")
        return result

    def _call(self, send, numbers: str, body: str, *, provider_name: str) -> SmsSendResult:
        try:
            result = send(numbers, body)
        except Exception as exc:
            logger.exception("SMS provider %s raised", provider_name)
            return SmsSendResult(success=False, message=str(exc))
        if not result.success:
            logger.warning("SMS provider %s reported failure: %s", provider_name, result.message)
        return result

    def _log(
        self,
        db: Session,
        *,
        purpose: str,
        phone: str | None,
        reference_id: str | None,
        message: str | None,
        result: SmsSendResult,
        status: str | None = None,
    ) -> None:
        entry = SmsMessageLog(
            purpose=purpose,
            to_phone=phone,
            reference_id=reference_id,
            message=message,
            status=status or ("sent" if result.success else "failed"),
            error=None if result.success else result.message,
            provider_response=safe_json(sanitize_payload(result.response_payload)) if result.response_payload else None,
        )
        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Could not write SMS log entry")


sms_service = SmsService()
