from __future__ import annotations

import logging

from stitchup.sms.base import SmsProvider, SmsSendResult

logger = logging.getLogger(__name__)


class MockSmsProvider(SmsProvider):
    """Records messages in memory instead of contacting a gateway."""

    name = "mock"

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send_sms(self, numbers: str, message: str) -> SmsSendResult:
        self.sent.append((numbers, message))
        logger.info("Mock SMS to %s", numbers)
        return SmsSendResult(success=True, message="mock")

    def send_otp(self, numbers: str, code: str) -> SmsSendResult:
        self.sent.append((numbers, code))
        logger.info("Mock OTP SMS to %s", numbers)
        return SmsSendResult(success=True, message="mock")
