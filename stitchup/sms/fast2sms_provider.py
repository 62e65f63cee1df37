from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from stitchup.core import config
from stitchup.sms.base import SmsProvider, SmsSendResult

logger = logging.getLogger(__name__)


class Fast2SmsProvider(SmsProvider):
    name = "fast2sms"

    def __init__(
        self,
        api_key: str,
        *,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url or config.FAST2SMS_URL
        self._timeout = timeout if timeout is not None else config.SMS_TIMEOUT_SECONDS
        self._transport = transport

    def send_sms(self, numbers: str, message: str) -> SmsSendResult:
        params = {
            "authorization": self._api_key,
            "route": "q",
            "message": message,
            "language": "english",
            "flash": "0",
            "numbers": numbers,
        }
        return self._send(params)

    def send_otp(self, numbers: str, code: str) -> SmsSendResult:
        params = {
            "authorization": self._api_key,
            "route": "otp",
            "variables_values": code,
            "flash": "0",
            "numbers": numbers,
        }
        return self._send(params)

    def _send(self, params: dict[str, Any]) -> SmsSendResult:
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self._url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Fast2SMS request failed: %s", exc.__class__.__name__)
            return SmsSendResult(success=False, message=str(exc))

        try:
            data = response.json()
        except json.JSONDecodeError:
            data = {"raw": response.text}

        if not isinstance(data, dict):
            data = {"raw": data}
        message = data.get("message")
        if isinstance(message, list):
            message = "; ".join(str(item) for item in message)
        if response.status_code >= 400 or data.get("return") is not True:
            return SmsSendResult(
                success=False,
                message=message or f"Fast2SMS error {response.status_code}",
                response_payload=data,
            )
        return SmsSendResult(success=True, message=message, response_payload=data)
