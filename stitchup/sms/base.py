from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Protocol

SENSITIVE_KEYS = {"authorization", "api_key", "variables_values", "token"}


@dataclass
class SmsSendResult:
    success: bool
    message: str | None = None
    response_payload: dict[str, Any] | None = None


class SmsProvider(Protocol):
    name: str

    def send_sms(self, numbers: str, message: str) -> SmsSendResult:
        ...

    def send_otp(self, numbers: str, code: str) -> SmsSendResult:
        ...


def clean_phone(phone: str | None) -> str:
    """Digits only, last ten kept (local Indian mobile number)."""
    digits = re.sub(r"\D", "", phone or "")
    return digits[-10:]


def _mask_value(value: Any) -> Any:
    if value is None:
        return None
    text = str(value)
    if len(text) <= 4:
        return "****"
    return f"****{text[-4:]}"


def sanitize_payload(payload: dict[str, Any]) -> dict[str, Any]:
    def _sanitize(value: Any) -> Any:
        if isinstance(value, dict):
            return {key: _sanitize_value(key, inner) for key, inner in value.items()}
        if isinstance(value, list):
            return [_sanitize(item) for item in value]
        return value

    def _sanitize_value(key: str, value: Any) -> Any:
        if key.lower() in SENSITIVE_KEYS:
            return _mask_value(value)
        return _sanitize(value)

    return _sanitize(payload)


def safe_json(payload: dict[str, Any] | None) -> str:
    try:
        return json.dumps(payload or {}, ensure_ascii=False)
    except (TypeError, ValueError):
        return "{}"
