import json

import httpx
import pytest

from stitchup.core import config
from stitchup.models.sms_message_log import SmsMessageLog
from stitchup.services.enquiry_events import build_enquiry_payload
from stitchup.services.notifications import notify_tailor_of_enquiry, send_otp_code
from stitchup.sms.base import SmsSendResult, clean_phone, sanitize_payload
from stitchup.sms.fast2sms_provider import Fast2SmsProvider
from stitchup.sms.mock_provider import MockSmsProvider
from stitchup.sms.service import SmsService
from tests.fixtures_data import TAILOR, TAILOR_WITHOUT_PHONE, make_user


class RecordingSmsService:
    def __init__(self):
        self.calls = []

    def send_text(self, db, **kwargs):
        self.calls.append(kwargs)
        return SmsSendResult(success=True, message="queued")


def _payload(tailor_id: str) -> dict:
    return {"enquiry_key": f"cust-1_{tailor_id}", "customer_id": "cust-1", "tailor_id": tailor_id, "status": "open"}


def test_tailor_with_phone_receives_enquiry_text(db):
    make_user(db, TAILOR)
    service = RecordingSmsService()

    result = notify_tailor_of_enquiry(db, _payload("tail-1"), sms_service=service)

    assert result.success is True
    assert service.calls == [
        {
            "phone": "+91 98765-00002",
            "message": config.ENQUIRY_SMS_TEXT,
            "purpose": "enquiry_created",
            "reference_id": "cust-1_tail-1",
        }
    ]


def test_tailor_without_phone_is_skipped(db):
    make_user(db, TAILOR_WITHOUT_PHONE)
    service = RecordingSmsService()

    assert notify_tailor_of_enquiry(db, _payload("tail-2"), sms_service=service) is None
    assert service.calls == []


@pytest.mark.parametrize("payload", [{}, {"enquiry_key": "cust-1_tail-9", "tailor_id": "tail-9"}])
def test_incomplete_payload_or_unknown_tailor_is_skipped(db, payload):
    service = RecordingSmsService()

    assert notify_tailor_of_enquiry(db, payload, sms_service=service) is None
    assert service.calls == []


def test_gateway_errors_never_escape(db):
    make_user(db, TAILOR)

    class ExplodingService:
        def send_text(self, db, **kwargs):
            raise RuntimeError("gateway down")

    assert notify_tailor_of_enquiry(db, _payload("tail-1"), sms_service=ExplodingService()) is None


def test_enquiry_payload_carries_routing_fields(db):
    from stitchup.models.enquiry import Enquiry

    enquiry = Enquiry(id="cust-1_tail-1", customer_id="cust-1", tailor_id="tail-1", status=None)

    assert build_enquiry_payload(enquiry) == _payload("tail-1")


def test_mock_provider_is_used_in_test_environment_and_logged(db):
    service = SmsService()

    result = service.send_text(db, phone="+91 98765-00002", message="new enquiry", purpose="enquiry_created", reference_id="k")

    assert result.success is True
    entry = db.query(SmsMessageLog).one()
    assert entry.status == "sent"
    assert entry.to_phone == "9876500002"
    assert entry.message == "new enquiry"


def test_unconfigured_gateway_outside_dev_is_recorded_as_skipped(db, monkeypatch):
    monkeypatch.setattr(config, "IS_TEST", False)
    monkeypatch.setattr(config, "IS_DEV", False)

    result = SmsService().send_text(db, phone="9876500002", message="new enquiry", purpose="enquiry_created")

    assert result.success is False
    entry = db.query(SmsMessageLog).one()
    assert entry.status == "skipped"
    assert entry.error == "SMS gateway not configured"


def test_configured_key_selects_fast2sms(db, monkeypatch):
    monkeypatch.setattr(config, "FAST2SMS_API_KEY", "live-key")

    provider = SmsService()._select_provider()

    assert isinstance(provider, Fast2SmsProvider)


def test_otp_code_is_not_written_to_log(db):
    provider = MockSmsProvider()

    sent = send_otp_code(db, phone="9876500001", code="123456", verification_id="v1", sms_service=SmsService(provider))

    assert sent is True
    assert provider.sent == [("9876500001", "123456")]
    entry = db.query(SmsMessageLog).one()
    assert entry.purpose == "otp"
    assert entry.message is None


def test_fast2sms_success_sends_quick_route_request():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json={"return": True, "request_id": "abc", "message": ["SMS sent successfully."]})

    provider = Fast2SmsProvider("secret", url="https://sms.test/bulk", transport=httpx.MockTransport(handler))

    result = provider.send_sms("9876500002", "new enquiry")

    assert result.success is True
    assert result.message == "SMS sent successfully."
    assert captured["params"] == {
        "authorization": "secret",
        "route": "q",
        "message": "new enquiry",
        "language": "english",
        "flash": "0",
        "numbers": "9876500002",
    }


def test_fast2sms_rejection_is_a_failed_result():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"return": False, "status_code": 412, "message": "Invalid Authentication"})

    provider = Fast2SmsProvider("bad", url="https://sms.test/bulk", transport=httpx.MockTransport(handler))

    result = provider.send_sms("9876500002", "new enquiry")

    assert result.success is False
    assert result.message == "Invalid Authentication"


def test_fast2sms_network_error_is_a_failed_result():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    provider = Fast2SmsProvider("secret", url="https://sms.test/bulk", transport=httpx.MockTransport(handler))

    assert provider.send_otp("9876500002", "123456").success is False


def test_phone_cleanup_and_payload_masking():
    assert clean_phone("+91 98765-00002") == "9876500002"
    assert clean_phone(None) == ""
    masked = sanitize_payload({"authorization": "secret-key", "nested": {"variables_values": "123456"}})
    assert masked == {"authorization": "****-key", "nested": {"variables_values": "****3456"}}
    assert json.dumps(masked)
