"""Tests for best-effort OTP delivery."""

import smtplib
from email import message_from_string

import httpx
import pytest

from market_api.core.config import Settings
from market_api.services import notification_service
from market_api.utils import email as email_utils
from market_api.utils import sms as sms_utils


@pytest.fixture
def channel_settings(settings):
    settings.SMTP_HOST = "smtp.example.com"
    settings.SMTP_USER = "mailer"
    settings.SMTP_PASS = "mailer-pass"
    settings.EMAIL_FROM = "noreply@example.com"
    settings.ESKIZ_EMAIL = "sms@example.com"
    settings.ESKIZ_PASSWORD = "sms-pass"
    settings.NOTIFY_MAX_ATTEMPTS = 3
    settings.NOTIFY_BACKOFF_SECONDS = 0.5
    return settings


class TestDeliverWithRetry:

    def test_retries_with_exponential_backoff_until_success(self):
        calls = []
        sleeps = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise smtplib.SMTPException("temporary")

        assert notification_service.deliver_with_retry("email", flaky, 3, 0.5, sleeps.append) is True
        assert len(calls) == 3
        assert sleeps == [0.5, 1.0]

    def test_gives_up_after_max_attempts_without_raising(self):
        sleeps = []

        def down():
            raise httpx.ConnectError("unreachable")

        assert notification_service.deliver_with_retry("sms", down, 2, 1.0, sleeps.append) is False
        assert sleeps == [1.0]


class TestDispatchOtp:

    def test_unconfigured_channels_are_skipped(self, settings):
        record = notification_service.dispatch_otp(
            settings, "a@x.com", "+998901234567", "Ali", "123456", sleep=lambda s: None
        )

        assert record == {}

    def test_failing_channel_is_swallowed_and_recorded(self, channel_settings, monkeypatch):
        delivered = []

        def fake_email(settings, to, otp, full_name=""):
            delivered.append((to, otp, full_name))

        def broken_sms(settings, phone, otp):
            raise httpx.ConnectError("gateway down")

        monkeypatch.setattr(email_utils, "send_otp_email", fake_email)
        monkeypatch.setattr(sms_utils, "send_otp_sms", broken_sms)

        record = notification_service.dispatch_otp(
            channel_settings, "a@x.com", "+998901234567", "Ali", "654321", sleep=lambda s: None
        )

        assert record == {"email": True, "sms": False}
        assert delivered == [("a@x.com", "654321", "Ali")]


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.sent = []
        self.logged_in = None
        FakeSMTP.instances.append(self)

    def ehlo(self):
        pass

    def starttls(self):
        pass

    def login(self, user, password):
        self.logged_in = (user, password)

    def sendmail(self, from_addr, to_addrs, msg):
        self.sent.append((from_addr, to_addrs, msg))

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_otp_email_goes_through_authenticated_smtp(channel_settings, monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_utils.smtplib, "SMTP", FakeSMTP)

    email_utils.send_otp_email(channel_settings, "a@x.com", "246810", "Ali")

    conn = FakeSMTP.instances[0]
    assert (conn.host, conn.port) == ("smtp.example.com", 587)
    assert conn.timeout == channel_settings.NOTIFY_TIMEOUT_SECONDS
    assert conn.logged_in == ("mailer", "mailer-pass")
    from_addr, to_addrs, message = conn.sent[0]
    assert from_addr == "noreply@example.com"
    assert to_addrs == ["a@x.com"]
    parsed = message_from_string(message)
    bodies = [
        part.get_payload(decode=True).decode("utf-8")
        for part in parsed.walk()
        if not part.is_multipart()
    ]
    assert any("246810" in body for body in bodies)


def test_otp_sms_logs_in_then_sends(channel_settings, monkeypatch):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/auth/login"):
            return httpx.Response(200, json={"data": {"token": "eskiz-token"}})
        return httpx.Response(200, json={"status": "waiting"})

    real_client = httpx.Client

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(sms_utils.httpx, "Client", client_factory)

    sms_utils.send_otp_sms(channel_settings, "+998901234567", "135790")

    login, send = requests
    assert login.url.path == "/api/auth/login"
    assert send.url.path == "/api/message/sms/send"
    assert send.headers["Authorization"] == "Bearer eskiz-token"
    body = send.content.decode()
    assert "mobile_phone=998901234567" in body
    assert "135790" in body


def test_sms_without_token_is_a_delivery_error(channel_settings, monkeypatch):
    real_client = httpx.Client

    def client_factory(**kwargs):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": {}}))
        return real_client(transport=transport, **kwargs)

    monkeypatch.setattr(sms_utils.httpx, "Client", client_factory)

    with pytest.raises(ValueError):
        sms_utils.send_otp_sms(channel_settings, "+998901234567", "135790")


def test_channel_flags_follow_credentials():
    assert Settings(SMTP_HOST="", SMTP_USER="", SMTP_PASS="", EMAIL_FROM="").email_configured is False
    assert Settings(ESKIZ_EMAIL="e", ESKIZ_PASSWORD="p").sms_configured is True
