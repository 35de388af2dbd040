from __future__ import annotations

import smtplib
from types import SimpleNamespace

import pytest

from app.services.email import EmailDeliveryError
from app.services import email as email_service


def _settings(**overrides):
    defaults = dict(
        smtp_host="smtp.campus.test",
        smtp_port=587,
        smtp_username="mailer",
        smtp_password="secret",
        smtp_from_email="rooms@campus.test",
        smtp_from_name="CampusRoom",
        smtp_use_tls=True,
        smtp_use_ssl=False,
        smtp_retry_attempts=2,
        smtp_retry_backoff_seconds=0.0,
        smtp_timeout_seconds=5,
    )
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _fake_smtp(on_send):
    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host
            self.port = port

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

        def starttls(self, context=None):
            return None

        def login(self, username, password):
            return None

        def send_message(self, message):
            return on_send(message)

    return FakeSMTP


def test_send_email_requires_configuration(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_host=None))

    with pytest.raises(EmailDeliveryError, match="not configured"):
        email_service.send_email(to_email="ada@campus.test", subject="Hi", text_content="body")


def test_send_email_retries_connection_drop_and_succeeds(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings())
    attempt_counter = {"count": 0}
    headers: list[str] = []

    def on_send(message):
        attempt_counter["count"] += 1
        if attempt_counter["count"] == 1:
            raise smtplib.SMTPServerDisconnected("network drop")
        headers.append(message["From"])
        return {}

    monkeypatch.setattr(email_service.smtplib, "SMTP", _fake_smtp(on_send))

    email_service.send_email(to_email="ada@campus.test", subject="Reservation approved", text_content="hello")

    assert attempt_counter["count"] == 2
    assert headers == ["CampusRoom <rooms@campus.test>"]


def test_authentication_failure_is_not_retried(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_retry_attempts=3))
    attempt_counter = {"count": 0}

    def on_send(message):
        attempt_counter["count"] += 1
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(email_service.smtplib, "SMTP", _fake_smtp(on_send))

    with pytest.raises(EmailDeliveryError, match="authentication failed"):
        email_service.send_email(to_email="ada@campus.test", subject="Hi", text_content="body")
    assert attempt_counter["count"] == 1


def test_connection_failures_exhaust_retries(monkeypatch):
    monkeypatch.setattr(email_service, "get_settings", lambda: _settings(smtp_retry_attempts=3))
    attempt_counter = {"count": 0}

    def on_send(message):
        attempt_counter["count"] += 1
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(email_service.smtplib, "SMTP", _fake_smtp(on_send))

    with pytest.raises(EmailDeliveryError, match="connection failed"):
        email_service.send_email(to_email="ada@campus.test", subject="Hi", text_content="body")
    assert attempt_counter["count"] == 3
