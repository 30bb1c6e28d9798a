# tests/services/test_notifications.py
"""Tests for verification email rendering and transports."""

from __future__ import annotations

import logging
import smtplib
from typing import Any

import pytest

from selective_trading.core.errors import NotificationDeliveryFailed
from selective_trading.core.settings import settings
from selective_trading.services import notifications
from selective_trading.services.notifications import (
    SUBJECT,
    LoggingNotifier,
    SmtpNotifier,
    build_verification_message,
    get_notifier,
)


class FakeSMTP:
    instances: list[FakeSMTP] = []
    fail_on_send = False

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: list[tuple[str, Any]] = []
        FakeSMTP.instances.append(self)

    def __enter__(self) -> FakeSMTP:
        return self

    def __exit__(self, *exc: object) -> None:
        self.calls.append(("quit", None))

    def starttls(self) -> None:
        self.calls.append(("starttls", None))

    def login(self, username: str, password: str) -> None:
        self.calls.append(("login", (username, password)))

    def send_message(self, message: Any) -> None:
        if FakeSMTP.fail_on_send:
            raise smtplib.SMTPServerDisconnected("connection lost")
        self.calls.append(("send", message))


@pytest.fixture()
def fake_smtp(monkeypatch: pytest.MonkeyPatch) -> type[FakeSMTP]:
    FakeSMTP.instances = []
    FakeSMTP.fail_on_send = False
    monkeypatch.setattr(notifications.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_message_contains_code_in_both_parts() -> None:
    message = build_verification_message("buyer@example.com", "4821", "Salim")

    assert message["Subject"] == SUBJECT
    assert message["To"] == "buyer@example.com"
    text = message.get_body(preferencelist=("plain",)).get_content()
    html = message.get_body(preferencelist=("html",)).get_content()
    assert "4821" in text
    assert "4821" in html
    assert "Hello Salim!" in text
    assert f"{settings.verification_code_ttl_minutes} minutes" in text


def test_smtp_notifier_sends_over_tls(fake_smtp: type[FakeSMTP]) -> None:
    notifier = SmtpNotifier("smtp.test", 2525, "user", "secret", use_tls=True, timeout=3)
    notifier.send_verification_code("buyer@example.com", "4821", "Salim")

    (client,) = fake_smtp.instances
    assert (client.host, client.port, client.timeout) == ("smtp.test", 2525, 3)
    actions = [name for name, _ in client.calls]
    assert actions == ["starttls", "login", "send", "quit"]
    assert client.calls[1][1] == ("user", "secret")


def test_smtp_failure_raises_delivery_failed(fake_smtp: type[FakeSMTP]) -> None:
    fake_smtp.fail_on_send = True
    notifier = SmtpNotifier("smtp.test", 2525, "user", "secret")

    with pytest.raises(NotificationDeliveryFailed):
        notifier.send_verification_code("buyer@example.com", "4821", "Salim")


def test_logging_notifier_logs_instead_of_sending(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger=notifications.__name__):
        LoggingNotifier().send_verification_code("buyer@example.com", "4821", "Salim")
    assert "4821" in caplog.text


def test_get_notifier_falls_back_without_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "smtp_username", None)
    monkeypatch.setattr(settings, "smtp_password", None)
    assert isinstance(get_notifier(), LoggingNotifier)

    monkeypatch.setattr(settings, "smtp_username", "user")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    assert isinstance(get_notifier(), SmtpNotifier)
