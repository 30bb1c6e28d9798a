"""Outbound email carrying verification codes.

Two transports share the :class:`Notifier` interface: SMTP for real
delivery and a logging fallback used when no SMTP credentials are
configured, so development setups can still complete signup by reading the
code from the logs.
"""

from __future__ import annotations

import logging
import smtplib
from datetime import date
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol

from selective_trading.core.errors import NotificationDeliveryFailed
from selective_trading.core.settings import settings

logger = logging.getLogger(__name__)

SUBJECT = "Your Verification Code - Selective Trading"


class Notifier(Protocol):
    """Anything able to deliver a verification code to an email address."""

    def send_verification_code(self, to: str, code: str, name: str) -> None:
        """Deliver ``code`` to ``to``; raise NotificationDeliveryFailed on failure."""
        ...


def build_verification_message(to: str, code: str, name: str) -> EmailMessage:
    """Render the verification email with plain-text and HTML parts."""
    minutes = settings.verification_code_ttl_minutes
    year = date.today().year
    greeting = name or "there"

    message = EmailMessage()
    message["Subject"] = SUBJECT
    message["From"] = formataddr((settings.email_from_name, settings.email_from))
    message["To"] = to
    message.set_content(
        f"Hello {greeting}!\n\n"
        f"Your verification code for Selective Trading is: {code}\n\n"
        f"This code will expire in {minutes} minutes.\n"
        "If you didn't request this code, please ignore this email.\n\n"
        f"(c) {year} Selective Trading. All rights reserved.\n"
    )
    message.add_alternative(
        f"""\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #333;">
    <h2>Hello {greeting}!</h2>
    <p>Your verification code is:</p>
    <p style="font-size: 40px; font-weight: bold; letter-spacing: 10px; color: #dc2626;">{code}</p>
    <p>This code will expire in <strong>{minutes} minutes</strong>.<br>
    If you didn't request this code, please ignore this email.</p>
    <p style="font-size: 12px; color: #888;">&copy; {year} Selective Trading. All rights reserved.</p>
  </body>
</html>
""",
        subtype="html",
    )
    return message


class SmtpNotifier:
    """Delivers verification emails through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        *,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send_verification_code(self, to: str, code: str, name: str) -> None:
        message = build_verification_message(to, code, name)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
                if self.use_tls:
                    client.starttls()
                if self.username and self.password:
                    client.login(self.username, self.password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as err:
            logger.error("Sending verification email to %s failed: %s", to, err)
            raise NotificationDeliveryFailed("Failed to send verification email") from err
        logger.info("Verification email sent to %s", to)


class LoggingNotifier:
    """Development transport: logs the email instead of sending it."""

    def send_verification_code(self, to: str, code: str, name: str) -> None:
        message = build_verification_message(to, code, name)
        logger.warning(
            "SMTP credentials missing; verification email for %s not sent (code %s, subject %r)",
            to,
            code,
            message["Subject"],
        )


def get_notifier() -> Notifier:
    """Return the notifier matching the configured email settings."""
    if not settings.smtp_configured:
        return LoggingNotifier()
    return SmtpNotifier(
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_username,
        settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout_seconds,
    )
