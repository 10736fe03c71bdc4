# backend/tutorlink/services/email.py
"""
Email transports.

``ResendEmailSender`` delivers through the Resend API; ``ConsoleEmailSender``
only logs and is the default outside production. Pick one with
``build_email_sender`` from settings.
"""

import logging
from typing import Any, Dict

from pydantic import SecretStr
import resend

from ..core.config import Settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when the provider refuses or fails to send a message."""


class ConsoleEmailSender:
    """Logs outgoing mail instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[Dict[str, Any]] = []

    def send_email(self, to_email: str, subject: str, html_content: str) -> Dict[str, Any]:
        message = {"to": to_email, "subject": subject, "html": html_content}
        self.sent.append(message)
        logger.info(f"[console email] to={to_email} subject={subject!r}")
        return {"id": f"console-{len(self.sent)}"}


class ResendEmailSender:
    """Sends mail through the Resend API."""

    def __init__(self, api_key: str | SecretStr, from_email: str) -> None:
        secret_value = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        if not secret_value:
            raise ValueError("Resend API key must be provided")
        resend.api_key = secret_value
        self.from_email = from_email

    def send_email(self, to_email: str, subject: str, html_content: str) -> Dict[str, Any]:
        email_data = {
            "from": self.from_email,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as exc:
            raise EmailDeliveryError(str(exc)) from exc
        logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        return dict(response) if response else {}


def build_email_sender(config: Settings):
    """Resend when configured with a key, console otherwise."""
    key = config.resend_api_key
    if config.email_provider == "resend" and key and key.get_secret_value():
        return ResendEmailSender(key, config.from_email)
    if config.email_provider == "resend":
        logger.warning("EMAIL_PROVIDER=resend but RESEND_API_KEY is empty; falling back to console")
    return ConsoleEmailSender()
