# backend/tutorlink/services/notification_service.py
"""
Booking notifications.

The NotificationClient is built once at application startup and injected
into the services that need it. Every send method returns a success flag
and never raises: delivery problems are logged and counted, and never
affect the booking or payment operation that triggered them.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from ..core.config import Settings
from ..core.constants import BRAND_NAME
from ..monitoring.prometheus_metrics import prometheus_metrics
from .email import build_email_sender
from .template_service import TemplateService

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send_email(self, to_email: str, subject: str, html_content: str) -> Dict[str, Any]: ...


class NotificationClient:
    BOOKING_CONFIRMATION = "booking_confirmation"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    NEW_BOOKING = "new_booking"

    _SUBJECTS = {
        BOOKING_CONFIRMATION: f"Your {BRAND_NAME} session is confirmed",
        PAYMENT_CONFIRMATION: f"Payment received - {BRAND_NAME}",
        NEW_BOOKING: f"New session booked on {BRAND_NAME}",
    }

    def __init__(self, sender: EmailSender, templates: Optional[TemplateService] = None):
        self.sender = sender
        self.templates = templates or TemplateService()

    def send_booking_confirmation(self, to: str, name: str, details: Mapping[str, Any]) -> bool:
        return self._send(self.BOOKING_CONFIRMATION, to, name, details)

    def send_payment_confirmation(self, to: str, name: str, details: Mapping[str, Any]) -> bool:
        return self._send(self.PAYMENT_CONFIRMATION, to, name, details)

    def send_new_booking_notification(self, to: str, name: str, details: Mapping[str, Any]) -> bool:
        return self._send(self.NEW_BOOKING, to, name, details)

    def _send(self, kind: str, to: str, name: str, details: Mapping[str, Any]) -> bool:
        try:
            html = self.templates.render(f"email/{kind}.html", {"name": name, "details": dict(details)})
            self.sender.send_email(to, self._SUBJECTS[kind], html)
        except Exception as exc:
            logger.error(f"Failed to send {kind} email to {to}: {exc}")
            prometheus_metrics.record_notification(kind, False)
            return False
        prometheus_metrics.record_notification(kind, True)
        return True

    def close(self) -> None:
        logger.debug("Notification client closed")


def build_notification_client(config: Settings) -> NotificationClient:
    return NotificationClient(build_email_sender(config))


def booking_notification_details(booking: Any) -> Dict[str, Any]:
    """Template context describing a booking, safe to build from a detached row."""
    subject = getattr(booking, "subject", None)
    student = getattr(booking, "student", None)
    tutor = getattr(booking, "tutor", None)
    return {
        "booking_id": booking.id,
        "subject": getattr(subject, "name", None),
        "date": booking.booking_date.isoformat() if booking.booking_date else None,
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "duration": str(booking.duration),
        "price": f"{booking.price:.2f}" if booking.price is not None else None,
        "notes": booking.notes,
        "student_name": getattr(student, "name", None),
        "tutor_name": getattr(tutor, "name", None),
    }
