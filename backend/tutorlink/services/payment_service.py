# backend/tutorlink/services/payment_service.py
"""
Payment reconciliation between bookings and the payment gateway.

Two paths end in the same paid state:

- the gateway path: ``create_payment_intent`` then ``confirm_payment``,
  which advances the booking only when the gateway reports ``succeeded``
- ``mark_paid_manually``: an admin override with no gateway round-trip

Both go through ``_finalize_payment``, whose conditional UPDATE lets
exactly one caller flip a booking to paid. Only that caller credits the
tutor's earnings and gets notifications back as deferred tasks, which the
HTTP layer runs after the response is sent.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import RoleName
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    PaymentActionRequiredException,
    ValidationException,
)
from ..integrations.payment_gateway import PaymentGatewayError, StripePaymentGateway
from ..models.booking import Booking
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from .base import BaseService, DeferredTask
from .notification_service import NotificationClient, booking_notification_details
from .pricing import calculate_tutor_earnings, chargeable_amount, to_minor_units

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntentResult:
    payment_intent_id: str
    client_secret: Optional[str]
    amount: float
    currency: str


@dataclass
class PaymentConfirmation:
    booking: Booking
    already_paid: bool
    deferred_tasks: List[DeferredTask] = field(default_factory=list)

    @property
    def queued_notifications(self) -> List[str]:
        return [task.name for task in self.deferred_tasks]


class PaymentService(BaseService):
    def __init__(
        self,
        db: Session,
        payment_gateway: StripePaymentGateway,
        notification_client: Optional[NotificationClient] = None,
        booking_repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        super().__init__(db)
        self.payment_gateway = payment_gateway
        self.notification_client = notification_client
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("create_payment_intent")
    def create_payment_intent(self, booking_id: str, user: User) -> PaymentIntentResult:
        """
        Open a gateway charge for the booking's price.

        The intent id is stored on the booking; the booking stays unpaid
        until ``confirm_payment`` sees the gateway report success.
        """
        booking = self._get_payable_booking(booking_id, user)
        amount = chargeable_amount(booking.price, settings.minimum_charge)
        currency = settings.stripe_currency

        try:
            intent = self.payment_gateway.create_intent(
                to_minor_units(amount),
                currency,
                metadata={
                    "booking_id": booking.id,
                    "student_id": booking.student_id,
                    "tutor_id": booking.tutor_id,
                },
            )
        except PaymentGatewayError as e:
            prometheus_metrics.record_payment_event("intent_failed")
            raise ValidationException(str(e), code="PAYMENT_GATEWAY_ERROR")

        with self.transaction():
            booking.payment_intent_id = intent.id
            self.repository.flush()

        prometheus_metrics.record_payment_event("intent_created")
        self.log_operation("payment_intent_created", booking_id=booking.id, intent_id=intent.id)
        return PaymentIntentResult(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=float(amount),
            currency=currency,
        )

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(self, booking_id: str, user: User) -> PaymentConfirmation:
        """
        Reconcile the booking with its gateway intent.

        A booking that is already paid returns immediately without touching
        the gateway or sending anything.
        """
        booking = self._get_booking_or_404(booking_id)
        self._ensure_student(booking, user)
        if booking.is_paid:
            return PaymentConfirmation(booking=booking, already_paid=True)
        if booking.is_cancelled:
            raise ValidationException("Cannot pay for a cancelled booking", code="BOOKING_CANCELLED")
        if not booking.payment_intent_id:
            raise ValidationException("No payment intent found for this booking", code="NO_PAYMENT_INTENT")

        try:
            intent = self.payment_gateway.retrieve_intent(booking.payment_intent_id)
        except PaymentGatewayError as e:
            raise ValidationException(f"Could not verify payment: {e}", code="PAYMENT_GATEWAY_ERROR")

        if intent.status == "succeeded":
            won = self._finalize_payment(booking)
            tasks: List[DeferredTask] = []
            if won:
                tasks = self._notification_tasks(booking, [("payment_confirmation", booking.student)])
            return PaymentConfirmation(booking=booking, already_paid=not won, deferred_tasks=tasks)

        if intent.status == "requires_payment_method":
            raise ValidationException(
                "Payment failed. Please provide a valid payment method",
                code="PAYMENT_METHOD_REQUIRED",
                details={"status": intent.status},
            )
        if intent.status == "requires_confirmation":
            raise ValidationException(
                "Payment requires confirmation",
                code="PAYMENT_CONFIRMATION_REQUIRED",
                details={"status": intent.status},
            )
        if intent.status == "requires_action":
            raise PaymentActionRequiredException(intent.client_secret, intent.next_action)
        raise ValidationException(
            f"Payment not completed. Status: {intent.status}",
            code="PAYMENT_NOT_COMPLETED",
            details={"status": intent.status},
        )

    @BaseService.measure_operation("mark_paid_manually")
    def mark_paid_manually(self, booking_id: str, user: User) -> PaymentConfirmation:
        """Admin override: mark a booking paid without asking the gateway."""
        if user.role != RoleName.ADMIN:
            raise ForbiddenException("Only admins can mark bookings as paid")
        booking = self._get_booking_or_404(booking_id)
        if booking.is_cancelled:
            raise ValidationException("Cannot pay for a cancelled booking", code="BOOKING_CANCELLED")
        if booking.is_paid:
            raise ValidationException("Booking is already paid", code="ALREADY_PAID")

        if not self._finalize_payment(booking):
            raise ValidationException("Booking is already paid", code="ALREADY_PAID")

        tasks = self._notification_tasks(
            booking,
            [
                ("payment_confirmation", booking.student),
                ("booking_confirmation", booking.student),
                ("new_booking", booking.tutor),
            ],
        )
        self.log_operation("booking_marked_paid", booking_id=booking.id, admin_id=user.id)
        return PaymentConfirmation(booking=booking, already_paid=False, deferred_tasks=tasks)

    def _finalize_payment(self, booking: Booking) -> bool:
        """
        Flip the booking to paid and credit the tutor's earnings.

        Returns False when another request got there first; nothing is
        changed in that case.
        """
        payout = calculate_tutor_earnings(booking.price, settings.platform_fee_rate)
        with self.transaction():
            won = self.repository.mark_paid_if_unpaid(
                booking.id, tutor_payout=payout, paid_at=datetime.now(timezone.utc)
            )
            if won:
                self.db.refresh(booking)
                self._credit_tutor(booking, payout)
        self.db.refresh(booking)

        if won:
            prometheus_metrics.record_payment_event("paid")
            self.log_operation("payment_finalized", booking_id=booking.id, payout=str(payout))
        else:
            logger.info(f"Booking {booking.id} was already paid; skipping finalization")
        return won

    def _credit_tutor(self, booking: Booking, payout: Decimal) -> None:
        """
        Pending until the session is completed; a booking completed before
        it was paid goes straight to total earnings.
        """
        if booking.is_completed:
            self.user_repository.adjust_earnings(booking.tutor_id, total_delta=payout)
        else:
            self.user_repository.adjust_earnings(booking.tutor_id, pending_delta=payout)

    def _notification_tasks(
        self, booking: Booking, recipients: List[Tuple[str, Optional[User]]]
    ) -> List[DeferredTask]:
        if self.notification_client is None:
            return []
        details = booking_notification_details(booking)
        return [
            DeferredTask(kind, self.send_notification, (kind, recipient.email, recipient.name, details))
            for kind, recipient in recipients
            if recipient is not None
        ]

    def send_notification(self, kind: str, to_email: str, name: str, details: Dict[str, Any]) -> bool:
        """Best-effort send; any failure is logged and reported as False."""
        if self.notification_client is None:
            return False
        senders = {
            "payment_confirmation": self.notification_client.send_payment_confirmation,
            "booking_confirmation": self.notification_client.send_booking_confirmation,
            "new_booking": self.notification_client.send_new_booking_notification,
        }
        try:
            return senders[kind](to_email, name, details)
        except Exception as e:
            logger.error(f"Failed to send {kind} notification for booking {details.get('booking_id')}: {str(e)}")
            return False

    def _get_payable_booking(self, booking_id: str, user: User) -> Booking:
        booking = self._get_booking_or_404(booking_id)
        self._ensure_student(booking, user)
        if booking.is_cancelled:
            raise ValidationException("Cannot pay for a cancelled booking", code="BOOKING_CANCELLED")
        if booking.is_paid:
            raise ValidationException("Booking is already paid", code="ALREADY_PAID")
        return booking

    def _get_booking_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found")
        return booking

    @staticmethod
    def _ensure_student(booking: Booking, user: User) -> None:
        if user.id != booking.student_id:
            raise ForbiddenException("Only the booking's student can pay for it")
