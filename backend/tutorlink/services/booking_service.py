# backend/tutorlink/services/booking_service.py
"""
Booking Service for the Tutorlink platform.

Owns the booking lifecycle: creation and pricing, role-scoped reads, and
the guarded status transitions

    pending   -> confirmed   (booking's tutor)
    pending   -> cancelled   (booking's student)
    confirmed -> cancelled   (booking's student)
    confirmed -> completed   (booking's tutor or an admin)

The gateway call owed by a cancellation is handed back as a deferred task
and runs only after the cancellation has committed; its failures are
logged and never undo the cancellation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..integrations.payment_gateway import PaymentGatewayError, StripePaymentGateway
from ..models.booking import Booking, BookingStatus
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.review_repository import ReviewRepository
from ..repositories.subject_repository import SubjectRepository
from ..repositories.user_repository import UserRepository
from ..schemas.booking import BookingCreate, BookingUpdate
from .base import BaseService, DeferredTask
from .pricing import compute_booking_price, round_money, to_decimal
from .rating_aggregator import RatingAggregator

logger = logging.getLogger(__name__)

ADMIN_ONLY_FIELDS = frozenset({"price", "duration"})


@dataclass
class BookingUpdateResult:
    booking: Booking
    deferred_tasks: List[DeferredTask] = field(default_factory=list)


class BookingService(BaseService):
    def __init__(
        self,
        db: Session,
        payment_gateway: Optional[StripePaymentGateway] = None,
        booking_repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
        subject_repository: Optional[SubjectRepository] = None,
        review_repository: Optional[ReviewRepository] = None,
        rating_aggregator: Optional[RatingAggregator] = None,
    ):
        super().__init__(db)
        self.payment_gateway = payment_gateway
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.subject_repository = subject_repository or RepositoryFactory.create_subject_repository(db)
        self.review_repository = review_repository or RepositoryFactory.create_review_repository(db)
        self.rating_aggregator = rating_aggregator or RatingAggregator(
            db, self.review_repository, self.user_repository
        )

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(self, student: User, data: BookingCreate) -> Booking:
        """
        Create a pending booking priced from the tutor's current hourly rate.

        Raises:
            ForbiddenException: caller is not a student
            NotFoundException: tutor or subject does not exist
            ValidationException: target user is not a tutor, or duration <= 0
        """
        if student.role != RoleName.STUDENT:
            raise ForbiddenException("Only students can create bookings")

        tutor = self.user_repository.get_by_id(data.tutor_id, load_relationships=False)
        if not tutor:
            raise NotFoundException("Tutor not found")
        if tutor.role != RoleName.TUTOR:
            raise ValidationException("Selected user is not a tutor", code="NOT_A_TUTOR")

        subject = self.subject_repository.get_by_id(data.subject_id, load_relationships=False)
        if not subject:
            raise NotFoundException("Subject not found")

        if data.duration is None or data.duration <= 0:
            raise ValidationException("Duration must be a positive number", code="INVALID_DURATION")

        price = compute_booking_price(
            tutor.hourly_rate,
            data.duration,
            default_rate=settings.default_hourly_rate,
            minimum_charge=settings.minimum_charge,
        )

        with self.transaction():
            booking = self.repository.create(
                student_id=student.id,
                tutor_id=tutor.id,
                subject_id=subject.id,
                booking_date=data.booking_date,
                start_time=data.start_time,
                end_time=data.end_time,
                duration=to_decimal(data.duration),
                notes=data.notes,
                price=price,
                status=BookingStatus.PENDING.value,
            )

        self.log_operation("booking_created", booking_id=booking.id, tutor_id=tutor.id, price=str(price))
        return self.repository.get_by_id(booking.id) or booking

    def get_booking_for_user(self, booking_id: str, user: User) -> Booking:
        booking = self._get_booking_or_404(booking_id)
        self._ensure_participant_or_admin(booking, user)
        return booking

    def list_bookings(self, user: User) -> List[Booking]:
        """Students and tutors see their own bookings; admins see every booking."""
        if user.role == RoleName.ADMIN:
            return self.repository.list_all()
        if user.role == RoleName.TUTOR:
            return self.repository.list_for_tutor(user.id)
        return self.repository.list_for_student(user.id)

    def get_tutor_availability(self, tutor_id: str) -> List[Dict[str, Any]]:
        tutor = self.user_repository.get_by_id(tutor_id, load_relationships=False)
        if not tutor or tutor.role != RoleName.TUTOR:
            raise NotFoundException("Tutor not found")
        return list(tutor.availability or [])

    # ------------------------------------------------------------------
    # Update / transitions
    # ------------------------------------------------------------------

    @BaseService.measure_operation("update_booking")
    def update_booking(self, booking_id: str, user: User, data: BookingUpdate) -> BookingUpdateResult:
        booking = self._get_booking_or_404(booking_id)
        self._ensure_participant_or_admin(booking, user)

        changes = data.model_dump(exclude_unset=True)
        target = changes.pop("status", None)
        changes = {key: value for key, value in changes.items() if value is not None}

        restricted = ADMIN_ONLY_FIELDS.intersection(changes)
        if restricted and user.role != RoleName.ADMIN:
            raise ForbiddenException(
                f"Only an admin can change {', '.join(sorted(restricted))}",
                details={"fields": sorted(restricted)},
            )
        if "price" in changes and round_money(changes["price"]) < to_decimal(settings.minimum_charge):
            raise ValidationException(
                f"Price cannot be below the minimum charge of {settings.minimum_charge:.2f}",
                code="PRICE_BELOW_MINIMUM",
                details={"minimum_charge": settings.minimum_charge},
            )

        release: Optional[DeferredTask] = None
        with self.transaction():
            if target is not None:
                release = self._apply_transition(booking, BookingStatus(target), user)
            for key, value in changes.items():
                if key in ADMIN_ONLY_FIELDS:
                    value = round_money(value) if key == "price" else to_decimal(value)
                setattr(booking, key, value)
            self.repository.flush()

        refreshed = self.repository.get_by_id(booking.id) or booking
        return BookingUpdateResult(booking=refreshed, deferred_tasks=[release] if release is not None else [])

    def _apply_transition(self, booking: Booking, target: BookingStatus, user: User) -> Optional[DeferredTask]:
        """
        Move ``booking`` to ``target`` inside the caller's transaction.

        The role check runs before the state check, so a wrong caller sees
        Forbidden even when the transition itself would also be invalid.
        Re-sending the current status is a no-op for an authorized caller.
        """
        self._authorize_transition(booking, target, user)
        current = BookingStatus(booking.status)
        if target == current:
            return None

        release: Optional[DeferredTask] = None
        if target == BookingStatus.CONFIRMED:
            self._require_status(current, target, {BookingStatus.PENDING})
            booking.confirm()
        elif target == BookingStatus.CANCELLED:
            self._require_status(current, target, {BookingStatus.PENDING, BookingStatus.CONFIRMED})
            release = self._cancel(booking)
        elif target == BookingStatus.COMPLETED:
            self._require_status(current, target, {BookingStatus.CONFIRMED})
            self._complete(booking)

        prometheus_metrics.record_booking_transition(target.value)
        return release

    @staticmethod
    def _authorize_transition(booking: Booking, target: BookingStatus, user: User) -> None:
        if target == BookingStatus.CONFIRMED and user.id != booking.tutor_id:
            raise ForbiddenException("Only the booking's tutor can confirm it")
        if target == BookingStatus.CANCELLED and user.id != booking.student_id:
            raise ForbiddenException("Only the booking's student can cancel it")
        if target == BookingStatus.COMPLETED and not (
            user.id == booking.tutor_id or user.role == RoleName.ADMIN
        ):
            raise ForbiddenException("Only the booking's tutor or an admin can complete it")
        if target == BookingStatus.PENDING:
            raise ValidationException(
                "A booking cannot be moved back to pending",
                code="INVALID_STATUS_TRANSITION",
            )

    @staticmethod
    def _require_status(current: BookingStatus, target: BookingStatus, allowed: set) -> None:
        if current not in allowed:
            raise ValidationException(
                f"Cannot move a booking from {current.value} to {target.value}",
                code="INVALID_STATUS_TRANSITION",
                details={"current_status": current.value, "requested_status": target.value},
            )

    def _cancel(self, booking: Booking) -> Optional[DeferredTask]:
        was_paid = booking.is_paid
        booking.cancel()
        if was_paid and booking.tutor_payout:
            self.user_repository.adjust_earnings(
                booking.tutor_id, pending_delta=-to_decimal(booking.tutor_payout)
            )
        self.log_operation("booking_cancelled", booking_id=booking.id, was_paid=was_paid)
        if not booking.payment_intent_id:
            return None
        return DeferredTask(
            "refund_payment" if was_paid else "cancel_payment_intent",
            self.release_payment,
            (booking.id, booking.payment_intent_id, was_paid),
        )

    def _complete(self, booking: Booking) -> None:
        booking.complete()
        payout = to_decimal(booking.tutor_payout) if booking.is_paid and booking.tutor_payout else Decimal("0")
        self.user_repository.adjust_earnings(
            booking.tutor_id,
            pending_delta=-payout,
            total_delta=payout,
            completed_delta=1,
        )
        self.log_operation("booking_completed", booking_id=booking.id, payout=str(payout))

    def release_payment(self, booking_id: str, intent_id: str, refund: bool) -> None:
        """Cancel or refund the booking's intent; one gateway call, failures only logged."""
        if self.payment_gateway is None:
            logger.error(f"No payment gateway configured; intent {intent_id} left untouched")
            return
        try:
            if refund:
                self.payment_gateway.refund(intent_id, reason="requested_by_customer")
                prometheus_metrics.record_payment_event("refunded")
            else:
                self.payment_gateway.cancel_intent(intent_id)
                prometheus_metrics.record_payment_event("intent_cancelled")
        except PaymentGatewayError as e:
            prometheus_metrics.record_payment_event("release_failed")
            logger.error(
                f"Failed to {'refund' if refund else 'cancel'} payment intent "
                f"{intent_id} for booking {booking_id}: {str(e)}"
            )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, booking_id: str, user: User) -> None:
        """Permanently delete a booking and its reviews (admin only)."""
        if user.role != RoleName.ADMIN:
            raise ForbiddenException("Only admins can delete bookings")
        booking = self._get_booking_or_404(booking_id)
        with self.transaction():
            tutor_ids = self.review_repository.delete_for_booking(booking.id)
            self.repository.delete(booking.id)
            for tutor_id in tutor_ids:
                self.rating_aggregator.recompute(tutor_id)
        self.log_operation("booking_deleted", booking_id=booking_id, tutors_rerated=len(tutor_ids))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_booking_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found")
        return booking

    @staticmethod
    def _ensure_participant_or_admin(booking: Booking, user: User) -> None:
        if user.role == RoleName.ADMIN or booking.involves(user.id):
            return
        raise ForbiddenException("Not authorized to access this booking")
