# backend/tutorlink/models/booking.py
"""
Booking model for the Tutorlink platform.

A booking is one scheduled session between a student and a tutor for a
subject. Price is fixed at creation from the tutor's hourly rate; only an
admin may change it afterwards. Payment state is tracked alongside the
lifecycle status:

    pending -> confirmed -> completed
    pending | confirmed -> cancelled

payment_intent_id is a back-reference into the payment gateway; the gateway
owns the intent itself.
"""

from datetime import datetime, timezone
from enum import Enum
import logging

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, default=generate_ulid)

    # Core relationships
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    tutor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    subject_id = Column(String(26), ForeignKey("subjects.id"), nullable=False, index=True)

    # Schedule (times are HH:MM strings in the tutor's local time)
    booking_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    duration = Column(Numeric(5, 2), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    notes = Column(String(500), nullable=True)

    # Money
    price = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_intent_id = Column(String(255), nullable=True)
    tutor_payout = Column(Numeric(10, 2), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    student = relationship("User", foreign_keys=[student_id])
    tutor = relationship("User", foreign_keys=[tutor_id])
    subject = relationship("Subject")

    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_bookings_duration_positive"),
        CheckConstraint("price >= 0", name="ck_bookings_price_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("payment_status IN ('pending', 'paid')", name="ck_bookings_payment_status"),
        Index("idx_bookings_tutor_date", "tutor_id", "booking_date"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.id} {self.booking_date} {self.start_time}-{self.end_time} ({self.status})>"

    def confirm(self) -> None:
        """Mark booking as confirmed by the tutor."""
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} confirmed")

    def cancel(self) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} cancelled")

    def complete(self) -> None:
        """Mark booking as completed."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as completed")

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED

    @property
    def is_completed(self) -> bool:
        return self.status == BookingStatus.COMPLETED

    def involves(self, user_id: str) -> bool:
        """True when the user is this booking's student or tutor."""
        return user_id in (self.student_id, self.tutor_id)
