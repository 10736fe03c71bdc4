# backend/tutorlink/repositories/booking_repository.py
"""
Booking Repository for the Tutorlink platform.

Besides plain CRUD this holds the guarded payment transition: the paid
flag is set with a conditional UPDATE so two concurrent confirmations can
never both succeed.
"""

from datetime import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import case, func, or_, update
from sqlalchemy.orm import Query, Session, joinedload

from ..models.booking import Booking, BookingStatus, PaymentStatus
from .base_repository import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.student),
            joinedload(Booking.tutor),
            joinedload(Booking.subject),
        )

    def list_for_student(self, student_id: str) -> List[Booking]:
        return self._ordered(self._apply_eager_loading(self.db.query(Booking)).filter(Booking.student_id == student_id))

    def list_for_tutor(self, tutor_id: str) -> List[Booking]:
        return self._ordered(self._apply_eager_loading(self.db.query(Booking)).filter(Booking.tutor_id == tutor_id))

    def list_all(self) -> List[Booking]:
        return self._ordered(self._apply_eager_loading(self.db.query(Booking)))

    def count_for_subject(self, subject_id: str) -> int:
        return self.count(subject_id=subject_id)

    def count_for_user(self, user_id: str) -> int:
        return (
            self.db.query(func.count(Booking.id))
            .filter(or_(Booking.student_id == user_id, Booking.tutor_id == user_id))
            .scalar()
            or 0
        )

    def mark_paid_if_unpaid(self, booking_id: str, *, tutor_payout: Decimal, paid_at: datetime) -> bool:
        """
        Flip a booking to paid unless it is already paid or cancelled.

        Pending bookings advance to confirmed; confirmed and completed
        bookings keep their status. Returns True only for the caller whose
        UPDATE actually changed the row.
        """
        result = self.db.execute(
            update(Booking)
            .where(
                Booking.id == booking_id,
                Booking.payment_status != PaymentStatus.PAID.value,
                Booking.status != BookingStatus.CANCELLED.value,
            )
            .values(
                payment_status=PaymentStatus.PAID.value,
                paid_at=paid_at,
                tutor_payout=tutor_payout,
                status=case(
                    (Booking.status == BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value),
                    else_=Booking.status,
                ),
                confirmed_at=func.coalesce(Booking.confirmed_at, paid_at),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def _ordered(query: Query) -> List[Booking]:
        return query.order_by(Booking.booking_date.desc(), Booking.start_time.desc()).all()
