# backend/tutorlink/models/review.py
"""
Review model.

- One review per (student, booking) via a unique constraint
- tutor_id is copied from the booking at creation and never changes
- Creating, editing or deleting a review recomputes the tutor's rating aggregate
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(26), primary_key=True, default=generate_ulid)

    booking_id = Column(String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    tutor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)
    comment = Column(String(500), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    student = relationship("User", foreign_keys=[student_id])
    tutor = relationship("User", foreign_keys=[tutor_id])
    booking = relationship("Booking")

    __table_args__ = (
        UniqueConstraint("student_id", "booking_id", name="uq_reviews_student_booking"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review {self.id} booking={self.booking_id} rating={self.rating}>"
