# backend/tutorlink/models/user.py
"""
User model for the Tutorlink platform.

A single table holds students, tutors and admins. Tutor-only attributes
(rate, subjects, availability, rating and earnings aggregates) are nullable
or zero for other roles. Rating and earnings aggregates are derived values
maintained by the review and payment services; they are never written from
request payloads.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, Numeric, String, Table, Text
from sqlalchemy.orm import relationship

from ..core.enums import RoleName
from ..core.ulid_helper import generate_ulid
from ..database import Base

tutor_subjects = Table(
    "tutor_subjects",
    Base.metadata,
    Column("user_id", String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("subject_id", String(26), ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value, index=True)

    # Tutor profile
    bio = Column(Text, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    availability = Column(JSON, nullable=False, default=list)

    # Derived aggregates
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)
    total_earnings = Column(Numeric(12, 2), nullable=False, default=0)
    pending_earnings = Column(Numeric(12, 2), nullable=False, default=0)
    completed_bookings = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    subjects = relationship("Subject", secondary=tutor_subjects, lazy="selectin")

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"

    @property
    def is_tutor(self) -> bool:
        return self.role == RoleName.TUTOR

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN
