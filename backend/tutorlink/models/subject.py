# backend/tutorlink/models/subject.py
"""Subject catalog model."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, String

from ..core.ulid_helper import generate_ulid
from ..database import Base


class SubjectCategory(str, Enum):
    MATH = "Math"
    SCIENCE = "Science"
    LANGUAGE = "Language"
    HISTORY = "History"
    ARTS = "Arts"
    TECHNOLOGY = "Technology"
    OTHER = "Other"


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(50), nullable=False, unique=True)
    category = Column(String(20), nullable=False, index=True)
    grade_level = Column(String(50), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<Subject {self.name} ({self.category}, {self.grade_level})>"
