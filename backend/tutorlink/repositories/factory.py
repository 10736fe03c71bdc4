# backend/tutorlink/repositories/factory.py
"""
Repository Factory for the Tutorlink platform.

Services ask the factory for repositories so tests can swap any of them
for a mock without touching constructors.
"""

from sqlalchemy.orm import Session

from .booking_repository import BookingRepository
from .review_repository import ReviewRepository
from .subject_repository import SubjectRepository
from .user_repository import UserRepository


class RepositoryFactory:
    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        return BookingRepository(db)

    @staticmethod
    def create_review_repository(db: Session) -> ReviewRepository:
        return ReviewRepository(db)

    @staticmethod
    def create_subject_repository(db: Session) -> SubjectRepository:
        return SubjectRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> UserRepository:
        return UserRepository(db)
