# backend/tutorlink/repositories/user_repository.py
"""Data access for users, including tutor search and aggregate counters."""

from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import RepositoryException
from ..models.subject import Subject
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.find_one_by(email=email.strip().lower())

    def list_tutors(
        self,
        *,
        subject_id: Optional[str] = None,
        min_rating: Optional[float] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        name: Optional[str] = None,
    ) -> List[User]:
        """Tutors matching every supplied filter, best rated first."""
        try:
            query = self.db.query(User).filter(User.role == RoleName.TUTOR.value)
            if subject_id:
                query = query.filter(User.subjects.any(Subject.id == subject_id))
            if min_rating is not None:
                query = query.filter(User.average_rating >= min_rating)
            if min_price is not None:
                query = query.filter(User.hourly_rate >= min_price)
            if max_price is not None:
                query = query.filter(User.hourly_rate <= max_price)
            if name:
                query = query.filter(func.lower(User.name).contains(name.strip().lower()))
            return query.order_by(User.average_rating.desc(), User.name.asc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing tutors: {str(e)}")
            raise RepositoryException(f"Failed to list tutors: {str(e)}")

    def set_rating_aggregate(self, tutor_id: str, average: float, count: int) -> None:
        self.db.execute(
            update(User)
            .where(User.id == tutor_id)
            .values(average_rating=average, total_reviews=count)
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(tutor_id)

    def adjust_earnings(
        self,
        tutor_id: str,
        *,
        pending_delta: Decimal = Decimal("0"),
        total_delta: Decimal = Decimal("0"),
        completed_delta: int = 0,
    ) -> None:
        """
        Apply relative changes to a tutor's earnings counters.

        Uses column arithmetic in a single UPDATE so concurrent adjustments
        never overwrite one another.
        """
        self.db.execute(
            update(User)
            .where(User.id == tutor_id)
            .values(
                pending_earnings=User.pending_earnings + pending_delta,
                total_earnings=User.total_earnings + total_delta,
                completed_bookings=User.completed_bookings + completed_delta,
            )
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(tutor_id)

    def _expire_cached(self, user_id: str) -> None:
        cached = self.db.identity_map.get(self.db.identity_key(User, user_id))
        if cached is not None:
            self.db.expire(cached)
