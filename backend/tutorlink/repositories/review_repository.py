# backend/tutorlink/repositories/review_repository.py
"""Data access for reviews and the per-tutor rating aggregate."""

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from ..models.review import Review
from .base_repository import BaseRepository


class ReviewRepository(BaseRepository[Review]):
    def __init__(self, db: Session):
        super().__init__(db, Review)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Review.student), joinedload(Review.tutor))

    def list_reviews(self, tutor_id: Optional[str] = None) -> List[Review]:
        query = self._apply_eager_loading(self.db.query(Review))
        if tutor_id:
            query = query.filter(Review.tutor_id == tutor_id)
        return query.order_by(Review.created_at.desc()).all()

    def exists_for_student_booking(self, student_id: str, booking_id: str) -> bool:
        return self.exists(student_id=student_id, booking_id=booking_id)

    def get_tutor_aggregates(self, tutor_id: str) -> Tuple[Optional[float], int]:
        """Return (mean rating, review count) over every review of the tutor."""
        row = (
            self.db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.tutor_id == tutor_id)
            .one()
        )
        average, count = row
        return (float(average) if average is not None else None, int(count or 0))

    def delete_for_booking(self, booking_id: str) -> List[str]:
        """Delete every review of a booking and return the affected tutor ids."""
        reviews = self.db.query(Review).filter(Review.booking_id == booking_id).all()
        tutor_ids = {review.tutor_id for review in reviews}
        for review in reviews:
            self.db.delete(review)
        self.flush()
        return sorted(tutor_ids)
