# backend/tutorlink/services/rating_aggregator.py
"""
Tutor rating aggregate.

Recomputes a tutor's average rating and review count from the full
review set. Callers run it inside the same transaction as the review
write that triggered it, so the stored aggregate always matches some
committed snapshot of the reviews.
"""

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..repositories.factory import RepositoryFactory
from ..repositories.review_repository import ReviewRepository
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


def round_rating(value: Optional[float]) -> float:
    """Round a mean rating to one decimal, halves up; None means no reviews."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class RatingAggregator:
    def __init__(
        self,
        db: Session,
        review_repository: Optional[ReviewRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        self.review_repository = review_repository or RepositoryFactory.create_review_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    def recompute(self, tutor_id: str) -> Tuple[float, int]:
        """Write and return ``(average_rating, total_reviews)`` for the tutor."""
        mean, count = self.review_repository.get_tutor_aggregates(tutor_id)
        average = round_rating(mean) if count else 0.0
        self.user_repository.set_rating_aggregate(tutor_id, average, count)
        logger.info(f"Rating for tutor {tutor_id} recomputed: {average} over {count} review(s)")
        return average, count
