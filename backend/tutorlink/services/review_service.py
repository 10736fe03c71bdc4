# backend/tutorlink/services/review_service.py
"""
Review Service

Students review completed bookings, one review per booking. Every write
recomputes the tutor's rating aggregate in the same transaction.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import (
    ForbiddenException,
    IntegrityViolation,
    NotFoundException,
    ValidationException,
)
from ..models.booking import BookingStatus
from ..models.review import Review
from ..models.user import User
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.review_repository import ReviewRepository
from ..repositories.user_repository import UserRepository
from ..schemas.review import ReviewCreate, ReviewUpdate
from .base import BaseService
from .rating_aggregator import RatingAggregator

logger = logging.getLogger(__name__)


class ReviewService(BaseService):
    def __init__(
        self,
        db: Session,
        review_repository: Optional[ReviewRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
        rating_aggregator: Optional[RatingAggregator] = None,
    ):
        super().__init__(db)
        self.repository = review_repository or RepositoryFactory.create_review_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.rating_aggregator = rating_aggregator or RatingAggregator(
            db, self.repository, self.user_repository
        )

    def list_reviews(self, tutor_id: Optional[str] = None) -> List[Review]:
        return self.repository.list_reviews(tutor_id=tutor_id)

    def list_for_tutor(self, tutor_id: str) -> List[Review]:
        tutor = self.user_repository.get_by_id(tutor_id, load_relationships=False)
        if not tutor or tutor.role != RoleName.TUTOR:
            raise NotFoundException("Tutor not found")
        return self.repository.list_reviews(tutor_id=tutor_id)

    def get_review(self, review_id: str) -> Review:
        review = self.repository.get_by_id(review_id)
        if not review:
            raise NotFoundException("Review not found")
        return review

    @BaseService.measure_operation("create_review")
    def create_review(self, student: User, data: ReviewCreate) -> Review:
        """
        Create a review for a completed booking owned by the student.

        The tutor is taken from the booking, never from the request.
        """
        if student.role != RoleName.STUDENT:
            raise ForbiddenException("Only students can submit reviews")

        booking = self.booking_repository.get_by_id(data.booking_id, load_relationships=False)
        if not booking:
            raise NotFoundException("Booking not found")
        if booking.student_id != student.id:
            raise ForbiddenException("You can only review your own bookings")
        if booking.status != BookingStatus.COMPLETED:
            raise ValidationException(
                "You can only review completed bookings",
                code="BOOKING_NOT_COMPLETED",
                details={"status": booking.status},
            )
        if self.repository.exists_for_student_booking(student.id, booking.id):
            raise ValidationException("You have already reviewed this booking", code="REVIEW_ALREADY_EXISTS")

        try:
            with self.transaction():
                review = self.repository.create(
                    booking_id=booking.id,
                    student_id=student.id,
                    tutor_id=booking.tutor_id,
                    rating=data.rating,
                    comment=data.comment,
                )
                self.rating_aggregator.recompute(booking.tutor_id)
        except IntegrityViolation:
            raise ValidationException("You have already reviewed this booking", code="REVIEW_ALREADY_EXISTS")

        self.log_operation("review_created", review_id=review.id, tutor_id=booking.tutor_id, rating=data.rating)
        return self.repository.get_by_id(review.id) or review

    @BaseService.measure_operation("update_review")
    def update_review(self, review_id: str, user: User, data: ReviewUpdate) -> Review:
        review = self.get_review(review_id)
        self._ensure_author_or_admin(review, user)

        changes = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        if not changes:
            return review

        with self.transaction():
            for key, value in changes.items():
                setattr(review, key, value)
            self.repository.flush()
            if "rating" in changes:
                self.rating_aggregator.recompute(review.tutor_id)

        return self.repository.get_by_id(review.id) or review

    @BaseService.measure_operation("delete_review")
    def delete_review(self, review_id: str, user: User) -> None:
        review = self.get_review(review_id)
        self._ensure_author_or_admin(review, user)
        tutor_id = review.tutor_id

        with self.transaction():
            self.repository.delete(review.id)
            self.rating_aggregator.recompute(tutor_id)

        self.log_operation("review_deleted", review_id=review_id, tutor_id=tutor_id)

    @staticmethod
    def _ensure_author_or_admin(review: Review, user: User) -> None:
        if user.role == RoleName.ADMIN or review.student_id == user.id:
            return
        raise ForbiddenException("Not authorized to modify this review")
