# backend/tutorlink/services/user_service.py
"""
User and tutor profile management.

Rating and earnings aggregates are never writable here; they belong to the
review and payment flows.
"""

from decimal import Decimal
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import ConflictException, ForbiddenException, NotFoundException, ValidationException
from ..models.user import User
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.subject_repository import SubjectRepository
from ..repositories.user_repository import UserRepository
from ..schemas.user import TutorFilters, TutorProfileUpdate, UserUpdate
from .base import BaseService
from .pricing import round_money

logger = logging.getLogger(__name__)


def parse_price_range(price: Optional[str]) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """Parse ``"min-max"`` into a pair of Decimals."""
    if not price:
        return None, None
    low, _, high = price.partition("-")
    try:
        lower, upper = Decimal(low), Decimal(high)
    except ArithmeticError:
        raise ValidationException("price must look like 'min-max'", code="INVALID_PRICE_RANGE")
    if lower > upper:
        raise ValidationException("price range minimum exceeds maximum", code="INVALID_PRICE_RANGE")
    return lower, upper


class UserService(BaseService):
    def __init__(
        self,
        db: Session,
        user_repository: Optional[UserRepository] = None,
        subject_repository: Optional[SubjectRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.subject_repository = subject_repository or RepositoryFactory.create_subject_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)

    # Tutors (public)

    def list_tutors(self, filters: TutorFilters) -> List[User]:
        min_price, max_price = parse_price_range(filters.price)
        return self.repository.list_tutors(
            subject_id=filters.subject,
            min_rating=filters.rating,
            min_price=min_price,
            max_price=max_price,
            name=filters.name,
        )

    def get_tutor(self, tutor_id: str) -> User:
        tutor = self.repository.get_by_id(tutor_id)
        if not tutor or tutor.role != RoleName.TUTOR:
            raise NotFoundException("Tutor not found")
        return tutor

    @BaseService.measure_operation("update_tutor_profile")
    def update_tutor_profile(self, user: User, data: TutorProfileUpdate) -> User:
        if user.role != RoleName.TUTOR:
            raise ForbiddenException("Only tutors have a tutor profile")

        subjects = None
        if data.subjects is not None:
            wanted = list(dict.fromkeys(data.subjects))
            subjects = self.subject_repository.get_many(wanted)
            missing = sorted(set(wanted) - {subject.id for subject in subjects})
            if missing:
                raise ValidationException("Unknown subject id(s)", code="UNKNOWN_SUBJECT", details={"missing": missing})

        with self.transaction():
            if data.bio is not None:
                user.bio = data.bio
            if data.hourly_rate is not None:
                user.hourly_rate = round_money(data.hourly_rate)
            if subjects is not None:
                user.subjects = subjects
            if data.availability is not None:
                user.availability = [day.model_dump() for day in data.availability]
            self.repository.flush()

        self.log_operation("tutor_profile_updated", user_id=user.id)
        return user

    # Accounts

    def list_users(self, actor: User) -> List[User]:
        self._ensure_admin(actor)
        return self.repository.get_all(limit=1000)

    def get_user(self, user_id: str, actor: User) -> User:
        if actor.role != RoleName.ADMIN and actor.id != user_id:
            raise ForbiddenException("Not authorized to view this user")
        user = self.repository.get_by_id(user_id)
        if not user:
            raise NotFoundException("User not found")
        return user

    @BaseService.measure_operation("update_user")
    def update_user(self, user_id: str, actor: User, data: UserUpdate) -> User:
        """
        Update an account.

        Role changes are applied only for admins and silently dropped
        for everyone else.
        """
        user = self.get_user(user_id, actor)
        changes = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        if "role" in changes and actor.role != RoleName.ADMIN:
            changes.pop("role")
        if "email" in changes:
            changes["email"] = changes["email"].strip().lower()
            existing = self.repository.get_by_email(changes["email"])
            if existing and existing.id != user.id:
                raise ConflictException("Email already in use", code="EMAIL_EXISTS")
        if "role" in changes:
            changes["role"] = RoleName(changes["role"]).value
        if "hourly_rate" in changes:
            changes["hourly_rate"] = round_money(changes["hourly_rate"])

        with self.transaction():
            for key, value in changes.items():
                setattr(user, key, value)
            self.repository.flush()
        return user

    @BaseService.measure_operation("delete_user")
    def delete_user(self, user_id: str, actor: User) -> None:
        self._ensure_admin(actor)
        user = self.repository.get_by_id(user_id, load_relationships=False)
        if not user:
            raise NotFoundException("User not found")
        if self.booking_repository.count_for_user(user.id):
            raise ValidationException(
                "User has bookings and cannot be deleted",
                code="USER_HAS_BOOKINGS",
            )
        with self.transaction():
            self.repository.delete(user.id)
        self.log_operation("user_deleted", user_id=user_id, admin_id=actor.id)

    @staticmethod
    def _ensure_admin(actor: User) -> None:
        if actor.role != RoleName.ADMIN:
            raise ForbiddenException("Admin access required")
