from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .review_repository import ReviewRepository
from .subject_repository import SubjectRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "RepositoryFactory",
    "ReviewRepository",
    "SubjectRepository",
    "UserRepository",
]
