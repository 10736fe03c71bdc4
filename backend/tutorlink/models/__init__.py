"""ORM models; importing this package registers every table on Base.metadata."""

from .booking import Booking, BookingStatus, PaymentStatus
from .review import Review
from .subject import Subject, SubjectCategory
from .user import User, tutor_subjects

__all__ = [
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "Review",
    "Subject",
    "SubjectCategory",
    "User",
    "tutor_subjects",
]
