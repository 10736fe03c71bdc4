# backend/tutorlink/schemas/user.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from ..core.constants import MAX_BIO_LENGTH, TIME_PATTERN
from ..core.enums import RoleName

Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class AvailabilitySlot(BaseModel):
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def _check_order(self) -> "AvailabilitySlot":
        # zero-padded HH:MM compares correctly as text
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class DayAvailability(BaseModel):
    day: Weekday
    slots: List[AvailabilitySlot] = Field(default_factory=list)


class SubjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: str
    grade_level: str


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: RoleName
    bio: Optional[str] = None
    hourly_rate: Optional[float] = None
    subjects: List[SubjectSummary] = Field(default_factory=list)
    availability: List[DayAvailability] = Field(default_factory=list)
    average_rating: float = 0.0
    total_reviews: int = 0
    total_earnings: float = 0.0
    pending_earnings: float = 0.0
    completed_bookings: int = 0
    created_at: datetime


class TutorPublicResponse(BaseModel):
    """Tutor profile as shown to anyone browsing the marketplace."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    bio: Optional[str] = None
    hourly_rate: Optional[float] = None
    subjects: List[SubjectSummary] = Field(default_factory=list)
    availability: List[DayAvailability] = Field(default_factory=list)
    average_rating: float = 0.0
    total_reviews: int = 0
    completed_bookings: int = 0


class TutorProfileUpdate(BaseModel):
    bio: Optional[str] = Field(None, max_length=MAX_BIO_LENGTH)
    hourly_rate: Optional[float] = Field(None, ge=0)
    subjects: Optional[List[str]] = None
    availability: Optional[List[DayAvailability]] = None


class UserUpdate(BaseModel):
    """Fields an account owner (or an admin) may change; anything else is ignored."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[RoleName] = None
    bio: Optional[str] = Field(None, max_length=MAX_BIO_LENGTH)
    hourly_rate: Optional[float] = Field(None, ge=0)


class TutorFilters(BaseModel):
    subject: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    price: Optional[str] = Field(None, pattern=r"^\d+(\.\d+)?-\d+(\.\d+)?$")
    name: Optional[str] = None
