# backend/tutorlink/schemas/booking.py
"""
Booking request/response schemas.

Duration is deliberately unconstrained on create: the booking service
rejects non-positive values with its own error.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.constants import MAX_NOTES_LENGTH, TIME_PATTERN
from ..models.booking import BookingStatus, PaymentStatus
from .user import SubjectSummary, UserSummary


class BookingCreate(BaseModel):
    tutor_id: str
    subject_id: str
    booking_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    duration: float
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class BookingUpdate(BaseModel):
    status: Optional[BookingStatus] = None
    booking_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    # admin only
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[float] = Field(None, gt=0)


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student: UserSummary
    tutor: UserSummary
    subject: SubjectSummary
    booking_date: date
    start_time: str
    end_time: str
    duration: float
    status: BookingStatus
    notes: Optional[str] = None
    price: float
    payment_status: PaymentStatus
    payment_intent_id: Optional[str] = None
    tutor_payout: Optional[float] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


class PaymentIntentData(BaseModel):
    client_secret: Optional[str]
    payment_intent_id: str
    amount: float
    currency: str


class PaymentIntentResponse(BaseModel):
    success: bool = True
    data: PaymentIntentData


class AvailabilityResponse(BaseModel):
    success: bool = True
    tutor_id: str
    data: Any


class PaymentConfirmationResponse(BaseModel):
    success: bool = True
    message: str
    data: BookingResponse
    details: Dict[str, Any] = Field(default_factory=dict)
