# backend/tutorlink/schemas/review.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import field_validator

from ..core.constants import MAX_COMMENT_LENGTH, MAX_RATING, MIN_RATING


def _clean_comment(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v2 = v.strip()
    if not v2:
        raise ValueError("Comment cannot be empty")
    return v2


class ReviewCreate(BaseModel):
    booking_id: str
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: str = Field(..., max_length=MAX_COMMENT_LENGTH)

    @field_validator("comment")
    @classmethod
    def _clean_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_comment(v)


class ReviewUpdate(BaseModel):
    """Only rating and comment are editable; other keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    rating: Optional[int] = Field(None, ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = Field(None, max_length=MAX_COMMENT_LENGTH)

    @field_validator("comment")
    @classmethod
    def _clean_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_comment(v)


class ReviewerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    student: ReviewerSummary
    tutor: ReviewerSummary
    rating: int
    comment: str
    created_at: datetime
    updated_at: Optional[datetime] = None
