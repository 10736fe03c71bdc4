# backend/tutorlink/schemas/subject.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.constants import MAX_DESCRIPTION_LENGTH, MAX_SUBJECT_NAME_LENGTH
from ..models.subject import SubjectCategory


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_SUBJECT_NAME_LENGTH)
    category: SubjectCategory
    grade_level: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=MAX_SUBJECT_NAME_LENGTH)
    category: Optional[SubjectCategory] = None
    grade_level: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class SubjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: SubjectCategory
    grade_level: str
    description: Optional[str] = None
    created_at: datetime
