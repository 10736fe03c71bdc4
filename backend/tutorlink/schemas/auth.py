# backend/tutorlink/schemas/auth.py
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..core.constants import MIN_PASSWORD_LENGTH
from .user import UserResponse


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    role: Literal["student", "tutor"] = "student"

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("Name is required")
        return v2


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class PasswordUpdateRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class AuthPayload(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
