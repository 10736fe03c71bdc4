# backend/tutorlink/schemas/base_responses.py
"""Response envelopes shared by every endpoint."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """``{"success": true, "data": ...}``"""

    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = False
    message: str
    code: Optional[str] = None
