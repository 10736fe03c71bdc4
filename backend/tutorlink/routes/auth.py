# backend/tutorlink/routes/auth.py
"""Registration, login, current user and password change."""

import asyncio

from fastapi import APIRouter, Depends, status

from ..api.dependencies.auth import get_current_user
from ..api.dependencies.services import get_auth_service
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.auth import AuthPayload, LoginRequest, PasswordUpdateRequest, RegisterRequest
from ..schemas.base_responses import ApiResponse
from ..schemas.user import UserResponse
from ..services.auth_service import AuthService
from .common import handle_domain_exception

router = APIRouter(tags=["auth"])


def _auth_payload(user: User) -> AuthPayload:
    return AuthPayload(access_token=AuthService.issue_token(user), user=UserResponse.model_validate(user))


@router.post("/register", response_model=ApiResponse[AuthPayload], status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthPayload]:
    try:
        user = await asyncio.to_thread(service.register_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=_auth_payload(user))


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthPayload]:
    try:
        user = await asyncio.to_thread(service.authenticate, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=_auth_payload(user))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def read_current_user(current_user: User = Depends(get_current_user)) -> ApiResponse[UserResponse]:
    return ApiResponse(data=UserResponse.model_validate(current_user))


@router.put("/updatepassword", response_model=ApiResponse[AuthPayload])
async def update_password(
    payload: PasswordUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthPayload]:
    try:
        user = await asyncio.to_thread(service.change_password, current_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=_auth_payload(user))
