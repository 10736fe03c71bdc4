# backend/tutorlink/routes/users.py
"""
User routes.

Endpoints:
    GET    /tutors              -> Browse tutors with filters (public)
    GET    /tutors/{tutor_id}   -> Tutor profile (public)
    PUT    /tutor-profile       -> Update own tutor profile (tutor)
    GET    /                    -> List users (admin)
    GET    /{user_id}           -> User detail (self or admin)
    PUT    /{user_id}           -> Update user (self or admin)
    DELETE /{user_id}           -> Delete user (admin)
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..api.dependencies.auth import get_current_admin, get_current_tutor, get_current_user
from ..api.dependencies.services import get_user_service
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.base_responses import ApiResponse, ListResponse, MessageResponse
from ..schemas.user import TutorFilters, TutorProfileUpdate, TutorPublicResponse, UserResponse, UserUpdate
from ..services.user_service import UserService
from .common import handle_domain_exception

router = APIRouter(tags=["users"])


def get_tutor_filters(
    subject: Optional[str] = Query(None, description="Subject id"),
    rating: Optional[float] = Query(None, ge=0, le=5, description="Minimum average rating"),
    price: Optional[str] = Query(None, pattern=r"^\d+(\.\d+)?-\d+(\.\d+)?$", description="min-max hourly rate"),
    name: Optional[str] = Query(None, description="Name contains (case-insensitive)"),
) -> TutorFilters:
    return TutorFilters(subject=subject, rating=rating, price=price, name=name)


@router.get("/tutors", response_model=ListResponse[TutorPublicResponse])
async def list_tutors(
    filters: TutorFilters = Depends(get_tutor_filters),
    service: UserService = Depends(get_user_service),
) -> ListResponse[TutorPublicResponse]:
    try:
        tutors = await asyncio.to_thread(service.list_tutors, filters)
    except DomainException as exc:
        handle_domain_exception(exc)
    items = [TutorPublicResponse.model_validate(tutor) for tutor in tutors]
    return ListResponse(count=len(items), data=items)


@router.get("/tutors/{tutor_id}", response_model=ApiResponse[TutorPublicResponse])
async def get_tutor(
    tutor_id: str,
    service: UserService = Depends(get_user_service),
) -> ApiResponse[TutorPublicResponse]:
    try:
        tutor = await asyncio.to_thread(service.get_tutor, tutor_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=TutorPublicResponse.model_validate(tutor))


@router.put("/tutor-profile", response_model=ApiResponse[UserResponse])
async def update_tutor_profile(
    payload: TutorProfileUpdate,
    current_user: User = Depends(get_current_tutor),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    try:
        user = await asyncio.to_thread(service.update_tutor_profile, current_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.get("", response_model=ListResponse[UserResponse])
async def list_users(
    current_user: User = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> ListResponse[UserResponse]:
    try:
        users = await asyncio.to_thread(service.list_users, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    items = [UserResponse.model_validate(user) for user in users]
    return ListResponse(count=len(items), data=items)


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    try:
        user = await asyncio.to_thread(service.get_user, user_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: str,
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    try:
        user = await asyncio.to_thread(service.update_user, user_id, current_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    try:
        await asyncio.to_thread(service.delete_user, user_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MessageResponse(message="User deleted")
