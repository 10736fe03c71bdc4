# backend/tutorlink/routes/reviews.py
"""
Review routes.

Endpoints:
    GET    /                    -> List reviews, optional ?tutor= filter (public)
    GET    /tutor/{tutor_id}    -> Reviews for one tutor (public)
    GET    /{review_id}         -> Review detail (public)
    POST   /                    -> Submit review for a completed booking (student)
    PUT    /{review_id}         -> Edit rating/comment (author or admin)
    DELETE /{review_id}         -> Delete review (author or admin)
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..api.dependencies.auth import get_current_student, get_current_user
from ..api.dependencies.services import get_review_service
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.base_responses import ApiResponse, ListResponse, MessageResponse
from ..schemas.review import ReviewCreate, ReviewResponse, ReviewUpdate
from ..services.review_service import ReviewService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews"])


@router.get("", response_model=ListResponse[ReviewResponse])
async def list_reviews(
    tutor: Optional[str] = Query(None, description="Only reviews for this tutor id"),
    service: ReviewService = Depends(get_review_service),
) -> ListResponse[ReviewResponse]:
    reviews = await asyncio.to_thread(service.list_reviews, tutor)
    items = [ReviewResponse.model_validate(review) for review in reviews]
    return ListResponse(count=len(items), data=items)


@router.get("/tutor/{tutor_id}", response_model=ListResponse[ReviewResponse])
async def list_tutor_reviews(
    tutor_id: str,
    service: ReviewService = Depends(get_review_service),
) -> ListResponse[ReviewResponse]:
    try:
        reviews = await asyncio.to_thread(service.list_for_tutor, tutor_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    items = [ReviewResponse.model_validate(review) for review in reviews]
    return ListResponse(count=len(items), data=items)


@router.get("/{review_id}", response_model=ApiResponse[ReviewResponse])
async def get_review(
    review_id: str,
    service: ReviewService = Depends(get_review_service),
) -> ApiResponse[ReviewResponse]:
    try:
        review = await asyncio.to_thread(service.get_review, review_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=ReviewResponse.model_validate(review))


@router.post("", response_model=ApiResponse[ReviewResponse], status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(get_current_student),
    service: ReviewService = Depends(get_review_service),
) -> ApiResponse[ReviewResponse]:
    try:
        review = await asyncio.to_thread(service.create_review, current_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=ReviewResponse.model_validate(review))


@router.put("/{review_id}", response_model=ApiResponse[ReviewResponse])
async def update_review(
    review_id: str,
    payload: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ApiResponse[ReviewResponse]:
    try:
        review = await asyncio.to_thread(service.update_review, review_id, current_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=ReviewResponse.model_validate(review))


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_review(
    review_id: str,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> MessageResponse:
    try:
        await asyncio.to_thread(service.delete_review, review_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MessageResponse(message="Review deleted")
