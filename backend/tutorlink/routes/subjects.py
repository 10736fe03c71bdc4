# backend/tutorlink/routes/subjects.py
"""Subject catalog routes: public reads, admin writes."""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..api.dependencies.auth import get_current_admin
from ..api.dependencies.services import get_subject_service
from ..core.exceptions import DomainException
from ..models.subject import SubjectCategory
from ..models.user import User
from ..schemas.base_responses import ApiResponse, ListResponse, MessageResponse
from ..schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate
from ..services.subject_service import SubjectService
from .common import handle_domain_exception

router = APIRouter(tags=["subjects"])


@router.get("", response_model=ListResponse[SubjectResponse])
async def list_subjects(
    category: Optional[SubjectCategory] = Query(None),
    grade_level: Optional[str] = Query(None),
    service: SubjectService = Depends(get_subject_service),
) -> ListResponse[SubjectResponse]:
    subjects = await asyncio.to_thread(
        service.list_subjects, category.value if category else None, grade_level
    )
    items = [SubjectResponse.model_validate(subject) for subject in subjects]
    return ListResponse(count=len(items), data=items)


@router.get("/{subject_id}", response_model=ApiResponse[SubjectResponse])
async def get_subject(
    subject_id: str,
    service: SubjectService = Depends(get_subject_service),
) -> ApiResponse[SubjectResponse]:
    try:
        subject = await asyncio.to_thread(service.get_subject, subject_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=SubjectResponse.model_validate(subject))


@router.post("", response_model=ApiResponse[SubjectResponse], status_code=status.HTTP_201_CREATED)
async def create_subject(
    payload: SubjectCreate,
    _admin: User = Depends(get_current_admin),
    service: SubjectService = Depends(get_subject_service),
) -> ApiResponse[SubjectResponse]:
    try:
        subject = await asyncio.to_thread(service.create_subject, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=SubjectResponse.model_validate(subject))


@router.put("/{subject_id}", response_model=ApiResponse[SubjectResponse])
async def update_subject(
    subject_id: str,
    payload: SubjectUpdate,
    _admin: User = Depends(get_current_admin),
    service: SubjectService = Depends(get_subject_service),
) -> ApiResponse[SubjectResponse]:
    try:
        subject = await asyncio.to_thread(service.update_subject, subject_id, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=SubjectResponse.model_validate(subject))


@router.delete("/{subject_id}", response_model=MessageResponse)
async def delete_subject(
    subject_id: str,
    _admin: User = Depends(get_current_admin),
    service: SubjectService = Depends(get_subject_service),
) -> MessageResponse:
    try:
        await asyncio.to_thread(service.delete_subject, subject_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MessageResponse(message="Subject deleted")
