# backend/tutorlink/services/subject_service.py
"""Subject catalog management."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..models.subject import Subject
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.subject_repository import SubjectRepository
from ..schemas.subject import SubjectCreate, SubjectUpdate
from .base import BaseService

logger = logging.getLogger(__name__)


class SubjectService(BaseService):
    def __init__(
        self,
        db: Session,
        subject_repository: Optional[SubjectRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.repository = subject_repository or RepositoryFactory.create_subject_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)

    def list_subjects(self, category: Optional[str] = None, grade_level: Optional[str] = None) -> List[Subject]:
        return self.repository.list_subjects(category=category, grade_level=grade_level)

    def get_subject(self, subject_id: str) -> Subject:
        subject = self.repository.get_by_id(subject_id)
        if not subject:
            raise NotFoundException("Subject not found")
        return subject

    @BaseService.measure_operation("create_subject")
    def create_subject(self, data: SubjectCreate) -> Subject:
        self._ensure_name_available(data.name)
        with self.transaction():
            subject = self.repository.create(
                name=data.name.strip(),
                category=data.category.value,
                grade_level=data.grade_level.strip(),
                description=data.description,
            )
        self.log_operation("subject_created", subject_id=subject.id)
        return subject

    @BaseService.measure_operation("update_subject")
    def update_subject(self, subject_id: str, data: SubjectUpdate) -> Subject:
        subject = self.get_subject(subject_id)
        changes = data.model_dump(exclude_unset=True, mode="json")
        if changes.get("name") and changes["name"].strip().lower() != subject.name.lower():
            self._ensure_name_available(changes["name"])
        with self.transaction():
            for key, value in changes.items():
                if value is None and key != "description":
                    continue
                setattr(subject, key, value.strip() if isinstance(value, str) and key != "description" else value)
            self.repository.flush()
        return subject

    @BaseService.measure_operation("delete_subject")
    def delete_subject(self, subject_id: str) -> None:
        subject = self.get_subject(subject_id)
        in_use = self.booking_repository.count_for_subject(subject.id)
        if in_use:
            raise ValidationException(
                "Subject is referenced by existing bookings and cannot be deleted",
                code="SUBJECT_IN_USE",
                details={"bookings": in_use},
            )
        with self.transaction():
            self.repository.delete(subject.id)
        self.log_operation("subject_deleted", subject_id=subject_id)

    def _ensure_name_available(self, name: str) -> None:
        if self.repository.get_by_name(name):
            raise ConflictException(f"Subject '{name.strip()}' already exists", code="SUBJECT_EXISTS")
