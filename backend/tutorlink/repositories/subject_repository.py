# backend/tutorlink/repositories/subject_repository.py
"""Data access for the subject catalog."""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.subject import Subject
from .base_repository import BaseRepository


class SubjectRepository(BaseRepository[Subject]):
    def __init__(self, db: Session):
        super().__init__(db, Subject)

    def list_subjects(self, *, category: Optional[str] = None, grade_level: Optional[str] = None) -> List[Subject]:
        query = self.db.query(Subject)
        if category:
            query = query.filter(Subject.category == category)
        if grade_level:
            query = query.filter(Subject.grade_level == grade_level)
        return query.order_by(Subject.name.asc()).all()

    def get_by_name(self, name: str) -> Optional[Subject]:
        return self.db.query(Subject).filter(func.lower(Subject.name) == name.strip().lower()).first()

    def get_many(self, subject_ids: List[str]) -> List[Subject]:
        if not subject_ids:
            return []
        return self.db.query(Subject).filter(Subject.id.in_(subject_ids)).all()
