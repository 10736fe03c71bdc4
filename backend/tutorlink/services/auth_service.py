# backend/tutorlink/services/auth_service.py
"""Registration, login and password changes."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..auth import create_access_token, get_password_hash, verify_password
from ..core.enums import SELF_REGISTRATION_ROLES, RoleName
from ..core.exceptions import ConflictException, IntegrityViolation, UnauthorizedException, ValidationException
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from ..schemas.auth import LoginRequest, PasswordUpdateRequest, RegisterRequest
from .base import BaseService

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    def __init__(self, db: Session, user_repository: Optional[UserRepository] = None):
        super().__init__(db)
        self.repository = user_repository or RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("register_user")
    def register_user(self, data: RegisterRequest) -> User:
        role = RoleName(data.role)
        if role not in SELF_REGISTRATION_ROLES:
            raise ValidationException("Invalid role", code="INVALID_ROLE")

        email = data.email.strip().lower()
        if self.repository.get_by_email(email):
            raise ConflictException("Email already registered", code="EMAIL_EXISTS")

        try:
            with self.transaction():
                user = self.repository.create(
                    name=data.name,
                    email=email,
                    hashed_password=get_password_hash(data.password),
                    role=role.value,
                    availability=[],
                )
        except IntegrityViolation:
            raise ConflictException("Email already registered", code="EMAIL_EXISTS")

        self.log_operation("user_registered", user_id=user.id, role=role.value)
        return user

    def authenticate(self, data: LoginRequest) -> User:
        user = self.repository.get_by_email(data.email)
        if not user or not verify_password(data.password, user.hashed_password):
            raise UnauthorizedException("Invalid credentials", code="INVALID_CREDENTIALS")
        return user

    @BaseService.measure_operation("change_password")
    def change_password(self, user: User, data: PasswordUpdateRequest) -> User:
        if not verify_password(data.current_password, user.hashed_password):
            raise UnauthorizedException("Current password is incorrect", code="INVALID_CREDENTIALS")
        with self.transaction():
            user.hashed_password = get_password_hash(data.new_password)
            self.repository.flush()
        self.log_operation("password_changed", user_id=user.id)
        return user

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token({"sub": user.id, "role": user.role})
