# backend/tutorlink/api/dependencies/auth.py
"""Authentication and role dependencies."""

import logging
from typing import Awaitable, Callable, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ...auth import decode_access_token
from ...core.enums import RoleName
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...models.user import User
from ...repositories.user_repository import UserRepository
from .database import get_db

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a user.

    Raises:
        HTTPException 401 when the token is missing, invalid, expired, or
        names a user that no longer exists.
    """
    if not token:
        raise UnauthorizedException("Not authorized to access this route", code="NOT_AUTHENTICATED").to_http_exception()
    user_id = decode_access_token(token)
    if not user_id:
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN").to_http_exception()
    user = UserRepository(db).get_by_id(user_id)
    if not user:
        logger.warning(f"Token for missing user {user_id}")
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN").to_http_exception()
    return user


def require_roles(*roles: RoleName) -> Callable[..., Awaitable[User]]:
    """Ensure the current user has one of the provided roles."""

    required = {RoleName(role).value for role in roles}

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in required:
            raise ForbiddenException(
                f"User role {current_user.role} is not authorized to access this route",
                code="ROLE_NOT_ALLOWED",
                details={"required_roles": sorted(required)},
            ).to_http_exception()
        return current_user

    return checker


get_current_student = require_roles(RoleName.STUDENT)
get_current_tutor = require_roles(RoleName.TUTOR)
get_current_admin = require_roles(RoleName.ADMIN)
