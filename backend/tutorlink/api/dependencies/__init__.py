from .auth import get_current_admin, get_current_student, get_current_tutor, get_current_user, require_roles
from .database import get_db

__all__ = [
    "get_current_admin",
    "get_current_student",
    "get_current_tutor",
    "get_current_user",
    "get_db",
    "require_roles",
]
