"""
Core enums for the Tutorlink platform.

Roles are stored as plain strings on the user row; this enum is the
canonical list of values accepted anywhere in the application.
"""

from enum import Enum


class RoleName(str, Enum):
    """Account roles."""

    ADMIN = "admin"
    TUTOR = "tutor"
    STUDENT = "student"


SELF_REGISTRATION_ROLES = (RoleName.STUDENT, RoleName.TUTOR)
