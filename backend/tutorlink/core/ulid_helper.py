"""ULID generation helper utilities."""

import re

import ulid

from .constants import ULID_PATH_PATTERN

_ULID_RE = re.compile(ULID_PATH_PATTERN)


def generate_ulid() -> str:
    """Generate a new ULID string; used as the primary-key default of every model."""
    return str(ulid.ULID())


def is_valid_ulid(value: str) -> bool:
    return bool(_ULID_RE.match(value.upper()))
