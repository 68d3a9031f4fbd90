"""ULID generation helper utilities."""

from typing import Any, Optional

import ulid

from .exceptions import InvalidIdentifierException


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())


def parse_ulid(ulid_str: Any) -> Optional[ulid.ULID]:
    """Parse and validate a ULID string."""
    if not isinstance(ulid_str, str):
        return None
    try:
        return ulid.ULID.from_str(ulid_str)
    except (ValueError, AttributeError, TypeError):
        return None


def is_valid_ulid(ulid_str: Any) -> bool:
    """Check if a string is a valid ULID."""
    return parse_ulid(ulid_str) is not None


def require_ulid(value: Any, message: str = "Invalid identifier") -> str:
    """Return the identifier unchanged, or raise InvalidIdentifierException."""
    if not is_valid_ulid(value):
        raise InvalidIdentifierException(message)
    return str(value)
