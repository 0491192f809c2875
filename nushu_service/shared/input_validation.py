"""
Input validation utilities shared by request schemas.

Values are trimmed, never truncated: anything over its limit is rejected.
The helpers raise ValueError so pydantic field validators can call them
directly.
"""

from typing import Optional


MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_MESSAGE_LENGTH = 2000
MAX_RESPONSE_LENGTH = 2000


def require_text(value: Optional[str], field_name: str, max_length: int) -> str:
    """
    Trim a required text field and check its length.

    Raises:
        ValueError if the value is missing, blank, or longer than max_length
    """
    if value is None or not value.strip():
        raise ValueError(f"{field_name} is required")

    cleaned = value.strip()
    if len(cleaned) > max_length:
        raise ValueError(f"{field_name} cannot exceed {max_length} characters")
    return cleaned


def optional_text(value: Optional[str], field_name: str, max_length: Optional[int] = None) -> str:
    """Trim an optional text field; missing becomes an empty string."""
    if value is None:
        return ""
    cleaned = value.strip()
    if max_length is not None and len(cleaned) > max_length:
        raise ValueError(f"{field_name} cannot exceed {max_length} characters")
    return cleaned


def trim_email(value: Optional[str]) -> Optional[str]:
    """
    Trim an email address before format validation.

    Non-string input is passed through untouched so EmailStr reports it.
    """
    if value is not None and not isinstance(value, str):
        return value
    return require_text(value, "Email", MAX_EMAIL_LENGTH)
