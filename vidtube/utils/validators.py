"""
Request input checks shared by the services.

Every check either returns the value as it will be stored or raises
ValidationError, so a service never persists unchecked input.
"""

import re
from typing import Optional
from uuid import UUID

from vidtube.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

# Letter first, then letters, digits or underscores; 3-50 characters overall
USERNAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]{2,49}$")


def normalize_email(email: Optional[str]) -> str:
    """
    Email address as stored: trimmed and lowercased.

    Raises:
        ValidationError: If the address is malformed or longer than 255 characters
    """
    email = (email or "").strip().lower()
    if len(email) > 255 or not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email address format")
    return email


def normalize_username(username: Optional[str]) -> str:
    """
    Channel handle as stored: trimmed and lowercased.

    Raises:
        ValidationError: If the handle breaks the handle rules
    """
    username = (username or "").strip()
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(
            "Username must be 3 to 50 letters, digits or underscores and start with a letter"
        )
    return username.lower()


def clean_text(text: Optional[str], max_length: int = 5000) -> str:
    """Free text as stored: NUL bytes dropped, cut to ``max_length``, outer whitespace trimmed."""
    if not text:
        return ""
    return text.replace("\x00", "")[:max_length].strip()


def require_fields(message: str = "All fields are required", **fields: Optional[str]) -> None:
    """
    Fail if any named field is missing or blank.

    Raises:
        ValidationError: With one ``<name> is required`` entry per blank field
    """
    blank = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if blank:
        raise ValidationError(message, errors=[f"{name} is required" for name in blank])


def parse_id(value: Optional[str], label: str = "resource") -> UUID:
    """
    Parse a path or query identifier before any store access.

    Args:
        value: Raw identifier from the request
        label: Entity name used in the error message

    Returns:
        The identifier as a UUID

    Raises:
        ValidationError: If the identifier is missing or malformed
    """
    if not value:
        raise ValidationError(f"Invalid {label} id")
    try:
        return UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"Invalid {label} id")
