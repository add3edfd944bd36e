"""Data validation helpers.

ID and format conventions:
- Entity IDs are UUID4 strings
- Student matric numbers: "U{year}/{7 digits}", e.g. "U2021/1234567"
- Semester keys: "{1|2}-{session end year}", e.g. "1-2024"

Functions:
- validate_email(email) -> bool
- validate_matric_no(matric_no) -> bool
- new_id() -> str
- utc_now() -> str
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

# Email validation pattern
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

# Matriculation number pattern
MATRIC_PATTERN = re.compile(r"^U\d{4}/\d{7}$")


def validate_email(email: str) -> bool:
    """Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email, False otherwise
    """
    return bool(EMAIL_PATTERN.match(email or ""))


def validate_matric_no(matric_no: str) -> bool:
    """Validate a student matriculation number (e.g., U2021/1234567)."""
    return bool(MATRIC_PATTERN.match(matric_no or ""))


def new_id() -> str:
    """Generate a new entity ID."""
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
