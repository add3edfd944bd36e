"""Accounts and login.

Responsibilities:
- Student self-registration (matric number, email, password rules)
- Login by matric number or email
- Opaque bearer tokens stored server-side; logout revokes them
- Password hashing (werkzeug.security)
"""

from __future__ import annotations

import secrets
import sqlite3

import structlog
from werkzeug.security import check_password_hash, generate_password_hash

from uniport.config.app_config import load_app_config
from uniport.core.errors import DomainError
from uniport.db.users_repository import (
    UserRecord,
    delete_token,
    get_user_by_email,
    get_user_by_matric_no,
    get_user_by_token,
    insert_token,
    insert_user,
)
from uniport.utils.validators import validate_email, validate_matric_no

logger = structlog.get_logger(__name__)

ROLES = ("student", "lecturer", "admin")
MIN_PASSWORD_LENGTH = 6
PASSWORD_HASH_METHOD = "pbkdf2:sha256:600000"


class AuthError(DomainError):
    """Registration or login failure."""


class InvalidCredentialsError(AuthError):
    status_code = 401


class DuplicateUserError(AuthError):
    status_code = 409


# =============================================================================
# PASSWORDS & TOKENS
# =============================================================================


def hash_password(password: str) -> str:
    """Salted hash of a password (werkzeug format, "method$salt$hash")."""
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash."""
    return check_password_hash(password_hash, password)


def issue_token(user: UserRecord) -> str:
    """Create and store a bearer token for the user."""
    token = secrets.token_urlsafe(32)
    insert_token(token, user.id)
    return token


def resolve_token(token: str) -> UserRecord | None:
    """User owning a bearer token, if any."""
    return get_user_by_token(token) if token else None


def revoke_token(token: str) -> bool:
    """Log out: forget a bearer token."""
    return delete_token(token)


# =============================================================================
# ACCOUNTS
# =============================================================================


def validate_new_user(
    matric_no: str,
    email: str,
    password: str,
    role: str,
    level: int,
) -> None:
    """Check account fields before creation.

    Raises:
        AuthError: Field format problem
        DuplicateUserError: Matric number or email already in use
    """
    academic = load_app_config().academic

    if role not in ROLES:
        raise AuthError(f"Unknown role '{role}'")
    if role == "student" and not validate_matric_no(matric_no):
        raise AuthError(
            "Please enter a valid matriculation number (e.g., U2021/1234567)"
        )
    if not matric_no:
        raise AuthError("Staff number is required")
    if not validate_email(email):
        raise AuthError("Invalid email format")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if role == "student" and not (
        academic.min_level <= level <= academic.max_level and level % 100 == 0
    ):
        raise AuthError(
            f"Level must be one of {academic.min_level}..{academic.max_level} in steps of 100"
        )

    if get_user_by_matric_no(matric_no) is not None:
        raise DuplicateUserError(f"An account with matric number {matric_no} already exists")
    if get_user_by_email(email) is not None:
        raise DuplicateUserError(f"An account with email {email} already exists")


def create_user(
    matric_no: str,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: str = "student",
    department: str = "",
    level: int = 100,
    phone: str | None = None,
    address: str | None = None,
) -> UserRecord:
    """Validate and create an account."""
    matric_no = matric_no.strip()
    validate_new_user(matric_no, email, password, role, level)

    try:
        user = insert_user(
            matric_no=matric_no,
            email=email,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=role,
            password_hash=hash_password(password),
            department=department.strip(),
            level=level,
            phone=phone,
            address=address,
        )
    except sqlite3.IntegrityError:
        raise DuplicateUserError("Matric number or email already in use")

    logger.info("auth.user_created", user_id=user.id, role=role)
    return user


def register_student(
    matric_no: str,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    department: str,
    level: int,
) -> tuple[UserRecord, str]:
    """Self-register a student and log them in."""
    user = create_user(
        matric_no=matric_no,
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        role="student",
        department=department,
        level=level,
    )
    return user, issue_token(user)


def login(identifier: str, password: str) -> tuple[UserRecord, str]:
    """Log in with matric/staff number or email.

    Raises:
        InvalidCredentialsError: Unknown user or wrong password
    """
    identifier = identifier.strip()
    user = get_user_by_matric_no(identifier)
    if user is None and "@" in identifier:
        user = get_user_by_email(identifier)

    if user is None or not verify_password(password, user.password_hash):
        logger.info("auth.login_failed", identifier=identifier)
        raise InvalidCredentialsError("Invalid matric number or password")

    logger.info("auth.login", user_id=user.id, role=user.role)
    return user, issue_token(user)
