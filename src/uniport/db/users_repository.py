"""Repository functions for users and auth tokens.

Provides CRUD operations for the users and auth_tokens tables.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

import structlog

from uniport.db.database import get_db
from uniport.utils.validators import new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class UserRecord:
    """User record from database (student, lecturer or admin)."""

    id: str
    matric_no: str
    email: str
    first_name: str
    last_name: str
    role: str
    department: str
    level: int
    password_hash: str
    created_at: str
    phone: str | None = None
    address: str | None = None

    @property
    def full_name(self) -> str:
        """First name followed by last name."""
        return f"{self.first_name} {self.last_name}".strip()

    def to_public_dict(self) -> dict[str, Any]:
        """Serializable view without the password hash."""
        return {
            "id": self.id,
            "matric_no": self.matric_no,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "department": self.department,
            "level": self.level,
            "phone": self.phone,
            "address": self.address,
            "created_at": self.created_at,
        }


def _row_to_record(row: sqlite3.Row) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        id=row["id"],
        matric_no=row["matric_no"],
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        role=row["role"],
        department=row["department"],
        level=row["level"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
        phone=row["phone"],
        address=row["address"],
    )


def insert_user(
    matric_no: str,
    email: str,
    first_name: str,
    last_name: str,
    role: str,
    password_hash: str,
    department: str = "",
    level: int = 100,
    phone: str | None = None,
    address: str | None = None,
) -> UserRecord:
    """Insert a new user record.

    Raises:
        sqlite3.IntegrityError: If matric_no or email already exists
    """
    user = UserRecord(
        id=new_id(),
        matric_no=matric_no,
        email=email.lower(),
        first_name=first_name,
        last_name=last_name,
        role=role,
        department=department,
        level=level,
        password_hash=password_hash,
        created_at=utc_now(),
        phone=phone,
        address=address,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO users (
                id, matric_no, email, first_name, last_name, role,
                department, level, phone, address, password_hash, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user.id,
                user.matric_no,
                user.email,
                user.first_name,
                user.last_name,
                user.role,
                user.department,
                user.level,
                user.phone,
                user.address,
                user.password_hash,
                user.created_at,
            ),
        )

    logger.debug("users.inserted", user_id=user.id, role=role)
    return user


def get_user_by_id(user_id: str) -> UserRecord | None:
    """Get user by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

    return _row_to_record(row) if row else None


def get_user_by_matric_no(matric_no: str) -> UserRecord | None:
    """Get user by matriculation (or staff) number."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE matric_no = ?", (matric_no,)
        ).fetchone()

    return _row_to_record(row) if row else None


def get_user_by_email(email: str) -> UserRecord | None:
    """Get user by email (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE email = ?", (email.lower(),)
        ).fetchone()

    return _row_to_record(row) if row else None


def list_users(
    role: str | None = None,
    department: str | None = None,
    level: int | None = None,
    search: str | None = None,
) -> list[UserRecord]:
    """List users, newest first, with optional filters.

    Args:
        role: Only users with this role
        department: Only users in this department
        level: Only users at this level
        search: Case-insensitive match on matric number, names or email
    """
    clauses: list[str] = []
    params: list[Any] = []

    if role:
        clauses.append("role = ?")
        params.append(role)
    if department:
        clauses.append("department = ?")
        params.append(department)
    if level is not None:
        clauses.append("level = ?")
        params.append(level)
    if search:
        clauses.append(
            "(matric_no LIKE ? OR first_name LIKE ? OR last_name LIKE ? OR email LIKE ?)"
        )
        pattern = f"%{search}%"
        params.extend([pattern] * 4)

    query = "SELECT * FROM users"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at DESC, rowid DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_record(row) for row in rows]


def count_users(role: str) -> int:
    """Count users with the given role."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM users WHERE role = ?", (role,)
        ).fetchone()
    return int(row["n"])


def update_user(user_id: str, **fields: Any) -> UserRecord | None:
    """Update selected columns of a user.

    Args:
        user_id: User identifier
        **fields: Column names and new values (None values are skipped)

    Returns:
        Updated UserRecord, or None if the user does not exist
    """
    allowed = {
        "email",
        "first_name",
        "last_name",
        "department",
        "level",
        "phone",
        "address",
        "password_hash",
    }
    updates = {k: v for k, v in fields.items() if k in allowed and v is not None}
    if "email" in updates:
        updates["email"] = updates["email"].lower()

    if updates:
        assignments = ", ".join(f"{column} = ?" for column in updates)
        with get_db() as conn:
            conn.execute(
                f"UPDATE users SET {assignments} WHERE id = ?",
                (*updates.values(), user_id),
            )
        logger.debug("users.updated", user_id=user_id, fields=sorted(updates))

    return get_user_by_id(user_id)


def delete_user(user_id: str) -> bool:
    """Delete user by ID. Returns True if deleted."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("users.deleted", user_id=user_id)
    return deleted


# =============================================================================
# AUTH TOKENS
# =============================================================================


def insert_token(token: str, user_id: str) -> None:
    """Store an issued bearer token for a user."""
    with get_db() as conn:
        conn.execute(
            "INSERT INTO auth_tokens (token, user_id, created_at) VALUES (?, ?, ?)",
            (token, user_id, utc_now()),
        )


def get_user_by_token(token: str) -> UserRecord | None:
    """Resolve a bearer token to its user."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT users.* FROM auth_tokens
            JOIN users ON users.id = auth_tokens.user_id
            WHERE auth_tokens.token = ?
            """,
            (token,),
        ).fetchone()

    return _row_to_record(row) if row else None


def delete_token(token: str) -> bool:
    """Revoke a bearer token. Returns True if it existed."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM auth_tokens WHERE token = ?", (token,))
    return cursor.rowcount > 0
