"""Repository functions for the student_courses table.

Student-maintained course list (courses a student adds by hand).
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from typing import Any

import structlog

from uniport.db.database import get_db
from uniport.utils.validators import new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class StudentCourseRecord:
    """A course on a student's own course list."""

    id: str
    student_id: str
    course_code: str
    course_title: str
    credit_units: int
    semester: int
    session: str
    lecturer: str
    schedule: dict[str, str] | None
    grade: str
    status: str
    added_at: str
    created_at: str
    updated_at: str


def _row_to_record(row: sqlite3.Row) -> StudentCourseRecord:
    """Convert database row to StudentCourseRecord."""
    schedule = row["schedule"]
    return StudentCourseRecord(
        id=row["id"],
        student_id=row["student_id"],
        course_code=row["course_code"],
        course_title=row["course_title"],
        credit_units=row["credit_units"],
        semester=row["semester"],
        session=row["session"],
        lecturer=row["lecturer"],
        schedule=json.loads(schedule) if schedule else None,
        grade=row["grade"],
        status=row["status"],
        added_at=row["added_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def insert_student_course(
    student_id: str,
    course_code: str,
    course_title: str,
    credit_units: int,
    semester: int,
    session: str,
    lecturer: str = "",
    schedule: dict[str, str] | None = None,
) -> StudentCourseRecord:
    """Add a course to a student's list."""
    now = utc_now()
    record = StudentCourseRecord(
        id=new_id(),
        student_id=student_id,
        course_code=course_code.upper(),
        course_title=course_title,
        credit_units=credit_units,
        semester=semester,
        session=session,
        lecturer=lecturer,
        schedule=schedule,
        grade="",
        status="registered",
        added_at=now,
        created_at=now,
        updated_at=now,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO student_courses (
                id, student_id, course_code, course_title, credit_units,
                semester, session, lecturer, schedule, grade, status,
                added_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.student_id,
                record.course_code,
                record.course_title,
                record.credit_units,
                record.semester,
                record.session,
                record.lecturer,
                json.dumps(schedule) if schedule else None,
                record.grade,
                record.status,
                record.added_at,
                record.created_at,
                record.updated_at,
            ),
        )

    logger.debug("student_courses.inserted", student_id=student_id, course_code=record.course_code)
    return record


def get_student_course(course_id: str) -> StudentCourseRecord | None:
    """Get a student course entry by ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM student_courses WHERE id = ?", (course_id,)
        ).fetchone()

    return _row_to_record(row) if row else None


def list_student_courses(
    student_id: str,
    semester: int | None = None,
    session: str | None = None,
) -> list[StudentCourseRecord]:
    """List a student's courses in the order they were added."""
    query = "SELECT * FROM student_courses WHERE student_id = ?"
    params: list[Any] = [student_id]
    if semester is not None:
        query += " AND semester = ?"
        params.append(semester)
    if session is not None:
        query += " AND session = ?"
        params.append(session)
    query += " ORDER BY added_at, rowid"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_record(row) for row in rows]


def update_student_course(course_id: str, **fields: Any) -> StudentCourseRecord | None:
    """Update selected fields. None values are skipped."""
    allowed = {"course_code", "course_title", "credit_units", "lecturer", "schedule", "status"}
    updates: dict[str, Any] = {}
    for column, value in fields.items():
        if column not in allowed or value is None:
            continue
        if column == "schedule":
            value = json.dumps(value)
        elif column == "course_code":
            value = value.upper()
        updates[column] = value

    if updates:
        updates["updated_at"] = utc_now()
        assignments = ", ".join(f"{column} = ?" for column in updates)
        with get_db() as conn:
            conn.execute(
                f"UPDATE student_courses SET {assignments} WHERE id = ?",
                (*updates.values(), course_id),
            )

    return get_student_course(course_id)


def delete_student_course(course_id: str) -> bool:
    """Delete a student course entry. Returns True if deleted."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM student_courses WHERE id = ?", (course_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("student_courses.deleted", course_id=course_id)
    return deleted
