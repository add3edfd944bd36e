"""Repository functions for the course catalog and enrollments.

Provides CRUD operations for the courses and enrollments tables.
The ``enrolled`` count of a course is derived from its enrollments
in a given academic session.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from uniport.db.database import get_db
from uniport.utils.validators import new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class CourseRecord:
    """Catalog course record from database."""

    id: str
    course_code: str
    course_title: str
    credit_units: int
    semester: int
    level: int
    department: str
    prerequisite: list[str] = field(default_factory=list)
    lecturer: str = ""
    lecturer_id: str | None = None
    capacity: int = 100
    schedule: dict[str, str] | None = None
    is_active: bool = True
    enrolled: int = 0

    @property
    def is_full(self) -> bool:
        """Whether every seat is taken."""
        return self.enrolled >= self.capacity

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "course_code": self.course_code,
            "course_title": self.course_title,
            "credit_units": self.credit_units,
            "semester": self.semester,
            "level": self.level,
            "department": self.department,
            "prerequisite": list(self.prerequisite),
            "lecturer": self.lecturer,
            "capacity": self.capacity,
            "enrolled": self.enrolled,
            "schedule": self.schedule,
            "is_active": self.is_active,
        }


@dataclass
class EnrollmentRecord:
    """Enrollment of a student in a catalog course for one session."""

    id: str
    student_id: str
    course_id: str
    semester: int
    session: str
    registered_at: str
    status: str = "registered"
    score: float | None = None
    grade: str | None = None
    graded_at: str | None = None
    graded_by: str | None = None
    course: CourseRecord | None = None

    @property
    def is_graded(self) -> bool:
        """Whether a grade has been recorded."""
        return bool(self.grade)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "semester": self.semester,
            "session": self.session,
            "registered_at": self.registered_at,
            "status": self.status,
            "score": self.score,
            "grade": self.grade,
            "graded_at": self.graded_at,
        }


_COURSE_COLUMNS = (
    "id",
    "course_code",
    "course_title",
    "credit_units",
    "semester",
    "level",
    "department",
    "prerequisite",
    "lecturer",
    "lecturer_id",
    "capacity",
    "schedule",
    "is_active",
)

_ENROLLED_SUBQUERY = (
    "(SELECT COUNT(*) FROM enrollments e "
    "WHERE e.course_id = courses.id AND e.session = ?) AS enrolled"
)


def _row_to_course(row: sqlite3.Row, prefix: str = "") -> CourseRecord:
    """Convert database row to CourseRecord."""
    schedule = row[f"{prefix}schedule"]
    return CourseRecord(
        id=row[f"{prefix}id"],
        course_code=row[f"{prefix}course_code"],
        course_title=row[f"{prefix}course_title"],
        credit_units=row[f"{prefix}credit_units"],
        semester=row[f"{prefix}semester"],
        level=row[f"{prefix}level"],
        department=row[f"{prefix}department"],
        prerequisite=json.loads(row[f"{prefix}prerequisite"] or "[]"),
        lecturer=row[f"{prefix}lecturer"],
        lecturer_id=row[f"{prefix}lecturer_id"],
        capacity=row[f"{prefix}capacity"],
        schedule=json.loads(schedule) if schedule else None,
        is_active=bool(row[f"{prefix}is_active"]),
        enrolled=row["enrolled"] if "enrolled" in row.keys() else 0,
    )


def _row_to_enrollment(row: sqlite3.Row) -> EnrollmentRecord:
    """Convert a joined enrollment/course row to EnrollmentRecord."""
    course = _row_to_course(row, prefix="c_") if row["c_id"] else None
    return EnrollmentRecord(
        id=row["id"],
        student_id=row["student_id"],
        course_id=row["course_id"],
        semester=row["semester"],
        session=row["session"],
        registered_at=row["registered_at"],
        status=row["status"],
        score=row["score"],
        grade=row["grade"],
        graded_at=row["graded_at"],
        graded_by=row["graded_by"],
        course=course,
    )


# =============================================================================
# COURSES
# =============================================================================


def insert_course(
    course_code: str,
    course_title: str,
    credit_units: int,
    semester: int,
    level: int,
    department: str,
    prerequisite: list[str] | None = None,
    lecturer: str = "",
    lecturer_id: str | None = None,
    capacity: int = 100,
    schedule: dict[str, str] | None = None,
    is_active: bool = True,
) -> CourseRecord:
    """Insert a new catalog course.

    Raises:
        sqlite3.IntegrityError: If course_code already exists
    """
    course = CourseRecord(
        id=new_id(),
        course_code=course_code.upper(),
        course_title=course_title,
        credit_units=credit_units,
        semester=semester,
        level=level,
        department=department,
        prerequisite=[p.upper() for p in (prerequisite or [])],
        lecturer=lecturer,
        lecturer_id=lecturer_id,
        capacity=capacity,
        schedule=schedule,
        is_active=is_active,
    )
    with get_db() as conn:
        conn.execute(
            f"""
            INSERT INTO courses ({", ".join(_COURSE_COLUMNS)})
            VALUES ({", ".join("?" for _ in _COURSE_COLUMNS)})
            """,
            (
                course.id,
                course.course_code,
                course.course_title,
                course.credit_units,
                course.semester,
                course.level,
                course.department,
                json.dumps(course.prerequisite),
                course.lecturer,
                course.lecturer_id,
                course.capacity,
                json.dumps(schedule) if schedule else None,
                int(is_active),
            ),
        )

    logger.debug("courses.inserted", course_code=course.course_code)
    return course


def get_course_by_id(course_id: str, session: str = "") -> CourseRecord | None:
    """Get course by ID, with its enrolled count for ``session``."""
    with get_db() as conn:
        row = conn.execute(
            f"SELECT courses.*, {_ENROLLED_SUBQUERY} FROM courses WHERE id = ?",
            (session, course_id),
        ).fetchone()

    return _row_to_course(row) if row else None


def get_course_by_code(course_code: str, session: str = "") -> CourseRecord | None:
    """Get course by course code (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            f"SELECT courses.*, {_ENROLLED_SUBQUERY} FROM courses WHERE course_code = ?",
            (session, course_code.upper()),
        ).fetchone()

    return _row_to_course(row) if row else None


def list_courses(
    session: str = "",
    semester: int | None = None,
    active_only: bool = False,
    lecturer_id: str | None = None,
    department: str | None = None,
    level: int | None = None,
) -> list[CourseRecord]:
    """List catalog courses ordered by level then course code."""
    clauses: list[str] = []
    params: list[Any] = [session]

    if semester is not None:
        clauses.append("semester = ?")
        params.append(semester)
    if active_only:
        clauses.append("is_active = 1")
    if lecturer_id:
        clauses.append("lecturer_id = ?")
        params.append(lecturer_id)
    if department:
        clauses.append("department = ?")
        params.append(department)
    if level is not None:
        clauses.append("level = ?")
        params.append(level)

    query = f"SELECT courses.*, {_ENROLLED_SUBQUERY} FROM courses"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY level, course_code"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_course(row) for row in rows]


def count_courses() -> int:
    """Count catalog courses."""
    with get_db() as conn:
        row = conn.execute("SELECT COUNT(*) AS n FROM courses").fetchone()
    return int(row["n"])


def update_course(course_id: str, **fields: Any) -> CourseRecord | None:
    """Update selected columns of a course.

    None values are skipped. Returns the updated course or None if missing.
    """
    updates: dict[str, Any] = {}
    for column, value in fields.items():
        if column not in _COURSE_COLUMNS or column == "id" or value is None:
            continue
        if column == "prerequisite":
            value = json.dumps([p.upper() for p in value])
        elif column == "schedule":
            value = json.dumps(value)
        elif column == "is_active":
            value = int(value)
        elif column == "course_code":
            value = value.upper()
        updates[column] = value

    if updates:
        assignments = ", ".join(f"{column} = ?" for column in updates)
        with get_db() as conn:
            conn.execute(
                f"UPDATE courses SET {assignments} WHERE id = ?",
                (*updates.values(), course_id),
            )
        logger.debug("courses.updated", course_id=course_id, fields=sorted(updates))

    return get_course_by_id(course_id)


def delete_course(course_id: str) -> bool:
    """Delete course by ID (cascades to its enrollments)."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM courses WHERE id = ?", (course_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("courses.deleted", course_id=course_id)
    return deleted


# =============================================================================
# ENROLLMENTS
# =============================================================================

_ENROLLMENT_SELECT = """
    SELECT enrollments.*,
        c.id AS c_id, c.course_code AS c_course_code, c.course_title AS c_course_title,
        c.credit_units AS c_credit_units, c.semester AS c_semester, c.level AS c_level,
        c.department AS c_department, c.prerequisite AS c_prerequisite,
        c.lecturer AS c_lecturer, c.lecturer_id AS c_lecturer_id,
        c.capacity AS c_capacity, c.schedule AS c_schedule, c.is_active AS c_is_active
    FROM enrollments
    LEFT JOIN courses c ON c.id = enrollments.course_id
"""


def insert_enrollment(
    student_id: str,
    course_id: str,
    semester: int,
    session: str,
) -> EnrollmentRecord:
    """Register a student in a course.

    Raises:
        sqlite3.IntegrityError: If the student is already enrolled this session
    """
    enrollment_id = new_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO enrollments (id, student_id, course_id, semester, session, registered_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (enrollment_id, student_id, course_id, semester, session, utc_now()),
        )

    logger.debug("enrollments.inserted", enrollment_id=enrollment_id, course_id=course_id)
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        raise ValueError(f"Enrollment not found: {enrollment_id}")
    return enrollment


def get_enrollment(enrollment_id: str) -> EnrollmentRecord | None:
    """Get enrollment (with course) by ID."""
    with get_db() as conn:
        row = conn.execute(
            _ENROLLMENT_SELECT + " WHERE enrollments.id = ?", (enrollment_id,)
        ).fetchone()

    return _row_to_enrollment(row) if row else None


def list_enrollments_for_student(
    student_id: str,
    session: str | None = None,
    semester: int | None = None,
) -> list[EnrollmentRecord]:
    """List a student's enrollments in registration order."""
    query = _ENROLLMENT_SELECT + " WHERE enrollments.student_id = ?"
    params: list[Any] = [student_id]
    if session is not None:
        query += " AND enrollments.session = ?"
        params.append(session)
    if semester is not None:
        query += " AND enrollments.semester = ?"
        params.append(semester)
    query += " ORDER BY enrollments.registered_at, enrollments.rowid"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_enrollment(row) for row in rows]


def list_enrollments_for_course(
    course_id: str,
    session: str | None = None,
) -> list[EnrollmentRecord]:
    """List enrollments of a course in registration order."""
    query = _ENROLLMENT_SELECT + " WHERE enrollments.course_id = ?"
    params: list[Any] = [course_id]
    if session is not None:
        query += " AND enrollments.session = ?"
        params.append(session)
    query += " ORDER BY enrollments.registered_at, enrollments.rowid"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_enrollment(row) for row in rows]


def find_enrollment(student_id: str, course_id: str, session: str) -> EnrollmentRecord | None:
    """Find a student's enrollment in a course for a session."""
    with get_db() as conn:
        row = conn.execute(
            _ENROLLMENT_SELECT
            + " WHERE enrollments.student_id = ? AND enrollments.course_id = ?"
            + " AND enrollments.session = ?",
            (student_id, course_id, session),
        ).fetchone()

    return _row_to_enrollment(row) if row else None


def list_recent_grades(limit: int = 5) -> list[EnrollmentRecord]:
    """Most recently graded enrollments."""
    with get_db() as conn:
        rows = conn.execute(
            _ENROLLMENT_SELECT
            + " WHERE enrollments.grade IS NOT NULL"
            + " ORDER BY enrollments.graded_at DESC LIMIT ?",
            (limit,),
        ).fetchall()

    return [_row_to_enrollment(row) for row in rows]


def record_grade(
    enrollment_id: str,
    score: float | None,
    grade: str,
    graded_by: str,
) -> EnrollmentRecord | None:
    """Store a grade and mark the enrollment completed."""
    with get_db() as conn:
        conn.execute(
            """
            UPDATE enrollments
            SET score = ?, grade = ?, graded_by = ?, graded_at = ?, status = 'completed'
            WHERE id = ?
            """,
            (score, grade, graded_by, utc_now(), enrollment_id),
        )

    logger.debug("enrollments.graded", enrollment_id=enrollment_id, grade=grade)
    return get_enrollment(enrollment_id)


def delete_enrollment(enrollment_id: str) -> bool:
    """Delete enrollment by ID. Returns True if deleted."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM enrollments WHERE id = ?", (enrollment_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("enrollments.deleted", enrollment_id=enrollment_id)
    return deleted
