"""Student-maintained course list.

Students may keep their own list of courses for the current semester
(course code, title, credit units, lecturer, schedule). Grades on this
list are never set by students.

Rules:
- A course code appears at most once per student per semester
- Credit units are between 1 and 6
- Total credits of non-dropped courses stay within the credit limit
"""

from __future__ import annotations

from typing import Any

import structlog

from uniport.config.app_config import load_app_config
from uniport.core.errors import DomainError, NotFoundError
from uniport.core.grading import semester_key
from uniport.db.student_courses_repository import (
    StudentCourseRecord,
    delete_student_course,
    get_student_course,
    insert_student_course,
    list_student_courses,
    update_student_course,
)
from uniport.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)

MIN_CREDIT_UNITS = 1
MAX_CREDIT_UNITS = 6


class StudentCourseError(DomainError):
    """Student course list rule violated."""


def record_to_dict(record: StudentCourseRecord) -> dict[str, Any]:
    """Convert to dictionary for API responses."""
    return {
        "id": record.id,
        "student_id": record.student_id,
        "course_code": record.course_code,
        "course_title": record.course_title,
        "credit_units": record.credit_units,
        "semester": semester_key(record.semester, record.session),
        "session": record.session,
        "lecturer": record.lecturer,
        "schedule": record.schedule,
        "grade": record.grade,
        "status": record.status,
        "added_at": record.added_at,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def _current_courses(student: UserRecord) -> list[StudentCourseRecord]:
    academic = load_app_config().academic
    return list_student_courses(
        student.id,
        semester=academic.current_semester,
        session=academic.current_session,
    )


def _active_credits(courses: list[StudentCourseRecord], exclude_id: str | None = None) -> int:
    return sum(
        c.credit_units for c in courses if c.status != "dropped" and c.id != exclude_id
    )


def _check_credit_units(credit_units: int) -> None:
    if not MIN_CREDIT_UNITS <= credit_units <= MAX_CREDIT_UNITS:
        raise StudentCourseError(
            f"Credit units must be between {MIN_CREDIT_UNITS} and {MAX_CREDIT_UNITS}"
        )


def _get_owned(student: UserRecord, course_id: str) -> StudentCourseRecord:
    record = get_student_course(course_id)
    if record is None or record.student_id != student.id:
        raise NotFoundError("Course", course_id)
    return record


def add_course(
    student: UserRecord,
    course_code: str,
    course_title: str,
    credit_units: int,
    lecturer: str = "",
    schedule: dict[str, str] | None = None,
) -> StudentCourseRecord:
    """Add a course to the student's list for the current semester.

    Raises:
        StudentCourseError: Duplicate code, bad credit units, or credit limit
    """
    academic = load_app_config().academic
    _check_credit_units(credit_units)

    courses = _current_courses(student)
    code = course_code.strip().upper()
    if any(c.course_code == code and c.status != "dropped" for c in courses):
        raise StudentCourseError(f"{code} is already on your course list", status_code=409)

    total = _active_credits(courses) + credit_units
    if total > academic.max_credits:
        raise StudentCourseError(
            f"Adding {code} would bring you to {total} credits "
            f"(maximum {academic.max_credits})"
        )

    record = insert_student_course(
        student_id=student.id,
        course_code=code,
        course_title=course_title.strip(),
        credit_units=credit_units,
        semester=academic.current_semester,
        session=academic.current_session,
        lecturer=lecturer,
        schedule=schedule,
    )
    logger.info("student_courses.added", student_id=student.id, course_code=code, credits=total)
    return record


def update_course(student: UserRecord, course_id: str, **fields: Any) -> StudentCourseRecord:
    """Update one of the student's courses.

    Raises:
        NotFoundError: Unknown course or not the student's
        StudentCourseError: Update breaks a list rule
    """
    record = _get_owned(student, course_id)
    courses = _current_courses(student)

    credit_units = fields.get("credit_units")
    if credit_units is None:
        credit_units = record.credit_units
    else:
        _check_credit_units(credit_units)
    code = (fields.get("course_code") or record.course_code).strip().upper()

    # list rules hold for the merged record
    if (fields.get("status") or record.status) != "dropped":
        max_credits = load_app_config().academic.max_credits
        if _active_credits(courses, exclude_id=record.id) + credit_units > max_credits:
            raise StudentCourseError(f"Total credits would exceed {max_credits}")
        if any(
            c.course_code == code and c.id != record.id and c.status != "dropped"
            for c in courses
        ):
            raise StudentCourseError(f"{code} is already on your course list", status_code=409)

    updated = update_student_course(course_id, **fields)
    if updated is None:
        raise NotFoundError("Course", course_id)
    logger.info("student_courses.updated", student_id=student.id, course_id=course_id)
    return updated


def delete_course(student: UserRecord, course_id: str) -> None:
    """Remove one of the student's courses."""
    _get_owned(student, course_id)
    delete_student_course(course_id)
    logger.info("student_courses.deleted", student_id=student.id, course_id=course_id)


def my_courses(student: UserRecord) -> dict[str, Any]:
    """The student's course list for the current semester."""
    academic = load_app_config().academic
    courses = _current_courses(student)
    return {
        "courses": [record_to_dict(c) for c in courses],
        "total_credits": _active_credits(courses),
        "semester": semester_key(academic.current_semester, academic.current_session),
    }


def registration_summary(student: UserRecord) -> dict[str, Any]:
    """Credit usage against the limit."""
    courses = _current_courses(student)
    active = [c for c in courses if c.status != "dropped"]
    return {
        "total_credits": _active_credits(courses),
        "registered_count": len(active),
        "max_credits": load_app_config().academic.max_credits,
        "courses": [record_to_dict(c) for c in courses],
    }
