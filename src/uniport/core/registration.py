"""Course registration module.

Responsibilities:
- List catalog courses a student may register for this semester
- Register for a course (capacity, credit limit, prerequisites)
- Drop a registered (ungraded) course
- List the student's registrations for the current semester

A course is offered to a student when it is active, runs in the current
semester, is at or below the student's level and belongs to the student's
department (or to "General").
"""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

from uniport.config.app_config import load_app_config
from uniport.core.errors import DomainError, NotFoundError
from uniport.core.grading import is_pass, semester_key
from uniport.db.courses_repository import (
    CourseRecord,
    EnrollmentRecord,
    delete_enrollment,
    find_enrollment,
    get_course_by_id,
    get_enrollment,
    insert_enrollment,
    list_courses,
    list_enrollments_for_student,
)
from uniport.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)

GENERAL_DEPARTMENT = "General"


# =============================================================================
# ERRORS
# =============================================================================


class RegistrationError(DomainError):
    """Course registration rule violated."""


class AlreadyRegisteredError(RegistrationError):
    status_code = 409


class CourseFullError(RegistrationError):
    status_code = 409


class CreditLimitError(RegistrationError):
    """Registering would exceed the per-semester credit limit."""


class PrerequisiteError(RegistrationError):
    """A prerequisite course has not been passed."""


# =============================================================================
# HELPERS
# =============================================================================


def _current_term() -> tuple[int, str]:
    academic = load_app_config().academic
    return academic.current_semester, academic.current_session


def is_offered_to(course: CourseRecord, student: UserRecord, semester: int) -> bool:
    """Whether a course is open to the student this semester."""
    return (
        course.is_active
        and course.semester == semester
        and course.level <= student.level
        and course.department in (student.department, GENERAL_DEPARTMENT)
    )


def passed_course_codes(enrollments: list[EnrollmentRecord]) -> set[str]:
    """Course codes the student has passed in any session."""
    return {
        e.course.course_code
        for e in enrollments
        if e.course is not None and e.grade and is_pass(e.grade)
    }


def registered_credits(enrollments: list[EnrollmentRecord]) -> int:
    """Credit units of the given enrollments."""
    return sum(e.course.credit_units for e in enrollments if e.course is not None)


def missing_prerequisites(course: CourseRecord, passed: set[str]) -> list[str]:
    """Prerequisite course codes not yet passed."""
    return [code for code in course.prerequisite if code not in passed]


# =============================================================================
# OPERATIONS
# =============================================================================


def available_courses(student: UserRecord) -> dict[str, Any]:
    """Courses offered to the student, each flagged with registration state."""
    semester, session = _current_term()
    max_credits = load_app_config().academic.max_credits

    history = list_enrollments_for_student(student.id)
    current = [e for e in history if e.session == session and e.semester == semester]
    registered_ids = {e.course_id for e in current}
    credits = registered_credits(current)
    passed = passed_course_codes(history)

    courses = []
    for course in list_courses(session=session, semester=semester, active_only=True):
        if not is_offered_to(course, student, semester):
            continue
        is_registered = course.id in registered_ids
        can_register = (
            not is_registered
            and not course.is_full
            and credits + course.credit_units <= max_credits
            and not missing_prerequisites(course, passed)
        )
        courses.append(
            {**course.to_dict(), "is_registered": is_registered, "can_register": can_register}
        )

    return {
        "courses": courses,
        "student": {
            "level": student.level,
            "department": student.department,
            "semester": semester,
        },
    }


def register_course(student: UserRecord, course_id: str) -> EnrollmentRecord:
    """Register the student for a course this semester.

    Raises:
        NotFoundError: Unknown course
        RegistrationError: Course not offered to the student
        AlreadyRegisteredError: Already registered this session
        CourseFullError: No seats left
        CreditLimitError: Would exceed the credit limit
        PrerequisiteError: A prerequisite has not been passed
    """
    semester, session = _current_term()
    max_credits = load_app_config().academic.max_credits

    course = get_course_by_id(course_id, session=session)
    if course is None:
        raise NotFoundError("Course", course_id)

    if not is_offered_to(course, student, semester):
        raise RegistrationError(
            f"{course.course_code} is not open for registration to this student"
        )

    if find_enrollment(student.id, course.id, session) is not None:
        raise AlreadyRegisteredError(f"Already registered for {course.course_code}")

    if course.is_full:
        raise CourseFullError(f"{course.course_code} is full ({course.capacity} seats)")

    history = list_enrollments_for_student(student.id)
    current = [e for e in history if e.session == session and e.semester == semester]
    credits = registered_credits(current)
    if credits + course.credit_units > max_credits:
        raise CreditLimitError(
            f"Registering {course.course_code} would bring you to "
            f"{credits + course.credit_units} credits (maximum {max_credits})"
        )

    missing = missing_prerequisites(course, passed_course_codes(history))
    if missing:
        raise PrerequisiteError(
            f"{course.course_code} requires passing: {', '.join(missing)}"
        )

    try:
        enrollment = insert_enrollment(student.id, course.id, semester, session)
    except sqlite3.IntegrityError:
        raise AlreadyRegisteredError(f"Already registered for {course.course_code}")

    logger.info(
        "registration.registered",
        student_id=student.id,
        course_code=course.course_code,
        credits=credits + course.credit_units,
    )
    return enrollment


def drop_course(student: UserRecord, enrollment_id: str) -> None:
    """Drop one of the student's ungraded registrations.

    Raises:
        NotFoundError: Unknown enrollment or not the student's
        RegistrationError: The course has already been graded
    """
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None or enrollment.student_id != student.id:
        raise NotFoundError("Enrollment", enrollment_id)

    if enrollment.is_graded:
        raise RegistrationError("A graded course cannot be dropped")

    delete_enrollment(enrollment_id)
    logger.info(
        "registration.dropped",
        student_id=student.id,
        course_code=enrollment.course.course_code if enrollment.course else None,
    )


def my_courses(student: UserRecord) -> dict[str, Any]:
    """The student's registrations for the current semester."""
    semester, session = _current_term()
    enrollments = list_enrollments_for_student(student.id, session=session, semester=semester)

    courses = []
    for enrollment in enrollments:
        if enrollment.course is None:
            continue
        course = get_course_by_id(enrollment.course_id, session=session) or enrollment.course
        courses.append(
            {
                **course.to_dict(),
                "enrollment_id": enrollment.id,
                "registration_status": enrollment.status,
                "registered_at": enrollment.registered_at,
                "grade": enrollment.grade or "",
            }
        )

    return {
        "courses": courses,
        "total_credits": registered_credits(enrollments),
        "semester": semester_key(semester, session),
    }
