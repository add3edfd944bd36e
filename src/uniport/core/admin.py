"""Admin and lecturer portal.

Responsibilities:
- Dashboard statistics per role (admin, lecturer)
- Student management: list/filter/paginate, stats, details, create/update/delete
- Course catalog management
- Grade management: lecturers grade the courses they teach (admins any course)
- Question bank management: lecturers edit only their own questions

Permissions are enforced here, not in the routers, so the CLI gets
the same rules.
"""

from __future__ import annotations

import math
import sqlite3
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Sequence

import structlog

from uniport.config.app_config import load_app_config
from uniport.core import auth
from uniport.core.cbt import DIFFICULTIES
from uniport.core.errors import DomainError, NotFoundError, PermissionDeniedError
from uniport.core.gpa import CourseResult, cumulative_gpa, load_course_results
from uniport.core.grading import (
    GradingError,
    is_valid_grade,
    score_to_grade,
    semester_key,
)
from uniport.db import courses_repository as courses_repo
from uniport.db import questions_repository as questions_repo
from uniport.db import users_repository as users_repo
from uniport.db.courses_repository import CourseRecord, EnrollmentRecord
from uniport.db.practice_repository import list_sessions
from uniport.db.questions_repository import QuestionRecord
from uniport.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 6
RECENT_DAYS = 30
RECENT_LIMIT = 5
IMPORT_REQUIRED_FIELDS = ("question", "options", "correct_answer", "course_code", "difficulty")


class AdminError(DomainError):
    """Invalid admin/lecturer request."""


# =============================================================================
# HELPERS
# =============================================================================


def paginate(items: Sequence[Any], page: int, limit: int) -> tuple[list[Any], dict[str, int]]:
    """Slice a page out of ``items`` (pages start at 1)."""
    if page < 1 or limit < 1:
        raise AdminError("Page and limit must be at least 1")
    total = len(items)
    start = (page - 1) * limit
    return list(items[start : start + limit]), {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if total else 0,
    }


def _require_role(user: UserRecord, *roles: str) -> None:
    if user.role not in roles:
        raise PermissionDeniedError(f"This action requires role: {' or '.join(roles)}")


def _get_student(student_id: str) -> UserRecord:
    student = users_repo.get_user_by_id(student_id)
    if student is None or student.role != "student":
        raise NotFoundError("Student", student_id)
    return student


def _current_session() -> str:
    return load_app_config().academic.current_session


# =============================================================================
# DASHBOARD
# =============================================================================


def dashboard_stats(user: UserRecord) -> dict[str, Any]:
    """Role-specific dashboard figures."""
    _require_role(user, "admin", "lecturer")

    if user.role == "admin":
        students = users_repo.list_users(role="student")
        stats: dict[str, Any] = {
            "total_students": len(students),
            "total_lecturers": users_repo.count_users("lecturer"),
            "total_courses": courses_repo.count_courses(),
            "total_questions": questions_repo.count_questions(),
            "recent_activity": {
                "recent_students": [s.to_public_dict() for s in students[:RECENT_LIMIT]],
                "recent_grades": [
                    {
                        "enrollment_id": e.id,
                        "student_id": e.student_id,
                        "course_code": e.course.course_code if e.course else "",
                        "grade": e.grade,
                        "graded_at": e.graded_at,
                    }
                    for e in courses_repo.list_recent_grades(RECENT_LIMIT)
                ],
            },
        }
    else:
        taught = courses_repo.list_courses(lecturer_id=user.id)
        enrollments = [
            e
            for course in taught
            for e in courses_repo.list_enrollments_for_course(course.id)
        ]
        graded = sum(1 for e in enrollments if e.is_graded)
        stats = {
            "courses_count": len(taught),
            "students_count": len({e.student_id for e in enrollments}),
            "graded_count": graded,
            "pending_grading": len(enrollments) - graded,
            "my_questions": questions_repo.count_questions(created_by=user.id),
        }

    return {"stats": stats, "user_role": user.role}


# =============================================================================
# STUDENTS
# =============================================================================


def list_students(
    department: str | None = None,
    level: int | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """Students matching the filters, newest first, one page at a time."""
    students = users_repo.list_users(
        role="student", department=department, level=level, search=search
    )
    items, pagination = paginate(students, page, limit)
    return {
        "students": [s.to_public_dict() for s in items],
        "pagination": pagination,
    }


def student_filters() -> dict[str, Any]:
    """Distinct departments and levels among students."""
    students = users_repo.list_users(role="student")
    return {
        "departments": sorted({s.department for s in students if s.department}),
        "levels": sorted({s.level for s in students}),
    }


def student_stats(now: datetime | None = None) -> dict[str, Any]:
    """Headcounts by department and level, plus recent registrations."""
    students = users_repo.list_users(role="student")
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=RECENT_DAYS)
    recent = sum(1 for s in students if datetime.fromisoformat(s.created_at) >= cutoff)
    return {
        "total_students": len(students),
        "department_breakdown": dict(Counter(s.department for s in students)),
        "level_breakdown": {str(k): v for k, v in sorted(Counter(s.level for s in students).items())},
        "recent_registrations": recent,
    }


def student_details(student_id: str) -> dict[str, Any]:
    """Profile, academic summary, course history and recent CBT activity."""
    student = _get_student(student_id)
    academic = load_app_config().academic
    results = load_course_results(student.id)
    cgpa = cumulative_gpa(results)

    current = [
        r
        for r in results
        if r.session == academic.current_session
        and r.semester == academic.current_semester
        and not r.is_graded
    ]

    return {
        "student": student.to_public_dict(),
        "academic_summary": {
            "total_courses": len(results),
            "completed_courses": sum(1 for r in results if r.is_graded),
            "current_courses": len(current),
            "total_credits": cgpa.total_credits,
            "cgpa": cgpa.cgpa,
            "current_semester": semester_key(
                academic.current_semester, academic.current_session
            ),
        },
        "courses": [_course_history_entry(r) for r in results],
        "recent_activity": [
            {
                "type": "cbt",
                "course_code": s.course_code,
                "percentage": s.percentage,
                "status": s.status,
                "started_at": s.started_at,
            }
            for s in list_sessions(student.id, limit=RECENT_LIMIT)
        ],
    }


def _course_history_entry(result: CourseResult) -> dict[str, Any]:
    return {
        "id": result.id,
        "course_code": result.course_code,
        "course_title": result.course_title,
        "credit_units": result.credit_units,
        "grade": result.grade or "",
        "grade_point": result.grade_point,
        "semester": result.semester_key,
        "lecturer": result.lecturer,
        "status": result.status,
    }


def create_student(
    matric_no: str,
    email: str,
    first_name: str,
    last_name: str,
    department: str,
    level: int,
    password: str | None = None,
    phone: str | None = None,
    address: str | None = None,
) -> UserRecord:
    """Create a student account; the password defaults to the matric number."""
    return auth.create_user(
        matric_no=matric_no,
        email=email,
        password=password or matric_no,
        first_name=first_name,
        last_name=last_name,
        role="student",
        department=department,
        level=level,
        phone=phone,
        address=address,
    )


def update_student(student_id: str, password: str | None = None, **fields: Any) -> UserRecord:
    """Update a student's profile (and optionally reset their password)."""
    student = _get_student(student_id)
    academic = load_app_config().academic

    email = fields.get("email")
    if email is not None:
        if not auth.validate_email(email):
            raise AdminError("Invalid email format")
        existing = users_repo.get_user_by_email(email)
        if existing is not None and existing.id != student.id:
            raise AdminError(f"Email {email} is already in use", status_code=409)

    level = fields.get("level")
    if level is not None and not academic.min_level <= level <= academic.max_level:
        raise AdminError(f"Level must be between {academic.min_level} and {academic.max_level}")

    if password is not None:
        if len(password) < auth.MIN_PASSWORD_LENGTH:
            raise AdminError(
                f"Password must be at least {auth.MIN_PASSWORD_LENGTH} characters long"
            )
        fields["password_hash"] = auth.hash_password(password)

    updated = users_repo.update_user(student.id, **fields)
    if updated is None:
        raise NotFoundError("Student", student.id)
    logger.info("admin.student_updated", student_id=student.id)
    return updated


def delete_student(student_id: str) -> None:
    """Delete a student and everything that belongs to them."""
    student = _get_student(student_id)
    users_repo.delete_user(student.id)
    logger.info("admin.student_deleted", student_id=student.id, matric_no=student.matric_no)


# =============================================================================
# COURSE CATALOG
# =============================================================================


def _validate_course_fields(fields: dict[str, Any]) -> None:
    academic = load_app_config().academic
    credit_units = fields.get("credit_units")
    if credit_units is not None and not 1 <= credit_units <= 6:
        raise AdminError("Credit units must be between 1 and 6")
    semester = fields.get("semester")
    if semester is not None and semester not in (1, 2):
        raise AdminError("Semester must be 1 or 2")
    level = fields.get("level")
    if level is not None and not academic.min_level <= level <= academic.max_level:
        raise AdminError(f"Level must be between {academic.min_level} and {academic.max_level}")
    capacity = fields.get("capacity")
    if capacity is not None and capacity < 1:
        raise AdminError("Capacity must be at least 1")


def _resolve_lecturer(fields: dict[str, Any]) -> None:
    """Fill the lecturer display name from lecturer_id when not given."""
    lecturer_id = fields.get("lecturer_id")
    if not lecturer_id:
        return
    lecturer = users_repo.get_user_by_id(lecturer_id)
    if lecturer is None or lecturer.role != "lecturer":
        raise NotFoundError("Lecturer", lecturer_id)
    if not fields.get("lecturer"):
        fields["lecturer"] = lecturer.full_name


def list_catalog(
    semester: int | None = None,
    department: str | None = None,
    level: int | None = None,
) -> list[CourseRecord]:
    """Catalog courses with enrolment counts for the current session."""
    return courses_repo.list_courses(
        session=_current_session(), semester=semester, department=department, level=level
    )


def create_course(**fields: Any) -> CourseRecord:
    """Add a course to the catalog.

    Raises:
        AdminError: Invalid field or duplicate course code
    """
    _validate_course_fields(fields)
    _resolve_lecturer(fields)
    try:
        course = courses_repo.insert_course(**fields)
    except sqlite3.IntegrityError:
        raise AdminError(
            f"Course {fields.get('course_code', '').upper()} already exists", status_code=409
        )
    logger.info("admin.course_created", course_code=course.course_code)
    return course


def update_course(course_id: str, **fields: Any) -> CourseRecord:
    """Update a catalog course."""
    if courses_repo.get_course_by_id(course_id) is None:
        raise NotFoundError("Course", course_id)
    _validate_course_fields(fields)
    _resolve_lecturer(fields)
    try:
        courses_repo.update_course(course_id, **fields)
    except sqlite3.IntegrityError:
        raise AdminError("Another course already uses that course code", status_code=409)
    course = courses_repo.get_course_by_id(course_id, session=_current_session())
    if course is None:
        raise NotFoundError("Course", course_id)
    logger.info("admin.course_updated", course_code=course.course_code)
    return course


def delete_course(course_id: str) -> None:
    """Remove a catalog course (and its enrollments)."""
    if not courses_repo.delete_course(course_id):
        raise NotFoundError("Course", course_id)
    logger.info("admin.course_deleted", course_id=course_id)


# =============================================================================
# GRADING
# =============================================================================


def _can_grade(user: UserRecord, course: CourseRecord | None) -> bool:
    if user.role == "admin":
        return True
    return user.role == "lecturer" and course is not None and course.lecturer_id == user.id


def grading_courses(user: UserRecord) -> list[dict[str, Any]]:
    """Courses the user may grade, each with its enrolled students."""
    _require_role(user, "admin", "lecturer")
    courses = courses_repo.list_courses(
        lecturer_id=user.id if user.role == "lecturer" else None
    )

    result = []
    for course in courses:
        students = []
        for enrollment in courses_repo.list_enrollments_for_course(course.id):
            student = users_repo.get_user_by_id(enrollment.student_id)
            if student is None:
                continue
            students.append(
                {
                    "id": enrollment.id,
                    "student": student.to_public_dict(),
                    "credit_units": course.credit_units,
                    "grade": enrollment.grade or "",
                    "score": enrollment.score,
                    "semester": semester_key(enrollment.semester, enrollment.session),
                    "status": enrollment.status,
                }
            )
        result.append(
            {
                "course_id": course.id,
                "course_code": course.course_code,
                "course_title": course.course_title,
                "students": students,
            }
        )
    return result


def grade_enrollment(
    user: UserRecord,
    enrollment_id: str,
    score: float | None = None,
    grade: str | None = None,
) -> EnrollmentRecord:
    """Record a grade from a score (grade derived) or a letter grade.

    Raises:
        NotFoundError: Unknown enrollment
        PermissionDeniedError: Lecturer does not teach the course
        GradingError: Invalid score or grade, or neither given
    """
    _require_role(user, "admin", "lecturer")
    enrollment = courses_repo.get_enrollment(enrollment_id)
    if enrollment is None:
        raise NotFoundError("Enrollment", enrollment_id)
    if not _can_grade(user, enrollment.course):
        raise PermissionDeniedError("You can only grade courses you teach")

    if score is not None:
        letter = score_to_grade(score)
        if grade and grade.strip().upper() != letter:
            raise GradingError(f"Grade {grade} does not match score {score} ({letter})")
    elif grade:
        letter = grade.strip().upper()
        if not is_valid_grade(letter):
            raise GradingError(f"Unknown grade '{grade}'")
    else:
        raise GradingError("Provide a score or a grade")

    updated = courses_repo.record_grade(enrollment.id, score, letter, user.id)
    if updated is None:
        raise NotFoundError("Enrollment", enrollment.id)
    logger.info(
        "admin.grade_recorded",
        enrollment_id=enrollment.id,
        grade=letter,
        graded_by=user.id,
    )
    return updated


def bulk_grade(user: UserRecord, entries: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Grade several enrollments; failures are reported per entry."""
    graded = 0
    errors = []
    for entry in entries:
        enrollment_id = entry.get("enrollment_id", "")
        try:
            grade_enrollment(user, enrollment_id, entry.get("score"), entry.get("grade"))
            graded += 1
        except DomainError as e:
            errors.append({"enrollment_id": enrollment_id, "message": e.message})
    return {"graded": graded, "errors": errors}


# =============================================================================
# QUESTION BANK
# =============================================================================


def question_to_admin_dict(question: QuestionRecord) -> dict[str, Any]:
    """Full question including its answer and author."""
    author = users_repo.get_user_by_id(question.created_by) if question.created_by else None
    return {
        "id": question.id,
        "question": question.question,
        "options": list(question.options),
        "correct_answer": question.correct_answer,
        "course_code": question.course_code,
        "course_title": question.course_title,
        "level": question.level,
        "semester": question.semester,
        "difficulty": question.difficulty,
        "explanation": question.explanation,
        "tags": list(question.tags),
        "created_by": (
            {"id": author.id, "first_name": author.first_name, "last_name": author.last_name}
            if author
            else None
        ),
        "is_active": question.is_active,
        "created_at": question.created_at,
        "updated_at": question.updated_at,
    }


def validate_question(
    question: str,
    options: list[str],
    correct_answer: int,
    difficulty: str,
) -> None:
    """Check a question's shape.

    Raises:
        AdminError: Empty text, wrong option count, answer out of range,
            or unknown difficulty
    """
    if not question.strip():
        raise AdminError("Question text is required")
    if not MIN_OPTIONS <= len(options) <= MAX_OPTIONS:
        raise AdminError(f"A question needs between {MIN_OPTIONS} and {MAX_OPTIONS} options")
    if any(not str(o).strip() for o in options):
        raise AdminError("Options cannot be empty")
    if not 0 <= correct_answer < len(options):
        raise AdminError(f"Correct answer must be between 0 and {len(options) - 1}")
    if difficulty not in DIFFICULTIES:
        raise AdminError(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}")


def _get_editable_question(user: UserRecord, question_id: str) -> QuestionRecord:
    _require_role(user, "admin", "lecturer")
    question = questions_repo.get_question(question_id)
    if question is None:
        raise NotFoundError("Question", question_id)
    if user.role == "lecturer" and question.created_by != user.id:
        raise PermissionDeniedError("You can only modify questions you created")
    return question


def list_question_bank(
    user: UserRecord,
    course_code: str | None = None,
    level: int | None = None,
    difficulty: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """Questions matching the filters, newest first, one page at a time."""
    _require_role(user, "admin", "lecturer")
    questions = questions_repo.list_questions(
        course_code=course_code, level=level, difficulty=difficulty, search=search
    )
    items, pagination = paginate(questions, page, limit)
    return {
        "questions": [question_to_admin_dict(q) for q in items],
        "pagination": pagination,
    }


def question_filters() -> dict[str, Any]:
    """Distinct course codes and levels in the bank."""
    questions = questions_repo.list_questions()
    return {
        "courses": sorted({q.course_code for q in questions}),
        "levels": sorted({q.level for q in questions}),
    }


def question_stats() -> dict[str, Any]:
    """Question counts by difficulty, course and level."""
    questions = questions_repo.list_questions()
    difficulty = Counter(q.difficulty for q in questions)
    return {
        "total_questions": len(questions),
        "difficulty_breakdown": {d: difficulty[d] for d in DIFFICULTIES},
        "course_breakdown": dict(sorted(Counter(q.course_code for q in questions).items())),
        "level_breakdown": {
            str(k): v for k, v in sorted(Counter(q.level for q in questions).items())
        },
    }


def create_question(user: UserRecord, **fields: Any) -> QuestionRecord:
    """Add a question to the bank, authored by ``user``."""
    _require_role(user, "admin", "lecturer")
    validate_question(
        fields["question"], fields["options"], fields["correct_answer"], fields["difficulty"]
    )
    if not fields.get("course_title"):
        course = courses_repo.get_course_by_code(fields["course_code"])
        fields["course_title"] = course.course_title if course else ""

    question = questions_repo.insert_question(created_by=user.id, **fields)
    logger.info("admin.question_created", question_id=question.id, course_code=question.course_code)
    return question


def update_question(user: UserRecord, question_id: str, **fields: Any) -> QuestionRecord:
    """Update a question; the merged result must still be valid."""
    current = _get_editable_question(user, question_id)
    correct_answer = fields.get("correct_answer")
    validate_question(
        fields.get("question") or current.question,
        fields.get("options") or current.options,
        current.correct_answer if correct_answer is None else correct_answer,
        fields.get("difficulty") or current.difficulty,
    )
    updated = questions_repo.update_question(question_id, **fields)
    if updated is None:
        raise NotFoundError("Question", question_id)
    logger.info("admin.question_updated", question_id=question_id)
    return updated


def delete_question(user: UserRecord, question_id: str) -> None:
    """Remove a question from the bank."""
    _get_editable_question(user, question_id)
    questions_repo.delete_question(question_id)
    logger.info("admin.question_deleted", question_id=question_id)


def _as_int(entry: dict[str, Any], key: str, default: int) -> int:
    value = entry.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise AdminError(f"{key} must be an integer, got {value!r}")


def _prepare_import_entry(entry: Any) -> dict[str, Any]:
    """Validate one imported entry and normalise it to create_question fields."""
    if not isinstance(entry, dict):
        raise AdminError("Each question must be a mapping")
    missing = [key for key in IMPORT_REQUIRED_FIELDS if entry.get(key) in (None, "")]
    if missing:
        raise AdminError(f"Missing field(s): {', '.join(missing)}")
    if not isinstance(entry["options"], list):
        raise AdminError("options must be a list")

    fields = {
        "question": str(entry["question"]),
        "options": [str(o) for o in entry["options"]],
        "correct_answer": _as_int(entry, "correct_answer", -1),
        "course_code": str(entry["course_code"]),
        "course_title": str(entry.get("course_title") or ""),
        "level": _as_int(entry, "level", 100),
        "semester": _as_int(entry, "semester", 1),
        "difficulty": str(entry["difficulty"]),
        "explanation": entry.get("explanation"),
        "tags": [str(t) for t in entry.get("tags") or []],
    }
    validate_question(
        fields["question"], fields["options"], fields["correct_answer"], fields["difficulty"]
    )
    return fields


def import_questions(entries: Iterable[dict[str, Any]], author: UserRecord) -> int:
    """Bulk-create questions (all validated before any is stored)."""
    prepared = []
    for index, entry in enumerate(entries, start=1):
        try:
            prepared.append(_prepare_import_entry(entry))
        except AdminError as e:
            raise AdminError(f"Question #{index}: {e.message}")

    for fields in prepared:
        create_question(author, **fields)
    return len(prepared)
