"""Results, transcript and academic progress.

Responsibilities:
- All results grouped by semester, with overall CGPA
- Results of a single semester
- Transcript grouped by academic session (first/second semester)
- Academic progress: GPA trend, grade distribution, pass rate by credit load

All views are built from graded courses only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import structlog

from uniport.config.app_config import load_app_config
from uniport.core.gpa import (
    GPA_DECIMALS,
    CourseResult,
    SemesterGPA,
    calculate_gpa,
    class_of_degree,
    cumulative_gpa,
    semester_gpa,
)
from uniport.core.grading import is_pass, parse_semester_key, session_end_year
from uniport.db.users_repository import UserRecord
from uniport.utils.validators import utc_now

logger = structlog.get_logger(__name__)


def _block(gpa: SemesterGPA) -> dict[str, Any]:
    """Semester block without its key (used inside transcripts)."""
    return {
        "courses": [c.to_dict() for c in gpa.courses],
        "total_credits": gpa.total_credits,
        "total_quality_points": round(gpa.total_quality_points, GPA_DECIMALS),
        "gpa": gpa.gpa,
    }


def all_results(courses: Sequence[CourseResult]) -> dict[str, Any]:
    """Every graded semester plus overall totals."""
    cgpa = cumulative_gpa(courses)
    graded = [c for c in courses if c.is_graded]
    return {
        "semesters": [s.to_dict() for s in cgpa.semesters],
        "overall": {
            "total_courses": len(graded),
            "total_credits": cgpa.total_credits,
            "cgpa": cgpa.cgpa,
        },
    }


def semester_results(courses: Sequence[CourseResult], key: str) -> dict[str, Any]:
    """Results of one semester; an unknown semester yields an empty result."""
    parse_semester_key(key)
    return semester_gpa(courses, key).to_dict()


@dataclass
class Transcript:
    """Academic transcript of one student."""

    student: dict[str, Any]
    academic_sessions: list[dict[str, Any]] = field(default_factory=list)
    overall: dict[str, Any] = field(default_factory=dict)
    generated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "student": self.student,
            "academic_sessions": self.academic_sessions,
            "overall": self.overall,
            "generated_at": self.generated_at,
        }


def build_transcript(student: UserRecord, courses: Sequence[CourseResult]) -> Transcript:
    """Build a transcript ordered by academic session.

    Each session lists its first and second semester (an empty block when a
    semester has no graded courses).
    """
    graded = [c for c in courses if c.is_graded]
    sessions = sorted({c.session for c in graded}, key=session_end_year)

    academic_sessions = []
    for session in sessions:
        in_session = [c for c in graded if c.session == session]
        first = semester_gpa(in_session, f"1-{session_end_year(session)}")
        second = semester_gpa(in_session, f"2-{session_end_year(session)}")
        academic_sessions.append(
            {
                "session": session,
                "first_semester": _block(first),
                "second_semester": _block(second),
            }
        )

    total_credits, total_qp, cgpa = calculate_gpa(graded)
    transcript = Transcript(
        student={
            "matric_no": student.matric_no,
            "full_name": student.full_name,
            "email": student.email,
            "department": student.department,
            "current_level": student.level,
            "graduation_date": None,
        },
        academic_sessions=academic_sessions,
        overall={
            "total_credits": total_credits,
            "cumulative_quality_points": round(total_qp, GPA_DECIMALS),
            "cgpa": cgpa,
            "class_of_degree": class_of_degree(cgpa),
        },
        generated_at=utc_now(),
    )

    logger.info(
        "results.transcript_generated",
        student_id=student.id,
        sessions=len(academic_sessions),
        cgpa=cgpa,
    )
    return transcript


def academic_progress(courses: Sequence[CourseResult]) -> dict[str, Any]:
    """GPA trend, grade distribution and pass rate per credit load."""
    cgpa = cumulative_gpa(courses)
    gpa_trend = [
        {
            "semester": s.semester,
            "gpa": s.gpa,
            "credits": s.total_credits,
            "courses": len(s.courses),
        }
        for s in cgpa.semesters
    ]

    distribution = {band.grade: 0 for band in load_app_config().grading.scale}
    performance: dict[str, dict[str, int]] = {}
    for course in courses:
        if not course.is_graded:
            continue
        letter = course.grade.upper()
        distribution[letter] = distribution.get(letter, 0) + 1

        bucket = performance.setdefault(
            f"{course.credit_units}-unit", {"total": 0, "passed": 0}
        )
        bucket["total"] += 1
        if is_pass(letter):
            bucket["passed"] += 1

    return {
        "gpa_trend": gpa_trend,
        "grade_distribution": distribution,
        "performance_by_credits": dict(sorted(performance.items())),
    }
