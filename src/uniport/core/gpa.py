"""GPA / CGPA calculation module.

Responsibilities:
- Semester GPA: sum(grade point x credit units) / sum(credit units)
- CGPA over all graded courses (from summed totals, not averaged GPAs)
- Class of degree from CGPA thresholds
- Academic summary for a student

Only graded courses take part in any calculation; a semester or
student with no graded credits has a GPA of 0.0.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from uniport.config.app_config import DegreeClass, load_app_config
from uniport.core.grading import (
    grade_point,
    quality_points,
    semester_key,
    semester_sort_key,
)
from uniport.db.courses_repository import EnrollmentRecord, list_enrollments_for_student

GPA_DECIMALS = 2


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class CourseResult:
    """A course a student took in one semester, graded or not."""

    course_code: str
    course_title: str
    credit_units: int
    semester: int
    session: str
    grade: str | None = None
    lecturer: str = ""
    status: str = "completed"
    id: str = ""

    @property
    def semester_key(self) -> str:
        return semester_key(self.semester, self.session)

    @property
    def is_graded(self) -> bool:
        return bool(self.grade)

    @property
    def grade_point(self) -> int:
        return grade_point(self.grade) if self.grade else 0

    @property
    def quality_points(self) -> float:
        return quality_points(self.grade_point, self.credit_units)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "course_code": self.course_code,
            "course_title": self.course_title,
            "credit_units": self.credit_units,
            "grade": self.grade or "",
            "grade_point": self.grade_point,
            "quality_points": round(self.quality_points, GPA_DECIMALS),
            "lecturer": self.lecturer,
        }

    @classmethod
    def from_enrollment(cls, enrollment: EnrollmentRecord) -> "CourseResult":
        """Build from an enrollment joined with its catalog course."""
        course = enrollment.course
        return cls(
            id=enrollment.id,
            course_code=course.course_code if course else "",
            course_title=course.course_title if course else "",
            credit_units=course.credit_units if course else 0,
            semester=enrollment.semester,
            session=enrollment.session,
            grade=enrollment.grade,
            lecturer=course.lecturer if course else "",
            status=enrollment.status,
        )


@dataclass
class SemesterGPA:
    """GPA of one semester."""

    semester: str
    total_credits: int
    total_quality_points: float
    gpa: float
    courses: list[CourseResult]

    def to_dict(self) -> dict[str, Any]:
        return {
            "semester": self.semester,
            "total_credits": self.total_credits,
            "total_quality_points": round(self.total_quality_points, GPA_DECIMALS),
            "gpa": self.gpa,
            "courses": [c.to_dict() for c in self.courses],
        }


@dataclass
class CumulativeGPA:
    """CGPA with its per-semester breakdown."""

    total_credits: int
    total_quality_points: float
    cgpa: float
    semesters: list[SemesterGPA]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_credits": self.total_credits,
            "total_quality_points": round(self.total_quality_points, GPA_DECIMALS),
            "cgpa": self.cgpa,
            "semesters": [s.to_dict() for s in self.semesters],
        }


@dataclass
class AcademicSummary:
    """Headline figures for a student's dashboard."""

    current_gpa: float
    cgpa: float
    total_courses: int
    completed_courses: int
    registered_courses: int
    total_credits: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_gpa": self.current_gpa,
            "cgpa": self.cgpa,
            "total_courses": self.total_courses,
            "completed_courses": self.completed_courses,
            "registered_courses": self.registered_courses,
            "total_credits": self.total_credits,
        }


# =============================================================================
# CALCULATIONS
# =============================================================================


def calculate_gpa(courses: Iterable[CourseResult]) -> tuple[int, float, float]:
    """Weighted average over graded courses.

    Returns:
        (total credits, total quality points, GPA rounded to 2 dp)
    """
    total_credits = 0
    total_qp = 0.0
    for course in courses:
        if not course.is_graded:
            continue
        total_credits += course.credit_units
        total_qp += course.quality_points

    if total_credits == 0:
        return 0, 0.0, 0.0

    return total_credits, total_qp, round(total_qp / total_credits, GPA_DECIMALS)


def group_by_semester(courses: Iterable[CourseResult]) -> "OrderedDict[str, list[CourseResult]]":
    """Group courses by semester key, oldest semester first."""
    grouped: dict[str, list[CourseResult]] = {}
    for course in courses:
        grouped.setdefault(course.semester_key, []).append(course)
    return OrderedDict(
        (key, grouped[key]) for key in sorted(grouped, key=semester_sort_key)
    )


def semester_gpa(courses: Sequence[CourseResult], key: str) -> SemesterGPA:
    """GPA for one semester; only graded courses are listed."""
    graded = [c for c in courses if c.semester_key == key and c.is_graded]
    credits, qp, gpa = calculate_gpa(graded)
    return SemesterGPA(
        semester=key,
        total_credits=credits,
        total_quality_points=qp,
        gpa=gpa,
        courses=graded,
    )


def cumulative_gpa(courses: Sequence[CourseResult]) -> CumulativeGPA:
    """CGPA over every graded course, with a per-semester breakdown."""
    graded = [c for c in courses if c.is_graded]
    semesters = [semester_gpa(group, key) for key, group in group_by_semester(graded).items()]
    credits, qp, cgpa = calculate_gpa(graded)
    return CumulativeGPA(
        total_credits=credits,
        total_quality_points=qp,
        cgpa=cgpa,
        semesters=semesters,
    )


def class_of_degree(cgpa: float, classes: list[DegreeClass] | None = None) -> str:
    """Class of degree for a CGPA.

    Default thresholds: 4.50 First Class, 3.50 Second Class Upper,
    2.40 Second Class Lower, 1.50 Third Class, otherwise Pass.
    """
    grading = load_app_config().grading
    for degree_class in classes if classes is not None else grading.degree_classes:
        if cgpa >= degree_class.min_cgpa:
            return degree_class.name
    return grading.lowest_class


def academic_summary(courses: Sequence[CourseResult]) -> AcademicSummary:
    """Summary figures; current GPA is that of the latest graded semester."""
    cgpa = cumulative_gpa(courses)
    current_gpa = cgpa.semesters[-1].gpa if cgpa.semesters else 0.0
    completed = sum(1 for c in courses if c.is_graded)
    return AcademicSummary(
        current_gpa=current_gpa,
        cgpa=cgpa.cgpa,
        total_courses=len(courses),
        completed_courses=completed,
        registered_courses=len(courses) - completed,
        total_credits=cgpa.total_credits,
    )


def load_course_results(student_id: str) -> list[CourseResult]:
    """All of a student's enrollments as CourseResults."""
    return [CourseResult.from_enrollment(e) for e in list_enrollments_for_student(student_id)]
