"""Grading scale and semester helpers.

Responsibilities:
- Map exam scores (0-100) to letter grades on the configured five-point scale
- Map letter grades to grade points and quality points
- Build, parse and format semester keys ("1-2024" -> "First Semester 2023/2024")

Default scale:
    A 70-100 = 5, B 60-69 = 4, C 50-59 = 3, D 45-49 = 2, E 40-44 = 1, F 0-39 = 0
"""

from __future__ import annotations

import re

from uniport.config.app_config import GradeBand, load_app_config
from uniport.core.errors import DomainError

SEMESTER_KEY_PATTERN = re.compile(r"^([12])-(\d{4})$")
SEMESTER_NAMES = {1: "First Semester", 2: "Second Semester"}


class GradingError(DomainError):
    """Invalid score, grade or semester key."""


def _scale(scale: list[GradeBand] | None) -> list[GradeBand]:
    return scale if scale is not None else load_app_config().grading.scale


def score_to_grade(score: float, scale: list[GradeBand] | None = None) -> str:
    """Convert a score to its letter grade.

    Args:
        score: Exam score in 0..100
        scale: Grade bands sorted by min_score descending (default: config)

    Raises:
        GradingError: If score is outside 0..100
    """
    if score < 0 or score > 100:
        raise GradingError(f"Score must be between 0 and 100, got {score}")

    for band in _scale(scale):
        if score >= band.min_score:
            return band.grade

    raise GradingError(f"No grade band covers score {score}")


def grade_point(grade: str, scale: list[GradeBand] | None = None) -> int:
    """Grade point for a letter grade.

    Raises:
        GradingError: If the grade is not on the scale
    """
    letter = (grade or "").strip().upper()
    for band in _scale(scale):
        if band.grade == letter:
            return band.point
    raise GradingError(f"Unknown grade '{grade}'")


def is_valid_grade(grade: str, scale: list[GradeBand] | None = None) -> bool:
    """Whether a letter grade exists on the scale."""
    letter = (grade or "").strip().upper()
    return any(band.grade == letter for band in _scale(scale))


def quality_points(point: float, credit_units: int) -> float:
    """Quality points earned: grade point x credit units."""
    return point * credit_units


def is_pass(grade: str, scale: list[GradeBand] | None = None) -> bool:
    """A grade passes when it earns any grade points."""
    return grade_point(grade, scale) > 0


# =============================================================================
# SEMESTER KEYS
# =============================================================================


def session_end_year(session: str) -> int:
    """End year of an academic session ("2023/2024" -> 2024)."""
    try:
        return int(session.split("/")[-1])
    except ValueError:
        raise GradingError(f"Invalid academic session '{session}'")


def semester_key(semester: int, session: str) -> str:
    """Semester key for a semester of a session (1, "2023/2024" -> "1-2024")."""
    return f"{semester}-{session_end_year(session)}"


def parse_semester_key(key: str) -> tuple[int, str]:
    """Split a semester key into (semester number, session).

    Raises:
        GradingError: If the key is not "{1|2}-{YYYY}"
    """
    match = SEMESTER_KEY_PATTERN.match(key or "")
    if not match:
        raise GradingError(f"Invalid semester '{key}', expected format like '1-2024'")
    semester = int(match.group(1))
    year = int(match.group(2))
    return semester, f"{year - 1}/{year}"


def semester_sort_key(key: str) -> tuple[int, int]:
    """Chronological sort key for a semester key."""
    semester, session = parse_semester_key(key)
    return session_end_year(session), semester


def format_semester(key: str) -> str:
    """Human-readable semester name ("1-2024" -> "First Semester 2023/2024")."""
    semester, session = parse_semester_key(key)
    return f"{SEMESTER_NAMES[semester]} {session}"
