"""Tests for results views, transcript and academic progress."""

import pytest

from uniport.core.gpa import CourseResult
from uniport.core.grading import GradingError
from uniport.core.results import (
    academic_progress,
    all_results,
    build_transcript,
    semester_results,
)


def _result(code, units, grade, semester, session):
    return CourseResult(
        course_code=code,
        course_title=f"{code} title",
        credit_units=units,
        semester=semester,
        session=session,
        grade=grade,
    )


@pytest.fixture
def courses():
    return [
        _result("CSC101", 3, "A", 1, "2022/2023"),
        _result("MTH101", 3, "F", 1, "2022/2023"),
        _result("CSC102", 2, "B", 2, "2022/2023"),
        _result("CSC201", 3, "C", 1, "2023/2024"),
        _result("CSC301", 3, None, 1, "2024/2025"),
    ]


class TestAllResults:
    """Tests for all_results and semester_results."""

    def test_groups_graded_semesters(self, courses):
        data = all_results(courses)
        assert [s["semester"] for s in data["semesters"]] == ["1-2023", "2-2023", "1-2024"]
        assert data["overall"]["total_courses"] == 4
        assert data["overall"]["total_credits"] == 11
        # (15 + 0 + 8 + 9) / 11
        assert data["overall"]["cgpa"] == 2.91

    def test_semester_results(self, courses):
        data = semester_results(courses, "1-2023")
        assert data["total_credits"] == 6
        assert data["gpa"] == 2.5

    def test_semester_results_unknown_semester(self, courses):
        data = semester_results(courses, "2-2030")
        assert data["courses"] == []
        assert data["gpa"] == 0.0

    def test_semester_results_invalid_key(self, courses):
        with pytest.raises(GradingError):
            semester_results(courses, "first")


class TestTranscript:
    """Tests for build_transcript."""

    def test_grouped_by_session(self, student, courses):
        transcript = build_transcript(student, courses).to_dict()

        sessions = transcript["academic_sessions"]
        assert [s["session"] for s in sessions] == ["2022/2023", "2023/2024"]
        first = sessions[0]
        assert len(first["first_semester"]["courses"]) == 2
        assert first["first_semester"]["gpa"] == 2.5
        assert first["second_semester"]["gpa"] == 4.0
        assert sessions[1]["second_semester"]["courses"] == []

    def test_student_block(self, student, courses):
        transcript = build_transcript(student, courses)
        assert transcript.student["matric_no"] == student.matric_no
        assert transcript.student["full_name"] == student.full_name
        assert transcript.student["current_level"] == student.level
        assert transcript.student["graduation_date"] is None

    def test_overall(self, student, courses):
        overall = build_transcript(student, courses).overall
        assert overall["total_credits"] == 11
        assert overall["cumulative_quality_points"] == 32
        assert overall["cgpa"] == 2.91
        assert overall["class_of_degree"] == "Second Class Lower"
        assert build_transcript(student, courses).generated_at

    def test_empty_transcript(self, student):
        transcript = build_transcript(student, [])
        assert transcript.academic_sessions == []
        assert transcript.overall["cgpa"] == 0.0
        assert transcript.overall["class_of_degree"] == "Pass"


class TestAcademicProgress:
    """Tests for academic_progress."""

    def test_gpa_trend(self, courses):
        trend = academic_progress(courses)["gpa_trend"]
        assert trend[0] == {"semester": "1-2023", "gpa": 2.5, "credits": 6, "courses": 2}
        assert len(trend) == 3

    def test_grade_distribution_covers_whole_scale(self, courses):
        distribution = academic_progress(courses)["grade_distribution"]
        assert distribution == {"A": 1, "B": 1, "C": 1, "D": 0, "E": 0, "F": 1}

    def test_performance_by_credits(self, courses):
        performance = academic_progress(courses)["performance_by_credits"]
        assert performance == {
            "2-unit": {"total": 1, "passed": 1},
            "3-unit": {"total": 3, "passed": 2},
        }
