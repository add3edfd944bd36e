"""Tests for course registration rules."""

import pytest

from uniport.core.errors import NotFoundError
from uniport.core.registration import (
    AlreadyRegisteredError,
    CourseFullError,
    CreditLimitError,
    PrerequisiteError,
    RegistrationError,
    available_courses,
    drop_course,
    my_courses,
    register_course,
)
from uniport.db.courses_repository import get_enrollment, insert_enrollment, record_grade


class TestAvailableCourses:
    """Tests for available_courses."""

    def test_filters_by_semester_level_and_department(self, student, make_course):
        offered = make_course(course_code="CSC301", level=300)
        general = make_course(course_code="GST101", department="General")
        make_course(course_code="CSC401", level=400)
        make_course(course_code="CSC302", semester=2, level=300)
        make_course(course_code="PHY101", department="Physics")
        make_course(course_code="CSC303", is_active=False)

        data = available_courses(student)
        codes = {c["course_code"] for c in data["courses"]}
        assert codes == {offered.course_code, general.course_code}
        assert data["student"] == {
            "level": 300,
            "department": "Computer Science",
            "semester": 1,
        }

    def test_flags(self, student, make_course):
        course = make_course()
        register_course(student, course.id)
        full = make_course(capacity=0)

        flags = {c["course_code"]: c for c in available_courses(student)["courses"]}
        assert flags[course.course_code]["is_registered"] is True
        assert flags[course.course_code]["can_register"] is False
        assert flags[course.course_code]["enrolled"] == 1
        assert flags[full.course_code]["can_register"] is False

    def test_missing_prerequisite_blocks(self, student, make_course):
        course = make_course(prerequisite=["CSC100"])
        flags = available_courses(student)["courses"]
        assert flags[0]["course_code"] == course.course_code
        assert flags[0]["can_register"] is False


class TestRegisterCourse:
    """Tests for register_course."""

    def test_register(self, student, make_course):
        course = make_course()
        enrollment = register_course(student, course.id)
        assert enrollment.status == "registered"
        assert enrollment.semester == 1
        assert enrollment.session == "2024/2025"

    def test_unknown_course(self, student):
        with pytest.raises(NotFoundError):
            register_course(student, "missing")

    def test_not_offered(self, student, make_course):
        course = make_course(department="Physics")
        with pytest.raises(RegistrationError, match="not open"):
            register_course(student, course.id)

    def test_twice(self, student, make_course):
        course = make_course()
        register_course(student, course.id)
        with pytest.raises(AlreadyRegisteredError) as exc_info:
            register_course(student, course.id)
        assert exc_info.value.status_code == 409

    def test_course_full(self, student, make_user, make_course):
        course = make_course(capacity=1)
        register_course(make_user("student"), course.id)
        with pytest.raises(CourseFullError):
            register_course(student, course.id)

    def test_credit_limit(self, student, make_course):
        """24 credits allowed; the 25th is rejected."""
        for _ in range(4):
            register_course(student, make_course(credit_units=6).id)
        extra = make_course(credit_units=1)
        with pytest.raises(CreditLimitError, match="maximum 24"):
            register_course(student, extra.id)

    def test_prerequisite_must_be_passed(self, student, make_course, graded_enrollment):
        basic = make_course(course_code="CSC100")
        advanced = make_course(course_code="CSC200", prerequisite=["csc100"])

        graded_enrollment(student, basic, "F")
        with pytest.raises(PrerequisiteError, match="CSC100"):
            register_course(student, advanced.id)

    def test_prerequisite_passed(self, student, make_course, graded_enrollment):
        basic = make_course(course_code="CSC100")
        advanced = make_course(course_code="CSC200", prerequisite=["CSC100"])
        graded_enrollment(student, basic, "E")
        assert register_course(student, advanced.id).course_id == advanced.id


class TestDropAndList:
    """Tests for drop_course and my_courses."""

    def test_drop(self, student, make_course):
        enrollment = register_course(student, make_course().id)
        drop_course(student, enrollment.id)
        assert get_enrollment(enrollment.id) is None

    def test_drop_someone_elses(self, student, make_user, make_course):
        other = make_user("student")
        enrollment = register_course(other, make_course().id)
        with pytest.raises(NotFoundError):
            drop_course(student, enrollment.id)

    def test_graded_cannot_be_dropped(self, student, make_course):
        enrollment = register_course(student, make_course().id)
        record_grade(enrollment.id, 75, "A", "lecturer")
        with pytest.raises(RegistrationError, match="graded"):
            drop_course(student, enrollment.id)

    def test_my_courses_current_semester_only(self, student, make_course):
        current = make_course(credit_units=4)
        old = make_course()
        register_course(student, current.id)
        insert_enrollment(student.id, old.id, 1, "2023/2024")

        data = my_courses(student)
        assert [c["course_code"] for c in data["courses"]] == [current.course_code]
        assert data["total_credits"] == 4
        assert data["semester"] == "1-2025"
        assert data["courses"][0]["registration_status"] == "registered"
