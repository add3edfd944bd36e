"""Tests for the admin and lecturer portal."""

from datetime import datetime, timedelta, timezone

import pytest

from uniport.core import admin
from uniport.core.admin import AdminError
from uniport.core.auth import login
from uniport.core.errors import NotFoundError, PermissionDeniedError
from uniport.core.grading import GradingError
from uniport.core.registration import register_course
from uniport.db import courses_repository
from uniport.db.courses_repository import get_course_by_id


@pytest.fixture
def taught(make_course, lecturer):
    """A course taught by the lecturer fixture."""
    return make_course(course_code="CSC201", lecturer_id=lecturer.id, lecturer="Dr. Okafor")


class TestDashboard:
    """Tests for dashboard_stats."""

    def test_admin_stats(self, admin_user, student, lecturer, make_course, make_question,
                         graded_enrollment):
        course = make_course()
        make_question()
        graded_enrollment(student, course, "B")

        data = admin.dashboard_stats(admin_user)
        assert data["user_role"] == "admin"
        stats = data["stats"]
        assert stats["total_students"] == 1
        assert stats["total_lecturers"] == 1
        assert stats["total_courses"] == 1
        assert stats["total_questions"] == 1
        assert stats["recent_activity"]["recent_students"][0]["id"] == student.id
        assert stats["recent_activity"]["recent_grades"][0]["grade"] == "B"

    def test_lecturer_stats(self, lecturer, taught, make_user, make_question, graded_enrollment):
        first, second = make_user("student"), make_user("student")
        graded_enrollment(first, taught, "A")
        register_course(second, taught.id)
        make_question(created_by=lecturer.id)
        make_question()

        stats = admin.dashboard_stats(lecturer)["stats"]
        assert stats == {
            "courses_count": 1,
            "students_count": 2,
            "graded_count": 1,
            "pending_grading": 1,
            "my_questions": 1,
        }

    def test_students_have_no_dashboard(self, student):
        with pytest.raises(PermissionDeniedError):
            admin.dashboard_stats(student)


class TestStudentManagement:
    """Tests for student listing, stats and CRUD."""

    def test_list_with_filters_and_pagination(self, make_user):
        for i in range(5):
            make_user("student", department="Physics" if i % 2 else "Computer Science")
        make_user("lecturer")

        page = admin.list_students(page=1, limit=2)
        assert len(page["students"]) == 2
        assert page["pagination"] == {"page": 1, "limit": 2, "total": 5, "pages": 3}

        physics = admin.list_students(department="Physics")
        assert physics["pagination"]["total"] == 2

    def test_search(self, make_user):
        make_user("student", first_name="Tolu")
        make_user("student", first_name="Kemi")
        result = admin.list_students(search="tolu")
        assert [s["first_name"] for s in result["students"]] == ["Tolu"]

    def test_invalid_page(self):
        with pytest.raises(AdminError):
            admin.list_students(page=0)

    def test_filters(self, make_user):
        make_user("student", department="Physics", level=200)
        make_user("student", department="Chemistry", level=100)
        assert admin.student_filters() == {
            "departments": ["Chemistry", "Physics"],
            "levels": [100, 200],
        }

    def test_stats(self, make_user):
        make_user("student", level=100)
        make_user("student", level=100, department="Physics")
        stats = admin.student_stats()
        assert stats["total_students"] == 2
        assert stats["department_breakdown"] == {"Computer Science": 1, "Physics": 1}
        assert stats["level_breakdown"] == {"100": 2}
        assert stats["recent_registrations"] == 2

        later = datetime.now(timezone.utc) + timedelta(days=31)
        assert admin.student_stats(now=later)["recent_registrations"] == 0

    def test_details(self, student, make_course, graded_enrollment):
        done = make_course(credit_units=3)
        graded_enrollment(student, done, "A")
        register_course(student, make_course().id)

        details = admin.student_details(student.id)
        assert details["student"]["id"] == student.id
        summary = details["academic_summary"]
        assert summary["total_courses"] == 2
        assert summary["completed_courses"] == 1
        assert summary["current_courses"] == 1
        assert summary["total_credits"] == 3
        assert summary["cgpa"] == 5.0
        assert summary["current_semester"] == "1-2025"
        assert {c["semester"] for c in details["courses"]} == {"1-2024", "1-2025"}
        assert details["recent_activity"] == []

    def test_current_courses_only_count_current_semester(self, student, make_course):
        register_course(student, make_course().id)
        later = make_course(semester=2)
        courses_repository.insert_enrollment(student.id, later.id, 2, "2024/2025")

        summary = admin.student_details(student.id)["academic_summary"]
        assert summary["total_courses"] == 2
        assert summary["current_courses"] == 1

    def test_details_unknown_or_not_student(self, lecturer):
        with pytest.raises(NotFoundError):
            admin.student_details("missing")
        with pytest.raises(NotFoundError):
            admin.student_details(lecturer.id)

    def test_create_defaults_password_to_matric_number(self):
        student = admin.create_student(
            matric_no="U2022/0000001",
            email="new@uniport.edu",
            first_name="New",
            last_name="Student",
            department="Physics",
            level=100,
        )
        user, _ = login("U2022/0000001", "U2022/0000001")
        assert user.id == student.id

    def test_update(self, student):
        updated = admin.update_student(student.id, level=400, department="Physics")
        assert updated.level == 400
        assert updated.department == "Physics"

    def test_update_vanished_student(self, student, monkeypatch):
        monkeypatch.setattr(admin.users_repo, "update_user", lambda *args, **kwargs: None)
        with pytest.raises(NotFoundError):
            admin.update_student(student.id, level=400)

    def test_update_password(self, student):
        admin.update_student(student.id, password="brand-new")
        assert login(student.matric_no, "brand-new")[0].id == student.id

    def test_update_email_taken(self, student, make_user):
        other = make_user("student")
        with pytest.raises(AdminError) as exc_info:
            admin.update_student(student.id, email=other.email)
        assert exc_info.value.status_code == 409

    def test_update_invalid_level(self, student):
        with pytest.raises(AdminError, match="Level"):
            admin.update_student(student.id, level=900)

    def test_delete(self, student):
        admin.delete_student(student.id)
        with pytest.raises(NotFoundError):
            admin.student_details(student.id)


class TestCourseCatalog:
    """Tests for catalog management."""

    def test_create_with_lecturer(self, lecturer):
        course = admin.create_course(
            course_code="csc305",
            course_title="Compilers",
            credit_units=3,
            semester=2,
            level=300,
            department="Computer Science",
            lecturer_id=lecturer.id,
        )
        assert course.course_code == "CSC305"
        assert course.lecturer == "Ada Okafor"

    def test_duplicate_code(self, make_course):
        make_course(course_code="CSC305")
        with pytest.raises(AdminError) as exc_info:
            admin.create_course(
                course_code="CSC305",
                course_title="Again",
                credit_units=3,
                semester=1,
                level=300,
                department="Computer Science",
            )
        assert exc_info.value.status_code == 409

    @pytest.mark.parametrize(
        "field,value",
        [("credit_units", 7), ("semester", 3), ("level", 50), ("capacity", 0)],
    )
    def test_invalid_fields(self, field, value):
        fields = {
            "course_code": "CSC305",
            "course_title": "Compilers",
            "credit_units": 3,
            "semester": 1,
            "level": 300,
            "department": "Computer Science",
        }
        fields[field] = value
        with pytest.raises(AdminError):
            admin.create_course(**fields)

    def test_unknown_lecturer(self):
        with pytest.raises(NotFoundError):
            admin.create_course(
                course_code="CSC305",
                course_title="Compilers",
                credit_units=3,
                semester=1,
                level=300,
                department="Computer Science",
                lecturer_id="nobody",
            )

    def test_update_and_delete(self, make_course):
        course = make_course()
        updated = admin.update_course(course.id, course_title="Renamed", capacity=10)
        assert updated.course_title == "Renamed"
        assert updated.capacity == 10

        admin.delete_course(course.id)
        assert get_course_by_id(course.id) is None
        with pytest.raises(NotFoundError):
            admin.delete_course(course.id)

    def test_list_catalog(self, make_course):
        make_course(semester=1)
        make_course(semester=2)
        assert len(admin.list_catalog()) == 2
        assert len(admin.list_catalog(semester=2)) == 1


class TestGrading:
    """Tests for grade management."""

    def test_grading_courses_for_lecturer(self, lecturer, taught, make_course, student):
        make_course(course_code="CSC999")
        register_course(student, taught.id)

        courses = admin.grading_courses(lecturer)
        assert [c["course_code"] for c in courses] == ["CSC201"]
        entry = courses[0]["students"][0]
        assert entry["student"]["id"] == student.id
        assert entry["grade"] == ""
        assert entry["semester"] == "1-2025"
        assert entry["status"] == "registered"

    def test_admin_sees_every_course(self, admin_user, taught, make_course):
        make_course()
        assert len(admin.grading_courses(admin_user)) == 2

    def test_grade_by_score(self, lecturer, taught, student):
        enrollment = register_course(student, taught.id)
        graded = admin.grade_enrollment(lecturer, enrollment.id, score=64)
        assert graded.grade == "B"
        assert graded.score == 64
        assert graded.status == "completed"
        assert graded.graded_by == lecturer.id

    def test_grade_by_letter(self, lecturer, taught, student):
        enrollment = register_course(student, taught.id)
        assert admin.grade_enrollment(lecturer, enrollment.id, grade="d").grade == "D"

    def test_grade_and_score_must_agree(self, lecturer, taught, student):
        enrollment = register_course(student, taught.id)
        with pytest.raises(GradingError):
            admin.grade_enrollment(lecturer, enrollment.id, score=80, grade="C")

    def test_invalid_grade_inputs(self, lecturer, taught, student):
        enrollment = register_course(student, taught.id)
        with pytest.raises(GradingError):
            admin.grade_enrollment(lecturer, enrollment.id)
        with pytest.raises(GradingError):
            admin.grade_enrollment(lecturer, enrollment.id, score=101)
        with pytest.raises(GradingError):
            admin.grade_enrollment(lecturer, enrollment.id, grade="Z")

    def test_lecturer_cannot_grade_other_courses(self, make_user, taught, student):
        other_lecturer = make_user("lecturer")
        enrollment = register_course(student, taught.id)
        with pytest.raises(PermissionDeniedError):
            admin.grade_enrollment(other_lecturer, enrollment.id, score=70)

    def test_admin_grades_any_course(self, admin_user, taught, student):
        enrollment = register_course(student, taught.id)
        assert admin.grade_enrollment(admin_user, enrollment.id, score=39).grade == "F"

    def test_bulk_grade_reports_failures(self, lecturer, taught, make_user):
        ok = register_course(make_user("student"), taught.id)
        bad = register_course(make_user("student"), taught.id)

        result = admin.bulk_grade(
            lecturer,
            [
                {"enrollment_id": ok.id, "score": 72},
                {"enrollment_id": bad.id, "score": 140},
                {"enrollment_id": "missing", "grade": "A"},
            ],
        )
        assert result["graded"] == 1
        assert [e["enrollment_id"] for e in result["errors"]] == [bad.id, "missing"]


class TestQuestionBank:
    """Tests for question bank management."""

    def _create(self, user, **overrides):
        fields = {
            "question": "What is 2 + 2?",
            "options": ["3", "4", "5"],
            "correct_answer": 1,
            "course_code": "mth101",
            "level": 100,
            "difficulty": "easy",
        }
        fields.update(overrides)
        return admin.create_question(user, **fields)

    def test_create(self, lecturer):
        question = self._create(lecturer)
        assert question.course_code == "MTH101"
        assert question.created_by == lecturer.id
        data = admin.question_to_admin_dict(question)
        assert data["created_by"] == {
            "id": lecturer.id,
            "first_name": "Ada",
            "last_name": "Okafor",
        }

    def test_course_title_from_catalog(self, lecturer, make_course):
        make_course(course_code="MTH101", course_title="Calculus I")
        assert self._create(lecturer).course_title == "Calculus I"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"options": ["only one"]},
            {"options": ["a", "b", "c", "d", "e", "f", "g"]},
            {"options": ["a", ""]},
            {"correct_answer": 3},
            {"correct_answer": -1},
            {"difficulty": "impossible"},
            {"question": "   "},
        ],
    )
    def test_validation(self, lecturer, overrides):
        with pytest.raises(AdminError):
            self._create(lecturer, **overrides)

    def test_students_cannot_create(self, student):
        with pytest.raises(PermissionDeniedError):
            self._create(student)

    def test_lecturer_edits_only_own_questions(self, lecturer, make_user):
        other = make_user("lecturer")
        question = self._create(other)
        with pytest.raises(PermissionDeniedError):
            admin.update_question(lecturer, question.id, question="Changed?")
        with pytest.raises(PermissionDeniedError):
            admin.delete_question(lecturer, question.id)

    def test_admin_edits_any_question(self, admin_user, lecturer):
        question = self._create(lecturer)
        updated = admin.update_question(admin_user, question.id, difficulty="hard")
        assert updated.difficulty == "hard"
        admin.delete_question(admin_user, question.id)
        with pytest.raises(NotFoundError):
            admin.delete_question(admin_user, question.id)

    def test_update_validates_merged_question(self, lecturer):
        question = self._create(lecturer)
        with pytest.raises(AdminError):
            admin.update_question(lecturer, question.id, correct_answer=5)
        with pytest.raises(AdminError):
            admin.update_question(lecturer, question.id, options=["a", "b"], correct_answer=2)

    def test_list_filters_stats(self, lecturer):
        self._create(lecturer)
        self._create(lecturer, difficulty="hard", level=200, course_code="CSC201")
        self._create(lecturer, question="Define recursion", course_code="CSC201", level=200)

        listing = admin.list_question_bank(lecturer, course_code="csc201")
        assert listing["pagination"]["total"] == 2
        assert admin.list_question_bank(lecturer, search="recursion")["pagination"]["total"] == 1

        assert admin.question_filters() == {"courses": ["CSC201", "MTH101"], "levels": [100, 200]}
        stats = admin.question_stats()
        assert stats["total_questions"] == 3
        assert stats["difficulty_breakdown"] == {"easy": 2, "medium": 0, "hard": 1}
        assert stats["course_breakdown"] == {"CSC201": 2, "MTH101": 1}
        assert stats["level_breakdown"] == {"100": 1, "200": 2}

    def test_import_validates_everything_first(self, lecturer):
        entries = [
            {"question": "Q1?", "options": ["a", "b"], "correct_answer": 0,
             "course_code": "CSC101", "difficulty": "easy"},
            {"question": "Q2?", "options": ["a"], "correct_answer": 0,
             "course_code": "CSC101", "difficulty": "easy"},
        ]
        with pytest.raises(AdminError, match="Question #2"):
            admin.import_questions(entries, lecturer)
        assert admin.question_stats()["total_questions"] == 0

        assert admin.import_questions(entries[:1], lecturer) == 1

    def test_import_missing_course_code(self, lecturer):
        entries = [
            {"question": "Q1?", "options": ["a", "b"], "correct_answer": 0, "difficulty": "easy"},
        ]
        with pytest.raises(AdminError, match=r"Question #1: Missing field\(s\): course_code"):
            admin.import_questions(entries, lecturer)

    def test_import_non_integer_answer(self, lecturer):
        entries = [
            {"question": "Q1?", "options": ["a", "b"], "correct_answer": 0,
             "course_code": "CSC101", "difficulty": "easy"},
            {"question": "Q2?", "options": ["a", "b"], "correct_answer": "b",
             "course_code": "CSC101", "difficulty": "easy"},
        ]
        with pytest.raises(AdminError, match="Question #2: correct_answer must be an integer"):
            admin.import_questions(entries, lecturer)
        assert admin.question_stats()["total_questions"] == 0

    def test_import_entry_not_a_mapping(self, lecturer):
        with pytest.raises(AdminError, match="Question #1"):
            admin.import_questions(["just text"], lecturer)
