"""Shared fixtures.

Every test runs in its own temporary directory with a fresh SQLite
database and the built-in default configuration (current term: first
semester of 2024/2025, 24 credit limit).
"""

import pytest
from fastapi.testclient import TestClient

from uniport.config.app_config import clear_config_cache
from uniport.core import auth
from uniport.db import courses_repository, questions_repository
from uniport.db.database import init_db
from uniport.web.api import create_app

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """Fresh working directory, config cache and database per test."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(auth, "PASSWORD_HASH_METHOD", "pbkdf2:sha256:1000")
    clear_config_cache()
    init_db(tmp_path / "db" / "uniport.db")
    yield
    clear_config_cache()


@pytest.fixture
def make_user():
    """Factory creating users; returns the UserRecord."""
    counter = {"n": 0}

    def _make(role: str = "student", **overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "matric_no": f"U2021/{n:07d}" if role == "student" else f"STAFF{n:03d}",
            "email": f"{role}{n}@uniport.edu",
            "password": PASSWORD,
            "first_name": f"First{n}",
            "last_name": f"Last{n}",
            "role": role,
            "department": "Computer Science",
            "level": 300,
        }
        fields.update(overrides)
        return auth.create_user(**fields)

    return _make


@pytest.fixture
def student(make_user):
    return make_user("student")


@pytest.fixture
def lecturer(make_user):
    return make_user("lecturer", first_name="Ada", last_name="Okafor")


@pytest.fixture
def admin_user(make_user):
    return make_user("admin")


@pytest.fixture
def make_course():
    """Factory creating catalog courses (first semester, 100 level by default)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "course_code": f"CSC{100 + counter['n']}",
            "course_title": f"Course {counter['n']}",
            "credit_units": 3,
            "semester": 1,
            "level": 100,
            "department": "Computer Science",
        }
        fields.update(overrides)
        return courses_repository.insert_course(**fields)

    return _make


@pytest.fixture
def graded_enrollment():
    """Factory recording a graded enrollment in a past or current semester."""

    def _make(student, course, grade, semester=1, session="2023/2024", score=None):
        enrollment = courses_repository.insert_enrollment(
            student.id, course.id, semester, session
        )
        return courses_repository.record_grade(enrollment.id, score, grade, "system")

    return _make


@pytest.fixture
def make_question():
    """Factory creating question bank entries (correct answer: option 1)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "question": f"Question {counter['n']}?",
            "options": ["wrong", "right", "also wrong", "nope"],
            "correct_answer": 1,
            "course_code": "CSC101",
            "course_title": "Introduction to Computing",
            "level": 100,
            "difficulty": "easy",
            "explanation": "Option 1 is right.",
        }
        fields.update(overrides)
        return questions_repository.insert_question(**fields)

    return _make


@pytest.fixture
def client():
    """Test client for the API (database already initialised)."""
    return TestClient(create_app())


@pytest.fixture
def auth_headers():
    """Factory building a bearer header for a user."""

    def _headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {auth.issue_token(user)}"}

    return _headers
