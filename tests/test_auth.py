"""Tests for accounts, passwords and tokens."""

import pytest

from uniport.core.auth import (
    AuthError,
    DuplicateUserError,
    InvalidCredentialsError,
    create_user,
    hash_password,
    issue_token,
    login,
    register_student,
    resolve_token,
    revoke_token,
    verify_password,
)

PASSWORD = "secret123"


def _register(**overrides):
    fields = {
        "matric_no": "U2021/1234567",
        "email": "Chidi@Uniport.edu",
        "password": "hunter22",
        "first_name": "Chidi",
        "last_name": "Eze",
        "department": "Computer Science",
        "level": 200,
    }
    fields.update(overrides)
    return register_student(**fields)


class TestPasswords:
    """Tests for password hashing."""

    def test_hash_and_verify(self):
        stored = hash_password("hunter22")
        assert stored.startswith("pbkdf2:sha256:")
        assert verify_password("hunter22", stored)
        assert not verify_password("hunter23", stored)

    def test_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash(self):
        assert not verify_password("x", "not-a-hash")


class TestRegistration:
    """Tests for student self-registration."""

    def test_register(self):
        user, token = _register()
        assert user.role == "student"
        assert user.email == "chidi@uniport.edu"
        assert resolve_token(token).id == user.id

    @pytest.mark.parametrize("matric_no", ["2021/1234567", "U21/1234567", "U2021-1234567", ""])
    def test_invalid_matric_number(self, matric_no):
        with pytest.raises(AuthError, match="matriculation number"):
            _register(matric_no=matric_no)

    def test_short_password(self):
        with pytest.raises(AuthError, match="at least 6"):
            _register(password="12345")

    def test_invalid_email(self):
        with pytest.raises(AuthError, match="email"):
            _register(email="not-an-email")

    @pytest.mark.parametrize("level", [0, 50, 700, 250])
    def test_invalid_level(self, level):
        with pytest.raises(AuthError, match="Level"):
            _register(level=level)

    def test_duplicate_matric_number(self):
        _register()
        with pytest.raises(DuplicateUserError) as exc_info:
            _register(email="other@uniport.edu")
        assert exc_info.value.status_code == 409

    def test_duplicate_email_case_insensitive(self):
        _register()
        with pytest.raises(DuplicateUserError):
            _register(matric_no="U2021/7654321", email="CHIDI@uniport.edu")

    def test_staff_accounts_use_free_staff_numbers(self):
        user = create_user(
            matric_no="STAFF-042",
            email="lecturer@uniport.edu",
            password="lecturer1",
            first_name="Ngozi",
            last_name="Ade",
            role="lecturer",
        )
        assert user.role == "lecturer"

    def test_unknown_role(self):
        with pytest.raises(AuthError, match="role"):
            create_user("X1", "x@uniport.edu", "secret1", "X", "Y", role="dean")


class TestLogin:
    """Tests for login and tokens."""

    def test_login_by_matric_number(self, student):
        user, token = login(student.matric_no, PASSWORD)
        assert user.id == student.id
        assert resolve_token(token).id == student.id

    def test_login_by_email(self, student):
        user, _ = login(student.email.upper(), PASSWORD)
        assert user.id == student.id

    def test_wrong_password(self, student):
        with pytest.raises(InvalidCredentialsError) as exc_info:
            login(student.matric_no, "wrong-password")
        assert exc_info.value.status_code == 401

    def test_unknown_user(self):
        with pytest.raises(InvalidCredentialsError):
            login("U2000/0000000", PASSWORD)

    def test_revoke(self, student):
        token = issue_token(student)
        assert revoke_token(token) is True
        assert resolve_token(token) is None
        assert revoke_token(token) is False
