"""Tests for the CBT practice workflow."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from uniport.core.cbt import (
    CBTError,
    SessionExpiredError,
    SessionStateError,
    abandon_session,
    complete_session,
    practice_courses,
    practice_history,
    session_results,
    session_to_dict,
    start_session,
    submit_answer,
)
from uniport.core.errors import NotFoundError

T0 = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def bank(make_question):
    """Four CSC101 questions (2 easy, 1 medium, 1 hard); answer is option 1."""
    return [
        make_question(difficulty="easy"),
        make_question(difficulty="easy"),
        make_question(difficulty="medium"),
        make_question(difficulty="hard"),
    ]


def _start(student, **kwargs):
    kwargs.setdefault("rng", random.Random(7))
    kwargs.setdefault("now", T0)
    return start_session(student, "CSC101", **kwargs)


class TestPracticeCourses:
    """Tests for practice_courses."""

    def test_grouped_by_course(self, student, bank, make_question):
        make_question(course_code="MTH101", course_title="Calculus", difficulty="hard")
        make_question(course_code="CSC401", level=400)
        make_question(course_code="CSC102", is_active=False)

        data = practice_courses(student)
        assert data["student_level"] == 300
        courses = {c["course_code"]: c for c in data["courses"]}
        assert set(courses) == {"CSC101", "MTH101"}
        assert courses["CSC101"]["question_count"] == 4
        assert courses["CSC101"]["difficulty_breakdown"] == {"easy": 2, "medium": 1, "hard": 1}
        assert courses["MTH101"]["course_title"] == "Calculus"


class TestStartSession:
    """Tests for start_session."""

    def test_uses_all_questions_when_fewer_than_requested(self, student, bank):
        session, questions = _start(student)
        assert session.total_questions == 4
        assert {q.id for q in questions} == {q.id for q in bank}
        assert session.status == "in_progress"
        assert all(not a.is_answered for a in session.answers)

    def test_question_count_and_difficulty(self, student, bank):
        session, questions = _start(student, question_count=1, difficulty="easy")
        assert session.total_questions == 1
        assert questions[0].difficulty == "easy"

    def test_questions_hide_answers(self, student, bank):
        session, questions = _start(student)
        data = session_to_dict(session, {q.id: q for q in questions})
        slot = data["questions"][0]["question"]
        assert "correct_answer" not in slot
        assert "explanation" not in slot

    def test_no_questions(self, student):
        with pytest.raises(NotFoundError):
            _start(student)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"question_count": 0},
            {"question_count": 101},
            {"difficulty": "extreme"},
            {"time_limit": -1},
            {"time_limit": 301},
            {"session_type": "final_exam"},
        ],
    )
    def test_invalid_parameters(self, student, bank, kwargs):
        with pytest.raises(CBTError):
            _start(student, **kwargs)


class TestSubmitAnswer:
    """Tests for submit_answer."""

    def test_correct_and_wrong_answers(self, student, bank):
        session, questions = _start(student)

        first = submit_answer(student, session.id, questions[0].id, 1, time_spent=12, now=T0)
        assert first["is_correct"] is True
        assert first["correct_answer"] == 1
        assert first["explanation"] == "Option 1 is right."

        second = submit_answer(student, session.id, questions[1].id, 0, now=T0)
        assert second["is_correct"] is False
        assert second["completed_questions"] == 2
        assert second["correct_answers"] == 1
        # percentage is over all questions, answered or not
        assert second["percentage"] == 25.0

    def test_answer_twice_rejected(self, student, bank):
        session, questions = _start(student)
        submit_answer(student, session.id, questions[0].id, 1, now=T0)
        with pytest.raises(SessionStateError, match="already answered"):
            submit_answer(student, session.id, questions[0].id, 0, now=T0)

    def test_question_not_in_session(self, student, bank, make_question):
        session, _ = _start(student, question_count=1)
        outsider = make_question()
        with pytest.raises(NotFoundError):
            submit_answer(student, session.id, outsider.id, 1, now=T0)

    @pytest.mark.parametrize("selected", [-1, 4])
    def test_option_out_of_range(self, student, bank, selected):
        session, questions = _start(student)
        with pytest.raises(CBTError, match="between 0 and 3"):
            submit_answer(student, session.id, questions[0].id, selected, now=T0)

    def test_other_students_session(self, student, make_user, bank):
        session, questions = _start(student)
        with pytest.raises(NotFoundError):
            submit_answer(make_user("student"), session.id, questions[0].id, 1, now=T0)

    def test_closed_session(self, student, bank):
        session, questions = _start(student)
        complete_session(student, session.id, now=T0)
        with pytest.raises(SessionStateError):
            submit_answer(student, session.id, questions[0].id, 1, now=T0)

    def test_expired_session_is_completed(self, student, bank):
        session, questions = _start(student, time_limit=10)
        late = T0 + timedelta(minutes=11)
        with pytest.raises(SessionExpiredError):
            submit_answer(student, session.id, questions[0].id, 1, now=late)

        completed = complete_session(student, session.id, now=late)
        assert completed.status == "completed"
        assert completed.time_spent == 600


class TestCompleteAndAbandon:
    """Tests for complete_session and abandon_session."""

    def test_complete(self, student, bank):
        session, _ = _start(student)
        completed = complete_session(student, session.id, now=T0 + timedelta(seconds=95))
        assert completed.status == "completed"
        assert completed.time_spent == 95
        assert completed.completed_at is not None

    def test_complete_is_idempotent(self, student, bank):
        session, _ = _start(student)
        first = complete_session(student, session.id, now=T0 + timedelta(seconds=30))
        again = complete_session(student, session.id, now=T0 + timedelta(seconds=90))
        assert again.time_spent == first.time_spent == 30
        assert again.completed_at == first.completed_at

    def test_abandoned_cannot_be_completed(self, student, bank):
        session, _ = _start(student)
        assert abandon_session(student, session.id, now=T0).status == "abandoned"
        with pytest.raises(SessionStateError):
            complete_session(student, session.id, now=T0)
        with pytest.raises(SessionStateError):
            abandon_session(student, session.id, now=T0)


class TestResultsAndHistory:
    """Tests for session_results and practice_history."""

    def test_results_reveal_answers_and_analyse(self, student, bank):
        session, questions = _start(student)
        by_difficulty = {}
        for q in questions:
            by_difficulty.setdefault(q.difficulty, []).append(q)

        submit_answer(student, session.id, by_difficulty["easy"][0].id, 1, time_spent=10, now=T0)
        submit_answer(student, session.id, by_difficulty["easy"][1].id, 2, time_spent=20, now=T0)
        submit_answer(student, session.id, by_difficulty["hard"][0].id, 1, now=T0)
        complete_session(student, session.id, now=T0)

        data = session_results(student, session.id)
        slot = data["session"]["questions"][0]
        assert slot["question"]["correct_answer"] == 1
        assert "explanation" in slot["question"]

        analysis = data["analysis"]
        assert analysis["difficulty"]["easy"] == {"total": 2, "correct": 1}
        assert analysis["difficulty"]["medium"] == {"total": 1, "correct": 0}
        assert analysis["accuracy_by_difficulty"] == {
            "easy": 50.0,
            "medium": 0.0,
            "hard": 100.0,
        }
        assert analysis["average_time_per_question"] == 15.0

    def test_history_only_completed(self, student, bank):
        done, questions = _start(student)
        submit_answer(student, done.id, questions[0].id, 1, now=T0)
        complete_session(student, done.id, now=T0 + timedelta(seconds=60))

        abandoned, _ = _start(student)
        abandon_session(student, abandoned.id, now=T0)
        _start(student)

        data = practice_history(student)
        assert [h["id"] for h in data["history"]] == [done.id]
        stats = data["overall_stats"]
        assert stats["total_sessions"] == 1
        assert stats["total_questions"] == 4
        assert stats["total_correct"] == 1
        assert stats["average_score"] == 25.0
        assert stats["total_time_spent"] == 60
        assert stats["overall_accuracy"] == 25.0

    def test_history_limit_and_course_filter(self, student, bank, make_question):
        make_question(course_code="MTH101")
        for i in range(3):
            session, _ = _start(student)
            complete_session(student, session.id, now=T0 + timedelta(minutes=i + 1))
        other, _ = start_session(student, "MTH101", now=T0)
        complete_session(student, other.id, now=T0 + timedelta(minutes=10))

        data = practice_history(student, course_code="csc101", limit=2)
        assert len(data["history"]) == 2
        assert data["overall_stats"]["total_sessions"] == 3
        assert all(h["course_code"] == "CSC101" for h in data["history"])

    def test_history_invalid_limit(self, student):
        with pytest.raises(CBTError):
            practice_history(student, limit=0)
