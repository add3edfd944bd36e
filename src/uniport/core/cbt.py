"""Computer-based testing (CBT) practice module.

Responsibilities:
- List courses with practice questions available to a student
- Start a session: sample questions by course and difficulty
- Score answers one at a time, keeping running totals
- Complete or abandon a session (timed sessions expire)
- Per-session analysis and practice history with overall statistics

Session lifecycle:
    in_progress -> completed   (explicit completion or time limit reached)
    in_progress -> abandoned   (student walks away)

Scoring:
    percentage = correct answers / total questions x 100 (2 dp);
    unanswered questions count as wrong.
"""

from __future__ import annotations

import random
from collections import Counter
from datetime import datetime, timezone
from typing import Any

import structlog

from uniport.config.app_config import load_app_config
from uniport.core.errors import DomainError, NotFoundError
from uniport.db.practice_repository import (
    PracticeSessionRecord,
    finish_session,
    get_session,
    insert_session,
    list_sessions,
    save_answer,
)
from uniport.db.questions_repository import (
    QuestionRecord,
    get_questions_by_ids,
    list_questions,
)
from uniport.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")
SESSION_TYPES = ("practice", "mock_exam", "quick_quiz")
MAX_TIME_LIMIT_MINUTES = 300
PERCENT_DECIMALS = 2


# =============================================================================
# ERRORS
# =============================================================================


class CBTError(DomainError):
    """Invalid CBT request."""


class SessionStateError(CBTError):
    """Action not allowed in the session's current state."""

    status_code = 409


class SessionExpiredError(SessionStateError):
    """Timed session ran past its limit; it has been completed."""


# =============================================================================
# HELPERS
# =============================================================================


def _utc(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def _elapsed_seconds(session: PracticeSessionRecord, now: datetime) -> int:
    started = datetime.fromisoformat(session.started_at)
    return max(0, int((now - started).total_seconds()))


def _is_expired(session: PracticeSessionRecord, now: datetime) -> bool:
    return session.time_limit > 0 and _elapsed_seconds(session, now) > session.time_limit * 60


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, PERCENT_DECIMALS)


def question_to_dict(question: QuestionRecord, reveal: bool = False) -> dict[str, Any]:
    """Question as shown to students; answers only when ``reveal``."""
    result: dict[str, Any] = {
        "id": question.id,
        "question": question.question,
        "options": list(question.options),
        "difficulty": question.difficulty,
        "course_code": question.course_code,
        "course_title": question.course_title,
    }
    if reveal:
        result["correct_answer"] = question.correct_answer
        result["explanation"] = question.explanation
    return result


def session_to_dict(
    session: PracticeSessionRecord,
    questions: dict[str, QuestionRecord] | None = None,
    reveal: bool = False,
) -> dict[str, Any]:
    """Session with its question slots (questions populated when given)."""
    questions = questions or {}
    slots = []
    for answer in session.answers:
        question = questions.get(answer.question_id)
        slots.append(
            {
                "question_id": answer.question_id,
                "question": question_to_dict(question, reveal) if question else None,
                "selected_answer": answer.selected_answer,
                "is_correct": answer.is_correct,
                "time_spent": answer.time_spent,
            }
        )
    return {
        "id": session.id,
        "course_code": session.course_code,
        "session_type": session.session_type,
        "total_questions": session.total_questions,
        "completed_questions": session.completed_questions,
        "correct_answers": session.correct_answers,
        "percentage": session.percentage,
        "time_limit": session.time_limit,
        "time_spent": session.time_spent,
        "started_at": session.started_at,
        "completed_at": session.completed_at,
        "status": session.status,
        "questions": slots,
    }


def _get_owned_session(student: UserRecord, session_id: str) -> PracticeSessionRecord:
    session = get_session(session_id)
    if session is None or session.student_id != student.id:
        raise NotFoundError("Practice session", session_id)
    return session


def _close(session: PracticeSessionRecord, status: str, now: datetime) -> PracticeSessionRecord:
    elapsed = _elapsed_seconds(session, now)
    if session.time_limit > 0:
        elapsed = min(elapsed, session.time_limit * 60)
    closed = finish_session(session.id, status, now.isoformat(), elapsed)
    if closed is None:
        raise NotFoundError("Practice session", session.id)
    logger.info(
        "cbt.session_closed",
        session_id=session.id,
        status=status,
        percentage=closed.percentage,
        time_spent=elapsed,
    )
    return closed


# =============================================================================
# OPERATIONS
# =============================================================================


def practice_courses(student: UserRecord) -> dict[str, Any]:
    """Courses with active questions at or below the student's level."""
    courses: dict[str, dict[str, Any]] = {}
    for question in list_questions(max_level=student.level, active_only=True):
        entry = courses.setdefault(
            question.course_code,
            {
                "course_code": question.course_code,
                "course_title": question.course_title,
                "question_count": 0,
                "difficulty_breakdown": {d: 0 for d in DIFFICULTIES},
            },
        )
        entry["question_count"] += 1
        entry["difficulty_breakdown"][question.difficulty] += 1
        if not entry["course_title"]:
            entry["course_title"] = question.course_title

    return {
        "courses": [courses[code] for code in sorted(courses)],
        "student_level": student.level,
    }


def start_session(
    student: UserRecord,
    course_code: str,
    question_count: int | None = None,
    difficulty: str = "all",
    time_limit: int | None = None,
    session_type: str = "practice",
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> tuple[PracticeSessionRecord, list[QuestionRecord]]:
    """Start a practice session.

    When fewer questions exist than requested, all of them are used.

    Args:
        student: The student practicing
        course_code: Course to draw questions from
        question_count: Number of questions (default from config)
        difficulty: "all" or one of easy/medium/hard
        time_limit: Minutes; 0 means untimed (default from config)
        session_type: practice, mock_exam or quick_quiz
        rng: Random source for sampling
        now: Start time (default: current UTC time)

    Returns:
        (session, questions in session order)

    Raises:
        CBTError: Invalid parameters
        NotFoundError: No matching questions
    """
    cbt_config = load_app_config().cbt
    count = question_count if question_count is not None else cbt_config.default_question_count
    limit = time_limit if time_limit is not None else cbt_config.default_time_limit

    if not 1 <= count <= cbt_config.max_question_count:
        raise CBTError(
            f"Question count must be between 1 and {cbt_config.max_question_count}"
        )
    if difficulty != "all" and difficulty not in DIFFICULTIES:
        raise CBTError(f"Unknown difficulty '{difficulty}'")
    if not 0 <= limit <= MAX_TIME_LIMIT_MINUTES:
        raise CBTError(f"Time limit must be between 0 and {MAX_TIME_LIMIT_MINUTES} minutes")
    if session_type not in SESSION_TYPES:
        raise CBTError(f"Unknown session type '{session_type}'")

    pool = list_questions(
        course_code=course_code,
        max_level=student.level,
        difficulty=None if difficulty == "all" else difficulty,
        active_only=True,
    )
    if not pool:
        raise NotFoundError("Practice questions for course", course_code.upper())

    chosen = (rng or random.Random()).sample(pool, min(count, len(pool)))

    session = insert_session(
        student_id=student.id,
        course_code=course_code,
        question_ids=[q.id for q in chosen],
        session_type=session_type,
        time_limit=limit,
        started_at=_utc(now).isoformat(),
    )
    logger.info(
        "cbt.session_started",
        session_id=session.id,
        student_id=student.id,
        course_code=session.course_code,
        questions=len(chosen),
        difficulty=difficulty,
        time_limit=limit,
    )
    return session, chosen


def submit_answer(
    student: UserRecord,
    session_id: str,
    question_id: str,
    selected_answer: int,
    time_spent: int | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Score one answer and update the session's running totals.

    Raises:
        NotFoundError: Unknown session, or question not in the session
        SessionStateError: Session closed or question already answered
        SessionExpiredError: Time limit exceeded (session is completed)
        CBTError: Selected option out of range
    """
    current = _utc(now)
    session = _get_owned_session(student, session_id)

    if session.status != "in_progress":
        raise SessionStateError(f"Session is {session.status}")

    if _is_expired(session, current):
        _close(session, "completed", current)
        raise SessionExpiredError("Time limit reached; the session has been completed")

    slot = session.get_answer(question_id)
    if slot is None:
        raise NotFoundError("Question in session", question_id)
    if slot.is_answered:
        raise SessionStateError("Question already answered")

    question = get_questions_by_ids([question_id]).get(question_id)
    if question is None:
        raise NotFoundError("Question", question_id)
    if not 0 <= selected_answer < len(question.options):
        raise CBTError(
            f"Selected answer must be between 0 and {len(question.options) - 1}"
        )
    if time_spent is not None and time_spent < 0:
        raise CBTError("Time spent cannot be negative")

    is_correct = selected_answer == question.correct_answer
    completed = session.completed_questions + 1
    correct = session.correct_answers + int(is_correct)
    percentage = _percentage(correct, session.total_questions)

    save_answer(
        session_id=session.id,
        question_id=question_id,
        selected_answer=selected_answer,
        is_correct=is_correct,
        time_spent=time_spent,
        completed_questions=completed,
        correct_answers=correct,
        percentage=percentage,
    )
    logger.debug(
        "cbt.answer_recorded",
        session_id=session.id,
        question_id=question_id,
        is_correct=is_correct,
    )

    return {
        "is_correct": is_correct,
        "correct_answer": question.correct_answer,
        "explanation": question.explanation,
        "completed_questions": completed,
        "correct_answers": correct,
        "percentage": percentage,
    }


def complete_session(
    student: UserRecord,
    session_id: str,
    now: datetime | None = None,
) -> PracticeSessionRecord:
    """Complete a session; completing it again returns it unchanged.

    Raises:
        NotFoundError: Unknown session
        SessionStateError: Session was abandoned
    """
    session = _get_owned_session(student, session_id)
    if session.status == "completed":
        return session
    if session.status == "abandoned":
        raise SessionStateError("An abandoned session cannot be completed")
    return _close(session, "completed", _utc(now))


def abandon_session(
    student: UserRecord,
    session_id: str,
    now: datetime | None = None,
) -> PracticeSessionRecord:
    """Abandon an in-progress session.

    Raises:
        NotFoundError: Unknown session
        SessionStateError: Session already closed
    """
    session = _get_owned_session(student, session_id)
    if session.status != "in_progress":
        raise SessionStateError(f"Session is already {session.status}")
    return _close(session, "abandoned", _utc(now))


def analyse_session(
    session: PracticeSessionRecord,
    questions: dict[str, QuestionRecord],
) -> dict[str, Any]:
    """Accuracy by difficulty and average time per answered question."""
    totals: Counter[str] = Counter()
    corrects: Counter[str] = Counter()
    times: list[int] = []

    for answer in session.answers:
        question = questions.get(answer.question_id)
        if question is not None:
            totals[question.difficulty] += 1
            if answer.is_correct:
                corrects[question.difficulty] += 1
        if answer.is_answered and answer.time_spent is not None:
            times.append(answer.time_spent)

    return {
        "difficulty": {
            d: {"total": totals[d], "correct": corrects[d]} for d in DIFFICULTIES
        },
        "accuracy_by_difficulty": {
            d: _percentage(corrects[d], totals[d]) for d in DIFFICULTIES if totals[d] > 0
        },
        "average_time_per_question": round(sum(times) / len(times), 2) if times else 0.0,
    }


def session_results(student: UserRecord, session_id: str) -> dict[str, Any]:
    """Session with answers revealed, plus its analysis."""
    session = _get_owned_session(student, session_id)
    questions = get_questions_by_ids([a.question_id for a in session.answers])
    return {
        "session": session_to_dict(session, questions, reveal=True),
        "analysis": analyse_session(session, questions),
    }


def practice_history(
    student: UserRecord,
    course_code: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Completed sessions (newest first) and overall statistics.

    Statistics cover every completed session matching ``course_code``,
    not just the ``limit`` most recent.
    """
    limit = limit if limit is not None else load_app_config().cbt.history_limit
    if limit < 1:
        raise CBTError("Limit must be at least 1")

    completed = list_sessions(student.id, status="completed", course_code=course_code)

    total_questions = sum(s.total_questions for s in completed)
    total_correct = sum(s.correct_answers for s in completed)
    average_score = (
        round(sum(s.percentage for s in completed) / len(completed), PERCENT_DECIMALS)
        if completed
        else 0.0
    )

    return {
        "history": [
            {
                "id": s.id,
                "course_code": s.course_code,
                "session_type": s.session_type,
                "total_questions": s.total_questions,
                "correct_answers": s.correct_answers,
                "percentage": s.percentage,
                "time_spent": s.time_spent,
                "completed_at": s.completed_at,
            }
            for s in completed[:limit]
        ],
        "overall_stats": {
            "total_sessions": len(completed),
            "total_questions": total_questions,
            "total_correct": total_correct,
            "average_score": average_score,
            "total_time_spent": sum(s.time_spent for s in completed),
            "overall_accuracy": _percentage(total_correct, total_questions),
        },
    }
