"""Repository functions for CBT practice sessions and their answers."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from uniport.db.database import get_db
from uniport.utils.validators import new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class PracticeAnswerRecord:
    """A question slot in a practice session (-1 = unanswered)."""

    question_id: str
    position: int
    selected_answer: int = -1
    is_correct: bool | None = None
    time_spent: int | None = None

    @property
    def is_answered(self) -> bool:
        """Whether the student has answered this question."""
        return self.selected_answer >= 0


@dataclass
class PracticeSessionRecord:
    """A CBT practice session with its question slots in order."""

    id: str
    student_id: str
    course_code: str
    session_type: str
    total_questions: int
    completed_questions: int
    correct_answers: int
    percentage: float
    time_limit: int
    time_spent: int
    started_at: str
    completed_at: str | None
    status: str
    answers: list[PracticeAnswerRecord] = field(default_factory=list)

    def get_answer(self, question_id: str) -> PracticeAnswerRecord | None:
        """Get the slot for a question, if it belongs to this session."""
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None


def _row_to_session(
    row: sqlite3.Row, answers: list[PracticeAnswerRecord]
) -> PracticeSessionRecord:
    """Convert database row to PracticeSessionRecord."""
    return PracticeSessionRecord(
        id=row["id"],
        student_id=row["student_id"],
        course_code=row["course_code"],
        session_type=row["session_type"],
        total_questions=row["total_questions"],
        completed_questions=row["completed_questions"],
        correct_answers=row["correct_answers"],
        percentage=row["percentage"],
        time_limit=row["time_limit"],
        time_spent=row["time_spent"],
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        status=row["status"],
        answers=answers,
    )


def _row_to_answer(row: sqlite3.Row) -> PracticeAnswerRecord:
    """Convert database row to PracticeAnswerRecord."""
    is_correct = row["is_correct"]
    return PracticeAnswerRecord(
        question_id=row["question_id"],
        position=row["position"],
        selected_answer=row["selected_answer"],
        is_correct=None if is_correct is None else bool(is_correct),
        time_spent=row["time_spent"],
    )


def insert_session(
    student_id: str,
    course_code: str,
    question_ids: list[str],
    session_type: str = "practice",
    time_limit: int = 0,
    started_at: str | None = None,
) -> PracticeSessionRecord:
    """Create an in-progress session with one unanswered slot per question."""
    session_id = new_id()
    started = started_at or utc_now()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO practice_sessions (
                id, student_id, course_code, session_type, total_questions,
                time_limit, started_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                student_id,
                course_code.upper(),
                session_type,
                len(question_ids),
                time_limit,
                started,
            ),
        )
        conn.executemany(
            """
            INSERT INTO practice_answers (session_id, position, question_id)
            VALUES (?, ?, ?)
            """,
            [(session_id, pos, qid) for pos, qid in enumerate(question_ids)],
        )

    logger.debug("practice.session_inserted", session_id=session_id, questions=len(question_ids))
    session = get_session(session_id)
    if session is None:
        raise ValueError(f"Practice session not found: {session_id}")
    return session


def get_session(session_id: str) -> PracticeSessionRecord | None:
    """Get a session with its answers."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM practice_sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            return None
        answer_rows = conn.execute(
            "SELECT * FROM practice_answers WHERE session_id = ? ORDER BY position",
            (session_id,),
        ).fetchall()

    return _row_to_session(row, [_row_to_answer(a) for a in answer_rows])


def list_sessions(
    student_id: str,
    status: str | None = None,
    course_code: str | None = None,
    limit: int | None = None,
) -> list[PracticeSessionRecord]:
    """List a student's sessions, most recently finished/started first.

    Answers are not loaded.
    """
    query = "SELECT * FROM practice_sessions WHERE student_id = ?"
    params: list[Any] = [student_id]
    if status:
        query += " AND status = ?"
        params.append(status)
    if course_code:
        query += " AND course_code = ?"
        params.append(course_code.upper())
    query += " ORDER BY COALESCE(completed_at, started_at) DESC, rowid DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_session(row, []) for row in rows]


def save_answer(
    session_id: str,
    question_id: str,
    selected_answer: int,
    is_correct: bool,
    time_spent: int | None,
    completed_questions: int,
    correct_answers: int,
    percentage: float,
) -> None:
    """Record an answer and the session's running totals atomically."""
    with get_db() as conn:
        conn.execute(
            """
            UPDATE practice_answers
            SET selected_answer = ?, is_correct = ?, time_spent = ?
            WHERE session_id = ? AND question_id = ?
            """,
            (selected_answer, int(is_correct), time_spent, session_id, question_id),
        )
        conn.execute(
            """
            UPDATE practice_sessions
            SET completed_questions = ?, correct_answers = ?, percentage = ?
            WHERE id = ?
            """,
            (completed_questions, correct_answers, percentage, session_id),
        )


def finish_session(
    session_id: str,
    status: str,
    completed_at: str,
    time_spent: int,
) -> PracticeSessionRecord | None:
    """Close a session as completed or abandoned."""
    with get_db() as conn:
        conn.execute(
            """
            UPDATE practice_sessions
            SET status = ?, completed_at = ?, time_spent = ?
            WHERE id = ?
            """,
            (status, completed_at, time_spent, session_id),
        )

    logger.debug("practice.session_finished", session_id=session_id, status=status)
    return get_session(session_id)
