"""Repository functions for the CBT question bank."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from uniport.db.database import get_db
from uniport.utils.validators import new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class QuestionRecord:
    """A multiple-choice question in the bank."""

    id: str
    question: str
    options: list[str]
    correct_answer: int
    course_code: str
    course_title: str
    level: int
    semester: int
    difficulty: str
    explanation: str | None = None
    tags: list[str] = field(default_factory=list)
    created_by: str | None = None
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""


def _row_to_record(row: sqlite3.Row) -> QuestionRecord:
    """Convert database row to QuestionRecord."""
    return QuestionRecord(
        id=row["id"],
        question=row["question"],
        options=json.loads(row["options"]),
        correct_answer=row["correct_answer"],
        course_code=row["course_code"],
        course_title=row["course_title"],
        level=row["level"],
        semester=row["semester"],
        difficulty=row["difficulty"],
        explanation=row["explanation"],
        tags=json.loads(row["tags"] or "[]"),
        created_by=row["created_by"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def insert_question(
    question: str,
    options: list[str],
    correct_answer: int,
    course_code: str,
    level: int,
    difficulty: str,
    course_title: str = "",
    semester: int = 1,
    explanation: str | None = None,
    tags: list[str] | None = None,
    created_by: str | None = None,
    is_active: bool = True,
) -> QuestionRecord:
    """Insert a new question."""
    now = utc_now()
    record = QuestionRecord(
        id=new_id(),
        question=question,
        options=list(options),
        correct_answer=correct_answer,
        course_code=course_code.upper(),
        course_title=course_title,
        level=level,
        semester=semester,
        difficulty=difficulty,
        explanation=explanation,
        tags=list(tags or []),
        created_by=created_by,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO questions (
                id, question, options, correct_answer, course_code, course_title,
                level, semester, difficulty, explanation, tags, created_by,
                is_active, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.question,
                json.dumps(record.options),
                record.correct_answer,
                record.course_code,
                record.course_title,
                record.level,
                record.semester,
                record.difficulty,
                record.explanation,
                json.dumps(record.tags),
                record.created_by,
                int(record.is_active),
                record.created_at,
                record.updated_at,
            ),
        )

    logger.debug("questions.inserted", question_id=record.id, course_code=record.course_code)
    return record


def get_question(question_id: str) -> QuestionRecord | None:
    """Get question by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM questions WHERE id = ?", (question_id,)).fetchone()

    return _row_to_record(row) if row else None


def get_questions_by_ids(question_ids: list[str]) -> dict[str, QuestionRecord]:
    """Fetch several questions at once, keyed by ID."""
    if not question_ids:
        return {}
    placeholders = ", ".join("?" for _ in question_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM questions WHERE id IN ({placeholders})", question_ids
        ).fetchall()

    return {row["id"]: _row_to_record(row) for row in rows}


def list_questions(
    course_code: str | None = None,
    level: int | None = None,
    max_level: int | None = None,
    difficulty: str | None = None,
    search: str | None = None,
    created_by: str | None = None,
    active_only: bool = False,
) -> list[QuestionRecord]:
    """List questions, newest first, with optional filters."""
    clauses: list[str] = []
    params: list[Any] = []

    if course_code:
        clauses.append("course_code = ?")
        params.append(course_code.upper())
    if level is not None:
        clauses.append("level = ?")
        params.append(level)
    if max_level is not None:
        clauses.append("level <= ?")
        params.append(max_level)
    if difficulty:
        clauses.append("difficulty = ?")
        params.append(difficulty)
    if search:
        clauses.append("(question LIKE ? OR course_title LIKE ?)")
        params.extend([f"%{search}%"] * 2)
    if created_by:
        clauses.append("created_by = ?")
        params.append(created_by)
    if active_only:
        clauses.append("is_active = 1")

    query = "SELECT * FROM questions"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at DESC, rowid DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_record(row) for row in rows]


def count_questions(created_by: str | None = None) -> int:
    """Count questions, optionally only those created by one user."""
    with get_db() as conn:
        if created_by:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM questions WHERE created_by = ?", (created_by,)
            ).fetchone()
        else:
            row = conn.execute("SELECT COUNT(*) AS n FROM questions").fetchone()
    return int(row["n"])


def update_question(question_id: str, **fields: Any) -> QuestionRecord | None:
    """Update selected fields. None values are skipped."""
    allowed = {
        "question",
        "options",
        "correct_answer",
        "course_code",
        "course_title",
        "level",
        "semester",
        "difficulty",
        "explanation",
        "tags",
        "is_active",
    }
    updates: dict[str, Any] = {}
    for column, value in fields.items():
        if column not in allowed or value is None:
            continue
        if column in ("options", "tags"):
            value = json.dumps(list(value))
        elif column == "is_active":
            value = int(value)
        elif column == "course_code":
            value = value.upper()
        updates[column] = value

    if updates:
        updates["updated_at"] = utc_now()
        assignments = ", ".join(f"{column} = ?" for column in updates)
        with get_db() as conn:
            conn.execute(
                f"UPDATE questions SET {assignments} WHERE id = ?",
                (*updates.values(), question_id),
            )
        logger.debug("questions.updated", question_id=question_id, fields=sorted(updates))

    return get_question(question_id)


def delete_question(question_id: str) -> bool:
    """Delete question by ID. Returns True if deleted."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("questions.deleted", question_id=question_id)
    return deleted
