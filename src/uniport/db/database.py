"""SQLite database connection and schema management.

Provides connection management and schema initialization for uniport.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/uniport.db")

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/uniport.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def is_initialized() -> bool:
    """Whether init_db has selected a database for this process."""
    return _db_path is not None


def get_db_path() -> Path:
    """Path of the database currently in use."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success, rolls back on error.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM courses").fetchall()
    """
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency. List-valued fields
    (prerequisite, options, tags, schedule) are stored as JSON text.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            matric_no TEXT NOT NULL UNIQUE,
            email TEXT NOT NULL UNIQUE,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            role TEXT NOT NULL CHECK(role IN ('student', 'lecturer', 'admin')),
            department TEXT NOT NULL DEFAULT '',
            level INTEGER NOT NULL DEFAULT 100,
            phone TEXT,
            address TEXT,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS auth_tokens (
            token TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS courses (
            id TEXT PRIMARY KEY,
            course_code TEXT NOT NULL UNIQUE,
            course_title TEXT NOT NULL,
            credit_units INTEGER NOT NULL,
            semester INTEGER NOT NULL CHECK(semester IN (1, 2)),
            level INTEGER NOT NULL,
            department TEXT NOT NULL,
            prerequisite TEXT NOT NULL DEFAULT '[]',
            lecturer TEXT NOT NULL DEFAULT '',
            lecturer_id TEXT REFERENCES users(id) ON DELETE SET NULL,
            capacity INTEGER NOT NULL DEFAULT 100,
            schedule TEXT,
            is_active INTEGER NOT NULL DEFAULT 1
        );

        CREATE TABLE IF NOT EXISTS enrollments (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            semester INTEGER NOT NULL CHECK(semester IN (1, 2)),
            session TEXT NOT NULL,
            registered_at TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'registered'
                CHECK(status IN ('registered', 'completed')),
            score REAL,
            grade TEXT,
            graded_at TEXT,
            graded_by TEXT,
            UNIQUE(student_id, course_id, session)
        );

        CREATE TABLE IF NOT EXISTS student_courses (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            course_code TEXT NOT NULL,
            course_title TEXT NOT NULL,
            credit_units INTEGER NOT NULL,
            semester INTEGER NOT NULL,
            session TEXT NOT NULL,
            lecturer TEXT NOT NULL DEFAULT '',
            schedule TEXT,
            grade TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'registered'
                CHECK(status IN ('registered', 'completed', 'dropped')),
            added_at TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS questions (
            id TEXT PRIMARY KEY,
            question TEXT NOT NULL,
            options TEXT NOT NULL,
            correct_answer INTEGER NOT NULL,
            course_code TEXT NOT NULL,
            course_title TEXT NOT NULL DEFAULT '',
            level INTEGER NOT NULL,
            semester INTEGER NOT NULL DEFAULT 1,
            difficulty TEXT NOT NULL CHECK(difficulty IN ('easy', 'medium', 'hard')),
            explanation TEXT,
            tags TEXT NOT NULL DEFAULT '[]',
            created_by TEXT REFERENCES users(id) ON DELETE SET NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS practice_sessions (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            course_code TEXT NOT NULL,
            session_type TEXT NOT NULL DEFAULT 'practice'
                CHECK(session_type IN ('practice', 'mock_exam', 'quick_quiz')),
            total_questions INTEGER NOT NULL,
            completed_questions INTEGER NOT NULL DEFAULT 0,
            correct_answers INTEGER NOT NULL DEFAULT 0,
            percentage REAL NOT NULL DEFAULT 0,
            time_limit INTEGER NOT NULL DEFAULT 0,
            time_spent INTEGER NOT NULL DEFAULT 0,
            started_at TEXT NOT NULL,
            completed_at TEXT,
            status TEXT NOT NULL DEFAULT 'in_progress'
                CHECK(status IN ('in_progress', 'completed', 'abandoned'))
        );

        CREATE TABLE IF NOT EXISTS practice_answers (
            session_id TEXT NOT NULL REFERENCES practice_sessions(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            question_id TEXT NOT NULL,
            selected_answer INTEGER NOT NULL DEFAULT -1,
            is_correct INTEGER,
            time_spent INTEGER,
            PRIMARY KEY (session_id, question_id)
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_enrollments_student ON enrollments(student_id);
        CREATE INDEX IF NOT EXISTS idx_enrollments_course ON enrollments(course_id);
        CREATE INDEX IF NOT EXISTS idx_student_courses_student ON student_courses(student_id);
        CREATE INDEX IF NOT EXISTS idx_questions_course ON questions(course_code);
        CREATE INDEX IF NOT EXISTS idx_practice_sessions_student ON practice_sessions(student_id);
        """
    )
