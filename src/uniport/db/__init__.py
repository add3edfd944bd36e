"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for users, courses/enrollments,
  student course lists, the question bank and CBT sessions
"""

from uniport.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
