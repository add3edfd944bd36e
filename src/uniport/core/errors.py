"""Base exception for domain errors.

Every domain error carries the HTTP status the web layer should answer
with; the exception handler in ``uniport.web.api`` renders them.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(DomainError):
    """A referenced record does not exist (or is not visible to the caller)."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class PermissionDeniedError(DomainError):
    """The caller's role or ownership does not allow the action."""

    status_code = 403
