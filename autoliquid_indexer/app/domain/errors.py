"""
Exceptions raised by the indexer core.

Hierarchy:
    IndexerError
    ├── EventDecodeError       recognized event with a malformed payload
    ├── TaskNotFoundError      progress requested for an unregistered task
    ├── DuplicateTaskError     task name registered twice
    └── InvalidTaskSetError    inconsistent set of tasks for a prefix

Database failures are not wrapped: SQLAlchemy exceptions reach the caller
as they are, after the enclosing transaction has been rolled back.
"""
from __future__ import annotations

from typing import Any


class IndexerError(Exception):
    """Base exception carrying a message plus structured context."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class EventDecodeError(IndexerError):
    """
    Payload of a known event type could not be decoded.

    Indicates drift between the on-chain event layout and the structs known
    to this indexer, so it must never be swallowed.
    """


class TaskNotFoundError(IndexerError):
    pass


class DuplicateTaskError(IndexerError):
    pass


class InvalidTaskSetError(IndexerError):
    pass
