# SPDX-License-Identifier: MIT
"""Exceptions raised by the validation layer and the statement executors."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .statements import Statement

__all__ = [
    "DatabaseError",
    "IdentifierRule",
    "IntervalRule",
    "InvalidIdentifier",
    "InvalidInterval",
    "RetryableDatabaseError",
    "StatementExecutionError",
    "ValidationError",
]


class IdentifierRule(str, Enum):
    """Identifier rules in the order they are checked."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    LEADING_CHARACTER = "leading_character"
    CHARACTER = "character"
    RESERVED_WORD = "reserved_word"


class IntervalRule(str, Enum):
    """Interval rules in the order they are checked."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    CHARACTER = "character"
    FORMAT = "format"
    MAGNITUDE = "magnitude"
    UNIT = "unit"


class ValidationError(ValueError):
    """Base class for rejected identifier or interval input."""

    prefix = "Invalid input"

    def __init__(self, reason: str, *, rule: Enum, offending: str | None = None) -> None:
        super().__init__(f"{self.prefix}: {reason}")
        self.reason = reason
        self.rule = rule
        self.offending = offending


class InvalidIdentifier(ValidationError):
    """Raised when a raw string cannot be used as a SQL identifier."""

    prefix = "Invalid SQL identifier"
    rule: IdentifierRule


class InvalidInterval(ValidationError):
    """Raised when a raw string cannot be parsed as a time interval."""

    prefix = "Invalid time interval"
    rule: IntervalRule


class DatabaseError(RuntimeError):
    """Base class for database access related failures."""


class RetryableDatabaseError(DatabaseError):
    """Marker exception used to force retry logic for known transient states."""


class StatementExecutionError(DatabaseError):
    """The execution collaborator failed while running a built statement.

    The driver exception is kept as ``__cause__``; nothing about it
    is reinterpreted.
    """

    def __init__(self, operation: str, statement: "Statement") -> None:
        super().__init__(f"Execution failed for {operation}")
        self.operation = operation
        self.statement = statement
