# SPDX-License-Identifier: MIT
"""Validation of raw names and interval text at string entry points.

Validators raise without logging.  Entry points that accept raw strings go
through this module instead, so a rejection is logged once, at WARNING, with
the violated rule and offending token.  The raw input itself is not logged.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import Any

from .exceptions import ValidationError
from .identifiers import SqlIdentifier, coerce_identifier
from .intervals import TimeInterval, coerce_interval
from .utils.logging import get_logger

__all__ = ["logged_rejection", "parse_identifier", "parse_interval"]

_LOGGER = get_logger(__name__)


@contextmanager
def logged_rejection(operation: str) -> Iterator[None]:
    """Log a :class:`ValidationError` raised inside the block, then re-raise it."""

    try:
        yield
    except ValidationError as exc:
        _LOGGER.warning(
            f"Rejected input for {operation}",
            operation=operation,
            error_type=type(exc).__name__,
            rule=exc.rule.value,
            offending=exc.offending,
        )
        raise


def parse_identifier(value: "SqlIdentifier | str | Any", *, operation: str) -> SqlIdentifier:
    with logged_rejection(operation):
        return coerce_identifier(value)


def parse_interval(value: "TimeInterval | str | timedelta", *, operation: str) -> TimeInterval:
    with logged_rejection(operation):
        return coerce_interval(value)
