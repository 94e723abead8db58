# SPDX-License-Identifier: MIT
"""Structured JSON logging for statement execution.

Records carry a correlation id taken from a :class:`~contextvars.ContextVar`
so every statement issued for one administrative action (for example the two
statements of a continuous aggregate) can be grouped together.
"""
from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4

_CORRELATION_ID_VAR: ContextVar[Optional[str]] = ContextVar(
    "timescale_sql_correlation_id", default=None
)


def generate_correlation_id() -> str:
    return uuid4().hex


def get_correlation_id() -> Optional[str]:
    """Return the currently active correlation identifier, if any."""

    return _CORRELATION_ID_VAR.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind ``correlation_id`` (or a fresh one) for the duration of the block."""

    resolved = correlation_id or generate_correlation_id()
    token = _CORRELATION_ID_VAR.set(resolved)
    try:
        yield resolved
    finally:
        _CORRELATION_ID_VAR.reset(token)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id is not None:
            payload["correlation_id"] = correlation_id
        payload.update(getattr(record, "extra_fields", {}) or {})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class StructuredLogger:
    """Thin wrapper turning keyword arguments into structured log fields."""

    def __init__(self, name: str) -> None:
        self.logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra: Dict[str, Any] = {"correlation_id": get_correlation_id()}
        if fields:
            extra["extra_fields"] = fields
        self.logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, **fields)

    @contextmanager
    def operation(self, name: str, **context: Any) -> Iterator[Dict[str, Any]]:
        """Log start, completion or failure of ``name`` with its duration.

        The yielded dictionary is merged into the completion record, so callers
        can attach results (for example ``rows``).
        """

        started = time.perf_counter()
        op_context: Dict[str, Any] = {"operation": name, **context}
        with correlation_context(get_correlation_id()):
            self.debug(f"Starting operation: {name}", **op_context)
            try:
                yield op_context
            except Exception as exc:
                self.error(
                    f"Failed operation: {name}",
                    **op_context,
                    status="failure",
                    duration_seconds=time.perf_counter() - started,
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
                raise
            self.info(
                f"Completed operation: {name}",
                **op_context,
                status="success",
                duration_seconds=time.perf_counter() - started,
            )


def configure_logging(level: str = "INFO", use_json: bool = True, stream: Any = None) -> None:
    """Install a single root handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        use_json: Render records with :class:`JSONFormatter`.
        stream: Output stream, ``sys.stdout`` by default.
    """

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()
    handler = logging.StreamHandler(stream or sys.stdout)
    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


__all__ = [
    "JSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger",
]
