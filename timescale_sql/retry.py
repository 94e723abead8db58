# SPDX-License-Identifier: MIT
"""Caller-selected retries for statement execution.

Nothing in the package retries by default.  A :class:`RetryPolicy` handed to
:class:`~timescale_sql.access.DataAccessLayer`, or wrapped around a call with
:meth:`RetryPolicy.call`, re-runs a statement only when the failure looks like
lost connectivity or a serialization conflict.  Rejected identifiers and
intervals are never retried: the same input always fails the same way.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt
from sqlalchemy.exc import DBAPIError, DisconnectionError, InterfaceError, OperationalError
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt, wait_random, wait_random_exponential

from .exceptions import RetryableDatabaseError, StatementExecutionError, ValidationError
from .utils.logging import StructuredLogger, get_logger

__all__ = ["RetryPolicy", "is_retryable", "run_with_retry"]

T = TypeVar("T")

_LOGGER = get_logger(__name__)

# psycopg is matched by class name so classification works without the driver.
_TRANSIENT_PSYCOPG_ERRORS = frozenset({"OperationalError", "InterfaceError", "SerializationFailure", "DeadlockDetected"})


def is_retryable(error: BaseException) -> bool:
    """Return ``True`` when running the same statement again may succeed.

    :class:`StatementExecutionError` is judged by the driver error it wraps.
    """

    if isinstance(error, ValidationError):
        return False
    if isinstance(error, StatementExecutionError):
        cause = error.__cause__
        return cause is not None and is_retryable(cause)
    if isinstance(error, (RetryableDatabaseError, TimeoutError, ConnectionError)):
        return True
    if isinstance(error, (DisconnectionError, OperationalError, InterfaceError)):
        return True
    if isinstance(error, DBAPIError):
        return bool(error.connection_invalidated)
    error_type = type(error)
    return error_type.__module__.startswith("psycopg") and error_type.__name__ in _TRANSIENT_PSYCOPG_ERRORS


def _describe_failure(error: BaseException | None) -> dict[str, str]:
    if error is None:
        return {}
    if isinstance(error, StatementExecutionError):
        return {"operation": error.operation, "error_type": type(error.__cause__).__name__}
    return {"error_type": type(error).__name__}


class RetryPolicy(BaseModel):
    """Attempt budget and exponential backoff (with jitter) between attempts."""

    model_config = ConfigDict(frozen=True)

    attempts: PositiveInt = Field(3, description="Total attempts, the first one included.")
    initial_backoff: PositiveFloat = Field(0.05, description="Backoff multiplier in seconds.")
    max_backoff: PositiveFloat = Field(2.0, description="Ceiling for a single exponential backoff wait.")
    max_jitter: float = Field(0.1, ge=0.0, description="Uniform jitter, in seconds, added to each wait.")

    def retrying(self, logger: StructuredLogger | None = None) -> Retrying:
        """Return a :class:`~tenacity.Retrying` loop logging every scheduled retry."""

        log = logger or _LOGGER

        def _before_sleep(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome is not None else None
            log.warning(
                "Retrying statement after transient failure",
                attempt=state.attempt_number,
                max_attempts=self.attempts,
                sleep_seconds=state.next_action.sleep if state.next_action is not None else 0.0,
                **_describe_failure(error),
            )

        wait = wait_random_exponential(multiplier=self.initial_backoff, max=self.max_backoff)
        if self.max_jitter:
            wait = wait + wait_random(0, self.max_jitter)
        return Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait,
            retry=retry_if_exception(is_retryable),
            before_sleep=_before_sleep,
            reraise=True,
        )

    def call(self, operation: Callable[[], T], *, logger: StructuredLogger | None = None) -> T:
        """Run ``operation`` until it succeeds, fails permanently or attempts run out."""

        return self.retrying(logger)(operation)


def run_with_retry(policy: RetryPolicy | None, operation: Callable[[], T], *, logger: StructuredLogger | None = None) -> T:
    """Run ``operation`` once, or under ``policy`` when one is given."""

    if policy is None:
        return operation()
    return policy.call(operation, logger=logger)
