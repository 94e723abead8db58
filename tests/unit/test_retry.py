# SPDX-License-Identifier: MIT
from __future__ import annotations

import logging

import pydantic
import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from timescale_sql.access import execute_statement
from timescale_sql.exceptions import IntervalRule, InvalidInterval, RetryableDatabaseError, StatementExecutionError
from timescale_sql.hypertable import hypertable
from timescale_sql.retry import RetryPolicy, is_retryable, run_with_retry
from timescale_sql.statements import Statement


def _fast_policy(attempts: int = 3) -> RetryPolicy:
    return RetryPolicy(attempts=attempts, initial_backoff=0.001, max_backoff=0.002, max_jitter=0.0)


def _wrapped(cause: BaseException) -> StatementExecutionError:
    error = StatementExecutionError("create_hypertable", Statement("SELECT 1;"))
    error.__cause__ = cause
    return error


def test_transient_errors_are_retryable() -> None:
    assert is_retryable(RetryableDatabaseError("flaky"))
    assert is_retryable(TimeoutError())
    assert is_retryable(ConnectionResetError())
    assert is_retryable(OperationalError("SELECT 1", None, Exception("gone")))


def test_logic_and_validation_errors_are_not_retryable() -> None:
    assert not is_retryable(ValueError("bad"))
    assert not is_retryable(DBAPIError("SELECT 1", None, Exception("syntax")))
    assert not is_retryable(InvalidInterval("Unknown time unit: parsec", rule=IntervalRule.UNIT, offending="parsec"))


def test_execution_errors_are_judged_by_their_cause() -> None:
    assert is_retryable(_wrapped(ConnectionResetError()))
    assert not is_retryable(_wrapped(RuntimeError("relation does not exist")))
    assert not is_retryable(StatementExecutionError("create_hypertable", Statement("SELECT 1;")))


def test_policy_retries_wrapped_execution_failures(make_executor, caplog: pytest.LogCaptureFixture) -> None:
    executor = make_executor(error=ConnectionResetError("server closed the connection"))
    statement = hypertable("metrics", "timestamp").create_statement()

    with caplog.at_level(logging.WARNING, logger="timescale_sql.retry"):
        with pytest.raises(StatementExecutionError):
            _fast_policy(attempts=3).call(
                lambda: execute_statement(executor, statement, operation="create_hypertable")
            )

    assert len(executor.calls) == 3
    retries = [record for record in caplog.records if record.name == "timescale_sql.retry"]
    assert [record.extra_fields["attempt"] for record in retries] == [1, 2]
    assert retries[0].extra_fields["operation"] == "create_hypertable"
    assert retries[0].extra_fields["error_type"] == "ConnectionResetError"


def test_policy_does_not_retry_permanent_failures(make_executor) -> None:
    executor = make_executor(error=RuntimeError("relation \"metrics\" does not exist"))
    statement = hypertable("metrics", "timestamp").create_statement()

    with pytest.raises(StatementExecutionError):
        _fast_policy().call(lambda: execute_statement(executor, statement, operation="create_hypertable"))

    assert len(executor.calls) == 1


def test_run_with_retry_recovers_from_transient_failure() -> None:
    attempts: list[int] = []

    def operation() -> str:
        attempts.append(1)
        if len(attempts) < 3:
            raise RetryableDatabaseError("try again")
        return "ok"

    assert run_with_retry(_fast_policy(), operation) == "ok"
    assert len(attempts) == 3


def test_run_with_retry_without_policy_runs_once() -> None:
    calls: list[int] = []

    def operation() -> None:
        calls.append(1)
        raise TimeoutError("still down")

    with pytest.raises(TimeoutError):
        run_with_retry(None, operation)
    assert len(calls) == 1


def test_policy_validation() -> None:
    with pytest.raises(pydantic.ValidationError):
        RetryPolicy(attempts=0)
    with pytest.raises(pydantic.ValidationError):
        RetryPolicy(max_jitter=-1.0)
