# SPDX-License-Identifier: MIT
"""Execution collaborators for built statements.

Statement builders produce SQL text plus bind parameters; something else has
to run them.  Anything implementing :class:`StatementExecutor` qualifies:

* :class:`DataAccessLayer` opens a fresh connection from a factory for every
  call, commits on success and rolls back on failure;
* :class:`~timescale_sql.connection.TimescaleConnection` runs statements on a
  single connection it owns.

:func:`execute_statement` and :func:`fetch_statement` are the only places the
package talks to an executor.  They log the operation and wrap any failure
in :class:`~timescale_sql.exceptions.StatementExecutionError` so callers
can tell execution failures apart from validation errors.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, runtime_checkable

from .exceptions import StatementExecutionError
from .retry import RetryPolicy, run_with_retry
from .statements import Statement
from .utils.logging import StructuredLogger, get_logger

Params = Mapping[str, Any] | Sequence[Any] | None
RowT = TypeVar("RowT")

__all__ = [
    "DataAccessLayer",
    "StatementExecutor",
    "execute_command",
    "execute_statement",
    "fetch_command",
    "fetch_statement",
]

_LOGGER = get_logger(__name__)


@runtime_checkable
class StatementExecutor(Protocol):
    """Opaque sink accepting SQL text and ordered bind parameters."""

    def execute(self, query: str, params: Params = None) -> int:
        """Run a statement and return the affected row count."""

    def fetch_all(self, query: str, params: Params = None) -> list[Any]:
        """Run a query and return every row."""


class SupportsCursor(Protocol):
    """Minimum surface of a DB-API connection."""

    def cursor(self) -> Any:  # pragma: no cover - runtime duck typing
        """Return a cursor object."""

    def commit(self) -> None:  # pragma: no cover - runtime duck typing
        """Commit the current transaction."""

    def rollback(self) -> None:  # pragma: no cover - runtime duck typing
        """Rollback the current transaction."""

    def close(self) -> None:  # pragma: no cover - runtime duck typing
        """Close the connection and release the underlying resources."""


ConnectionFactory = Callable[[], SupportsCursor]


def run_on_cursor(
    connection: SupportsCursor,
    command: Callable[[Any], RowT],
    *,
    commit_on_success: bool,
) -> RowT:
    """Run ``command`` on a fresh cursor of ``connection`` inside one transaction."""

    cursor = connection.cursor()
    try:
        result = command(cursor)
    except Exception:
        connection.rollback()
        raise
    else:
        if commit_on_success:
            connection.commit()
        return result
    finally:
        close = getattr(cursor, "close", None)
        if callable(close):
            close()


def execute_command(query: str, params: Params) -> Callable[[Any], int]:
    def _command(cursor: Any) -> int:
        cursor.execute(query, params)
        return int(getattr(cursor, "rowcount", -1))

    return _command


def fetch_command(query: str, params: Params) -> Callable[[Any], list[Any]]:
    def _command(cursor: Any) -> list[Any]:
        cursor.execute(query, params)
        return list(cursor.fetchall())

    return _command


@dataclass(slots=True)
class DataAccessLayer:
    """Connection-per-call executor built on a connection factory.

    Parameters
    ----------
    connection_factory:
        Callable returning a new DB-API connection each time it is invoked.
    retry_policy:
        Optional policy applied to every call.  Without one, failures surface
        on the first attempt.
    """

    connection_factory: ConnectionFactory
    retry_policy: RetryPolicy | None = None
    logger: StructuredLogger | None = None

    def execute(self, query: str, params: Params = None) -> int:
        """Execute a statement, commit, and return the driver's row count."""

        return self._run(execute_command(query, params), commit_on_success=True)

    def fetch_all(self, query: str, params: Params = None) -> list[Any]:
        """Execute *query* and return all rows without committing."""

        return self._run(fetch_command(query, params), commit_on_success=False)

    @contextmanager
    def transaction(self) -> Iterator[SupportsCursor]:
        """Yield a raw connection guarded by commit/rollback handlers."""

        connection = self.connection_factory()
        try:
            yield connection
        except Exception:
            connection.rollback()
            raise
        else:
            connection.commit()
        finally:
            connection.close()

    def _run(self, command: Callable[[Any], RowT], *, commit_on_success: bool) -> RowT:
        def operation() -> RowT:
            connection = self.connection_factory()
            try:
                return run_on_cursor(connection, command, commit_on_success=commit_on_success)
            finally:
                connection.close()

        return run_with_retry(self.retry_policy, operation, logger=self.logger)


def execute_statement(executor: StatementExecutor, statement: Statement, *, operation: str) -> int:
    """Run ``statement`` through ``executor`` and return the affected row count."""

    with _LOGGER.operation(operation, params=len(statement.params)) as context:
        _LOGGER.debug("Executing statement", operation=operation, sql=statement.sql)
        try:
            context["rowcount"] = executor.execute(statement.sql, statement.bind_params)
        except Exception as exc:
            raise StatementExecutionError(operation, statement) from exc
        return context["rowcount"]


def fetch_statement(executor: StatementExecutor, statement: Statement, *, operation: str) -> list[Any]:
    """Run a row-returning ``statement`` through ``executor``."""

    with _LOGGER.operation(operation, params=len(statement.params)) as context:
        _LOGGER.debug("Executing query", operation=operation, sql=statement.sql)
        try:
            rows = executor.fetch_all(statement.sql, statement.bind_params)
        except Exception as exc:
            raise StatementExecutionError(operation, statement) from exc
        context["rows"] = len(rows)
        return rows
