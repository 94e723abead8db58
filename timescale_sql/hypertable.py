# SPDX-License-Identifier: MIT
"""Hypertable registration and administrative operations.

A :class:`Hypertable` ties a table to its designated time column.  Build one
with :func:`hypertable`, which accepts plain names or SQLAlchemy ``Table``
and ``Column`` objects::

    metrics = Table("metrics", metadata, Column("timestamp", TimestampTz), ...)
    METRICS = hypertable(metrics, metrics.c.timestamp)
    METRICS.create_with_interval(conn, TimeInterval.from_days(1))

Each operation comes in two forms: one taking a validated
:class:`~timescale_sql.intervals.TimeInterval`, and a ``*_str`` form that
parses interval text first and then delegates.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from . import statements
from .access import StatementExecutor, execute_statement
from .chunks import ChunkInfo, drop_chunks_older_than, list_chunks
from .identifiers import SqlIdentifier
from .inputs import parse_identifier, parse_interval
from .intervals import TimeInterval
from .statements import Statement

__all__ = ["Hypertable", "hypertable"]


@dataclass(frozen=True, slots=True)
class Hypertable:
    """A table partitioned by ``time_column``."""

    table: SqlIdentifier
    time_column: SqlIdentifier

    def __post_init__(self) -> None:
        if not isinstance(self.table, SqlIdentifier) or not isinstance(self.time_column, SqlIdentifier):
            raise TypeError("Hypertable requires SqlIdentifier values; use hypertable() for raw names")

    @property
    def table_name(self) -> str:
        return self.table.as_str()

    @property
    def time_column_name(self) -> str:
        return self.time_column.as_str()

    # statement builders

    def create_statement(self) -> Statement:
        return statements.create_hypertable(self.table, self.time_column)

    def create_with_interval_statement(self, chunk_time_interval: TimeInterval) -> Statement:
        return statements.create_hypertable_with_interval(self.table, self.time_column, chunk_time_interval)

    def compression_policy_statement(self, compress_after: TimeInterval) -> Statement:
        return statements.add_compression_policy(self.table, compress_after)

    def retention_policy_statement(self, drop_after: TimeInterval) -> Statement:
        return statements.add_retention_policy(self.table, drop_after)

    # execution

    def create(self, executor: StatementExecutor) -> None:
        execute_statement(executor, self.create_statement(), operation="create_hypertable")

    def create_with_interval(self, executor: StatementExecutor, chunk_time_interval: TimeInterval) -> None:
        execute_statement(
            executor,
            self.create_with_interval_statement(chunk_time_interval),
            operation="create_hypertable",
        )

    def create_with_interval_str(self, executor: StatementExecutor, chunk_time_interval: str) -> None:
        self.create_with_interval(executor, parse_interval(chunk_time_interval, operation="create_hypertable"))

    def add_compression_policy(self, executor: StatementExecutor, compress_after: TimeInterval) -> None:
        execute_statement(executor, self.compression_policy_statement(compress_after), operation="add_compression_policy")

    def add_compression_policy_str(self, executor: StatementExecutor, compress_after: str) -> None:
        self.add_compression_policy(executor, parse_interval(compress_after, operation="add_compression_policy"))

    def add_retention_policy(self, executor: StatementExecutor, drop_after: TimeInterval) -> None:
        execute_statement(executor, self.retention_policy_statement(drop_after), operation="add_retention_policy")

    def add_retention_policy_str(self, executor: StatementExecutor, drop_after: str) -> None:
        self.add_retention_policy(executor, parse_interval(drop_after, operation="add_retention_policy"))

    def chunks(self, executor: StatementExecutor) -> list[ChunkInfo]:
        return list_chunks(executor, self.table)

    def drop_chunks_older_than(self, executor: StatementExecutor, older_than: datetime) -> int:
        return drop_chunks_older_than(executor, self.table, older_than)


def hypertable(table: Any, time_column: Any) -> Hypertable:
    """Register ``table`` as a hypertable partitioned on ``time_column``.

    Both arguments may be :class:`SqlIdentifier` values, raw strings, or
    objects with a ``name`` attribute such as SQLAlchemy tables and columns.
    Raw names are validated here, so an invalid name never reaches SQL.
    """

    owner = getattr(time_column, "table", None)
    if owner is not None and not isinstance(time_column, (str, SqlIdentifier)):
        owner_name = getattr(owner, "name", None)
        table_name = getattr(table, "name", table)
        if isinstance(owner_name, str) and isinstance(table_name, str) and owner_name != table_name:
            raise ValueError(f"column {time_column.name!r} belongs to {owner_name!r}, not {table_name!r}")
    return Hypertable(
        parse_identifier(table, operation="hypertable"),
        parse_identifier(time_column, operation="hypertable"),
    )
