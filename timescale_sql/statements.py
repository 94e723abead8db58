# SPDX-License-Identifier: MIT
"""SQL statement builders for TimescaleDB administrative functions.

Every builder accepts only :class:`~timescale_sql.identifiers.SqlIdentifier`
and :class:`~timescale_sql.intervals.TimeInterval` values plus plain scalars.
Names that TimescaleDB functions take as ordinary arguments are bound as
parameters; object names in DDL and ``INTERVAL`` literals in named-argument
positions are interpolated from the validated values.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .identifiers import SqlIdentifier
from .intervals import TimeInterval
from .types import ensure_utc

__all__ = [
    "CHUNK_INFO_QUERY",
    "SCHEMA_CHUNK_INFO_QUERY",
    "Statement",
    "add_compression_policy",
    "add_continuous_aggregate_policy",
    "add_retention_policy",
    "compress_chunk",
    "create_continuous_aggregate",
    "create_hypertable",
    "create_hypertable_with_interval",
    "drop_chunks",
    "list_chunks",
    "refresh_continuous_aggregate",
]

_CHUNK_INFO_SELECT = (
    "SELECT chunk_schema, chunk_name, hypertable_name AS table_name, range_start, range_end\n"
    "FROM timescaledb_information.chunks\n"
)
CHUNK_INFO_QUERY = _CHUNK_INFO_SELECT + "WHERE hypertable_name = %s\nORDER BY range_start"
SCHEMA_CHUNK_INFO_QUERY = _CHUNK_INFO_SELECT + "WHERE hypertable_schema = %s AND hypertable_name = %s\nORDER BY range_start"


@dataclass(frozen=True, slots=True)
class Statement:
    """Finished SQL text plus the ordered bind parameters it expects."""

    sql: str
    params: tuple[Any, ...] = ()

    @property
    def bind_params(self) -> tuple[Any, ...] | None:
        """Parameters in the form DB-API drivers expect (``None`` when empty)."""

        return self.params or None


def create_hypertable(table: SqlIdentifier, time_column: SqlIdentifier) -> Statement:
    return Statement(
        "SELECT create_hypertable(%s, %s);",
        (table.as_str(), time_column.as_str()),
    )


def create_hypertable_with_interval(
    table: SqlIdentifier,
    time_column: SqlIdentifier,
    chunk_time_interval: TimeInterval,
) -> Statement:
    return Statement(
        f"SELECT create_hypertable(%s, %s, chunk_time_interval => {chunk_time_interval.to_sql()});",
        (table.as_str(), time_column.as_str()),
    )


def add_compression_policy(table: SqlIdentifier, compress_after: TimeInterval) -> Statement:
    return Statement(
        f"SELECT add_compression_policy(%s, {compress_after.to_sql()});",
        (table.as_str(),),
    )


def add_retention_policy(table: SqlIdentifier, drop_after: TimeInterval) -> Statement:
    return Statement(
        f"SELECT add_retention_policy(%s, {drop_after.to_sql()});",
        (table.as_str(),),
    )


def create_continuous_aggregate(view: SqlIdentifier, query: str) -> Statement:
    """Build the ``CREATE MATERIALIZED VIEW`` statement.

    ``query`` is inserted verbatim.  It is trusted input: only the view name
    is validated here.
    """

    return Statement(f"CREATE MATERIALIZED VIEW {view.escaped()} WITH (timescaledb.continuous) AS {query};")


def add_continuous_aggregate_policy(
    view: SqlIdentifier,
    end_offset: TimeInterval,
    schedule_interval: TimeInterval | None = None,
) -> Statement:
    sql = (
        "SELECT add_continuous_aggregate_policy(%s, start_offset => NULL, "
        f"end_offset => {end_offset.to_sql()}"
    )
    if schedule_interval is not None:
        sql += f", schedule_interval => {schedule_interval.to_sql()}"
    return Statement(sql + ");", (view.as_str(),))


def refresh_continuous_aggregate(
    view: SqlIdentifier,
    window_start: datetime | None = None,
    window_end: datetime | None = None,
) -> Statement:
    return Statement(
        "CALL refresh_continuous_aggregate(%s, %s, %s);",
        (
            view.as_str(),
            None if window_start is None else ensure_utc(window_start),
            None if window_end is None else ensure_utc(window_end),
        ),
    )


def list_chunks(table: SqlIdentifier, schema: SqlIdentifier | None = None) -> Statement:
    """Chunk metadata of ``table``.

    Without ``schema`` the chunks of same-named hypertables in every schema
    are listed together.
    """

    if schema is None:
        return Statement(CHUNK_INFO_QUERY, (table.as_str(),))
    return Statement(SCHEMA_CHUNK_INFO_QUERY, (schema.as_str(), table.as_str()))


def drop_chunks(table: SqlIdentifier, older_than: datetime) -> Statement:
    return Statement("SELECT drop_chunks(%s, %s);", (table.as_str(), ensure_utc(older_than)))


def compress_chunk(schema: SqlIdentifier, chunk: SqlIdentifier) -> Statement:
    return Statement(
        "SELECT compress_chunk(%s::regclass);",
        (f"{schema.escaped()}.{chunk.escaped()}",),
    )
