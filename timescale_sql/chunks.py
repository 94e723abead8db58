# SPDX-License-Identifier: MIT
"""Chunk introspection and maintenance."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from . import statements
from .access import StatementExecutor, execute_statement, fetch_statement
from .identifiers import SqlIdentifier
from .inputs import parse_identifier

__all__ = [
    "ChunkInfo",
    "compress_chunk",
    "drop_chunks_older_than",
    "drop_old_chunks",
    "get_chunk_info",
    "list_chunks",
]

_COLUMNS = ("chunk_schema", "chunk_name", "table_name", "range_start", "range_end")


@dataclass(frozen=True, slots=True)
class ChunkInfo:
    """One row of ``timescaledb_information.chunks``."""

    chunk_schema: str
    chunk_name: str
    table_name: str
    range_start: datetime | None = None
    range_end: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | Sequence[Any]) -> "ChunkInfo":
        """Build from a mapping row (dict cursors) or a positional tuple row."""

        if isinstance(row, Mapping):
            return cls(**{column: row.get(column) for column in _COLUMNS})
        if len(row) != len(_COLUMNS):
            raise ValueError(f"expected {len(_COLUMNS)} columns, got {len(row)}")
        return cls(*row)

    @property
    def qualified_name(self) -> str:
        return f"{self.chunk_schema}.{self.chunk_name}"


def list_chunks(
    executor: StatementExecutor,
    table: SqlIdentifier,
    *,
    schema: SqlIdentifier | None = None,
) -> list[ChunkInfo]:
    """Return the chunks of ``table`` ordered by range start.

    Pass ``schema`` when hypertables with the same name exist in several
    schemas.
    """

    rows = fetch_statement(executor, statements.list_chunks(table, schema), operation="list_chunks")
    return [ChunkInfo.from_row(row) for row in rows]


def drop_chunks_older_than(executor: StatementExecutor, table: SqlIdentifier, older_than: datetime) -> int:
    """Drop every chunk of ``table`` that ends before ``older_than``."""

    return execute_statement(executor, statements.drop_chunks(table, older_than), operation="drop_chunks")


def compress_chunk(executor: StatementExecutor, chunk: ChunkInfo) -> int:
    statement = statements.compress_chunk(SqlIdentifier(chunk.chunk_schema), SqlIdentifier(chunk.chunk_name))
    return execute_statement(executor, statement, operation="compress_chunk")


def get_chunk_info(executor: StatementExecutor, table_name: str, *, schema: str | None = None) -> list[ChunkInfo]:
    table = parse_identifier(table_name, operation="list_chunks")
    if schema is None:
        return list_chunks(executor, table)
    return list_chunks(executor, table, schema=parse_identifier(schema, operation="list_chunks"))


def drop_old_chunks(executor: StatementExecutor, table_name: str, older_than: datetime) -> int:
    return drop_chunks_older_than(executor, parse_identifier(table_name, operation="drop_chunks"), older_than)
