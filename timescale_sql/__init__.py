# SPDX-License-Identifier: MIT
"""Validated identifiers, intervals and SQL builders for TimescaleDB."""

from .access import DataAccessLayer, StatementExecutor, execute_statement, fetch_statement
from .aggregation import AggregationSpec
from .chunks import ChunkInfo, compress_chunk, drop_old_chunks, get_chunk_info
from .config import DatabaseRuntimeConfig, DatabaseSettings, HypertablePolicy, PostgresTLSConfig
from .connection import TimescaleConnection
from .continuous_aggregates import ContinuousAggregateConfig
from .exceptions import (
    DatabaseError,
    IdentifierRule,
    IntervalRule,
    InvalidIdentifier,
    InvalidInterval,
    RetryableDatabaseError,
    StatementExecutionError,
    ValidationError,
)
from .hypertable import Hypertable, hypertable
from .identifiers import DEFAULT_POLICY, RESERVED_WORDS, IdentifierPolicy, SqlIdentifier, validate_identifier
from .intervals import TimeInterval, TimeUnit
from .retry import RetryPolicy
from .statements import Statement
from .types import TimestampTz, ensure_utc, utc_now

__all__ = [
    "DEFAULT_POLICY",
    "RESERVED_WORDS",
    "AggregationSpec",
    "ChunkInfo",
    "ContinuousAggregateConfig",
    "DataAccessLayer",
    "DatabaseError",
    "DatabaseRuntimeConfig",
    "DatabaseSettings",
    "Hypertable",
    "HypertablePolicy",
    "IdentifierPolicy",
    "IdentifierRule",
    "IntervalRule",
    "InvalidIdentifier",
    "InvalidInterval",
    "PostgresTLSConfig",
    "RetryPolicy",
    "RetryableDatabaseError",
    "SqlIdentifier",
    "Statement",
    "StatementExecutionError",
    "StatementExecutor",
    "TimeInterval",
    "TimeUnit",
    "TimescaleConnection",
    "TimestampTz",
    "ValidationError",
    "compress_chunk",
    "drop_old_chunks",
    "ensure_utc",
    "execute_statement",
    "fetch_statement",
    "get_chunk_info",
    "hypertable",
    "utc_now",
    "validate_identifier",
]
