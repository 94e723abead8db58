# SPDX-License-Identifier: MIT
"""Typed configuration for connections and declarative hypertable policies."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .access import StatementExecutor, execute_statement
from .hypertable import Hypertable
from .identifiers import SqlIdentifier
from .intervals import TimeInterval
from .statements import Statement
from .utils.logging import correlation_context, get_correlation_id

__all__ = [
    "SECURE_SSLMODES",
    "DatabaseRuntimeConfig",
    "DatabaseSettings",
    "HypertablePolicy",
    "PostgresTLSConfig",
]


SECURE_SSLMODES = frozenset({"require", "verify-ca", "verify-full"})
_DSN_SCHEMES = frozenset({"postgres", "postgresql"})


def _dsn_sslmode(dsn: str) -> str | None:
    """Return the ``sslmode`` of a URI or ``key=value`` connection string."""

    if "://" in dsn:
        scheme = urlsplit(dsn).scheme.lower()
        if scheme not in _DSN_SCHEMES:
            raise ValueError(f"TimescaleDB DSNs must use the postgresql scheme, not {scheme!r}")
        # libpq keeps the last occurrence of a repeated option
        values = parse_qs(urlsplit(dsn).query, keep_blank_values=True).get("sslmode") or [""]
        return values[-1] or None
    options = dict(part.split("=", 1) for part in dsn.split() if "=" in part)
    return options.get("sslmode") or None


class PostgresTLSConfig(BaseModel):
    """TLS material required for PostgreSQL client authentication."""

    ca_file: Path
    cert_file: Path
    key_file: Path


class DatabaseRuntimeConfig(BaseModel):
    """Session level runtime options applied to every connection."""

    application_name: str = Field(
        "timescale-sql",
        min_length=1,
        description="Identifier visible in PostgreSQL monitoring views for tracking client activity.",
    )
    connect_timeout_seconds: PositiveFloat = Field(
        5.0,
        description="Timeout, in seconds, for establishing new database connections.",
    )
    statement_timeout_ms: PositiveInt = Field(
        30_000,
        description="Upper bound, in milliseconds, for individual statements. DDL on large hypertables can be slow.",
    )
    target_session_attrs: str | None = Field(
        default=None,
        description="Optional libpq target_session_attrs setting (e.g. 'read-write').",
    )

    def connect_kwargs(self) -> dict[str, object]:
        """Return keyword arguments understood by ``psycopg.connect``."""

        options = [f"-c statement_timeout={int(self.statement_timeout_ms)}", "-c timezone=UTC"]
        kwargs: dict[str, object] = {
            "connect_timeout": int(self.connect_timeout_seconds),
            "application_name": self.application_name,
            "options": " ".join(options),
        }
        if self.target_session_attrs is not None:
            kwargs["target_session_attrs"] = self.target_session_attrs
        return kwargs


class DatabaseSettings(BaseSettings):
    """Connection settings, read from ``TIMESCALE_*`` environment variables.

    The DSN must declare one of :data:`SECURE_SSLMODES` and client
    certificates are mandatory.
    """

    dsn: str = Field(..., description="Connection string of the TimescaleDB instance.")
    tls: PostgresTLSConfig = Field(..., description="Client certificate material presented to the server.")
    runtime: DatabaseRuntimeConfig = Field(default_factory=DatabaseRuntimeConfig)

    model_config = SettingsConfigDict(env_prefix="TIMESCALE_", env_nested_delimiter="__", extra="ignore")

    @field_validator("dsn")
    @classmethod
    def _require_secure_sslmode(cls, value: str) -> str:
        sslmode = _dsn_sslmode(value)
        if sslmode is None:
            raise ValueError("the DSN must declare an sslmode")
        if sslmode not in SECURE_SSLMODES:
            raise ValueError(f"sslmode {sslmode!r} is not permitted; use one of {sorted(SECURE_SSLMODES)}")
        return value

    def connect_kwargs(self, *, autocommit: bool = True) -> dict[str, object]:
        """Return every keyword argument ``psycopg.connect`` needs."""

        return {
            "conninfo": self.dsn,
            "sslrootcert": str(self.tls.ca_file),
            "sslcert": str(self.tls.cert_file),
            "sslkey": str(self.tls.key_file),
            "autocommit": autocommit,
            **self.runtime.connect_kwargs(),
        }


class HypertablePolicy(BaseModel):
    """Declarative hypertable setup: partitioning, compression and retention.

    Identifiers and intervals are validated when the model is built, and
    intervals are stored in canonical form (``"7d"`` becomes ``"7 days"``).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    table: str
    time_column: str
    chunk_time_interval: str | None = None
    compress_after: str | None = None
    drop_after: str | None = None

    @field_validator("table", "time_column")
    @classmethod
    def _validate_identifier(cls, value: str) -> str:
        return SqlIdentifier(value).as_str()

    @field_validator("chunk_time_interval", "compress_after", "drop_after")
    @classmethod
    def _validate_interval(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return TimeInterval.from_string(value).to_postgres_interval()

    def hypertable(self) -> Hypertable:
        return Hypertable(SqlIdentifier(self.table), SqlIdentifier(self.time_column))

    def statements(self) -> tuple[Statement, ...]:
        """Return create, compression and retention statements in execution order."""

        hypertable = self.hypertable()
        result: list[Statement] = []
        if self.chunk_time_interval is None:
            result.append(hypertable.create_statement())
        else:
            result.append(hypertable.create_with_interval_statement(TimeInterval.from_string(self.chunk_time_interval)))
        if self.compress_after is not None:
            result.append(hypertable.compression_policy_statement(TimeInterval.from_string(self.compress_after)))
        if self.drop_after is not None:
            result.append(hypertable.retention_policy_statement(TimeInterval.from_string(self.drop_after)))
        return tuple(result)

    def apply(self, executor: StatementExecutor) -> None:
        """Execute :meth:`statements` in order, stopping at the first failure.

        All statements are logged under one correlation id.
        """

        statements = self.statements()
        with correlation_context(get_correlation_id()):
            for statement in statements:
                execute_statement(executor, statement, operation="apply_hypertable_policy")
