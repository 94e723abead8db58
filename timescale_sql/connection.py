# SPDX-License-Identifier: MIT
"""Single-connection executor for TimescaleDB."""

from __future__ import annotations

from typing import Any

from .access import Params, SupportsCursor, execute_command, fetch_command, run_on_cursor
from .config import DatabaseRuntimeConfig, DatabaseSettings, PostgresTLSConfig

__all__ = ["TimescaleConnection"]


class TimescaleConnection:
    """Own one DB-API connection and run statements on it.

    Attributes not defined here are looked up on the wrapped connection, so
    the facade can be used wherever the raw driver connection is expected.
    Connections opened by :meth:`from_settings` use autocommit, which
    TimescaleDB requires for continuous aggregate creation and refresh.
    """

    def __init__(self, connection: SupportsCursor) -> None:
        self._connection = connection

    @classmethod
    def establish(
        cls,
        dsn: str,
        tls: PostgresTLSConfig,
        *,
        autocommit: bool = True,
        runtime: DatabaseRuntimeConfig | None = None,
    ) -> "TimescaleConnection":
        """Validate ``dsn`` and ``tls`` as :class:`DatabaseSettings`, then connect."""

        settings = DatabaseSettings(dsn=dsn, tls=tls, runtime=runtime or DatabaseRuntimeConfig())
        return cls.from_settings(settings, autocommit=autocommit)

    @classmethod
    def from_settings(cls, settings: DatabaseSettings, *, autocommit: bool = True) -> "TimescaleConnection":
        import psycopg

        return cls(psycopg.connect(**settings.connect_kwargs(autocommit=autocommit)))

    @property
    def connection(self) -> SupportsCursor:
        return self._connection

    def execute(self, query: str, params: Params = None) -> int:
        return run_on_cursor(self._connection, execute_command(query, params), commit_on_success=True)

    def fetch_all(self, query: str, params: Params = None) -> list[Any]:
        return run_on_cursor(self._connection, fetch_command(query, params), commit_on_success=False)

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "TimescaleConnection":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def __getattr__(self, name: str) -> Any:
        if name == "_connection":
            raise AttributeError(name)
        return getattr(self._connection, name)
