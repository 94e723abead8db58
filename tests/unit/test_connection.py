# SPDX-License-Identifier: MIT
from __future__ import annotations

import sys
from types import SimpleNamespace
from typing import Any

import pydantic
import pytest

from timescale_sql.access import StatementExecutor
from timescale_sql.config import DatabaseRuntimeConfig, DatabaseSettings, PostgresTLSConfig
from timescale_sql.connection import TimescaleConnection
from timescale_sql.hypertable import hypertable


class FakeCursor:
    def __init__(self, rows: list[Any]) -> None:
        self.rows = rows
        self.executed: list[tuple[str, Any]] = []
        self.rowcount = 3
        self.closed = False

    def execute(self, query: str, params: Any = None) -> None:
        self.executed.append((query, params))

    def fetchall(self) -> list[Any]:
        return self.rows

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, rows: list[Any] | None = None) -> None:
        self.cursors: list[FakeCursor] = []
        self.rows = rows or []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.info = "server 16"

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self.rows)
        self.cursors.append(cursor)
        return cursor

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


class _FakePsycopgModule(SimpleNamespace):
    def connect(self, **kwargs: Any) -> FakeConnection:
        self.kwargs = kwargs
        return FakeConnection()


@pytest.fixture()
def fake_psycopg(monkeypatch: pytest.MonkeyPatch) -> _FakePsycopgModule:
    module = _FakePsycopgModule()
    monkeypatch.setitem(sys.modules, "psycopg", module)
    return module


def test_facade_runs_statements_on_its_connection() -> None:
    raw = FakeConnection(rows=[("a",)])
    conn = TimescaleConnection(raw)
    assert isinstance(conn, StatementExecutor)

    hypertable("metrics", "timestamp").create(conn)
    assert raw.cursors[0].executed == [("SELECT create_hypertable(%s, %s);", ("metrics", "timestamp"))]
    assert raw.commits == 1
    assert raw.cursors[0].closed is True

    assert conn.fetch_all("SELECT 1") == [("a",)]
    assert raw.commits == 1


def test_facade_passes_attributes_through() -> None:
    raw = FakeConnection()
    conn = TimescaleConnection(raw)
    assert conn.connection is raw
    assert conn.info == "server 16"
    with conn:
        pass
    assert raw.closed is True


def test_establish_uses_tls_factory_with_autocommit(fake_psycopg: _FakePsycopgModule, tmp_path) -> None:
    tls = PostgresTLSConfig(ca_file=tmp_path / "ca.pem", cert_file=tmp_path / "client.crt", key_file=tmp_path / "client.key")
    settings = DatabaseSettings(dsn="postgresql://tsdb/metrics?sslmode=verify-full", tls=tls)

    conn = TimescaleConnection.from_settings(settings)

    assert isinstance(conn.connection, FakeConnection)
    assert fake_psycopg.kwargs["autocommit"] is True
    assert fake_psycopg.kwargs["conninfo"] == settings.dsn
    assert fake_psycopg.kwargs["sslrootcert"] == str(tls.ca_file)
    assert fake_psycopg.kwargs["application_name"] == "timescale-sql"
    assert "statement_timeout=30000" in fake_psycopg.kwargs["options"]


def test_establish_validates_before_connecting(fake_psycopg: _FakePsycopgModule, tmp_path) -> None:
    tls = PostgresTLSConfig(ca_file=tmp_path / "ca.pem", cert_file=tmp_path / "client.crt", key_file=tmp_path / "client.key")

    with pytest.raises(pydantic.ValidationError):
        TimescaleConnection.establish("postgresql://tsdb/metrics?sslmode=disable", tls)
    assert not hasattr(fake_psycopg, "kwargs")

    conn = TimescaleConnection.establish(
        "host=tsdb dbname=metrics sslmode=verify-ca",
        tls,
        autocommit=False,
        runtime=DatabaseRuntimeConfig(application_name="retention-job"),
    )
    assert isinstance(conn.connection, FakeConnection)
    assert fake_psycopg.kwargs["autocommit"] is False
    assert fake_psycopg.kwargs["application_name"] == "retention-job"
    assert fake_psycopg.kwargs["sslkey"] == str(tls.key_file)
