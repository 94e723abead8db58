# SPDX-License-Identifier: MIT
"""Continuous aggregate (incrementally refreshed materialized view) setup."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .access import StatementExecutor, execute_statement
from .identifiers import SqlIdentifier
from .inputs import parse_identifier, parse_interval
from .intervals import TimeInterval
from .statements import (
    Statement,
    add_continuous_aggregate_policy,
    create_continuous_aggregate,
    refresh_continuous_aggregate,
)
from .utils.logging import correlation_context, get_correlation_id

__all__ = ["ContinuousAggregateConfig"]


@dataclass(frozen=True, slots=True)
class ContinuousAggregateConfig:
    """View name, defining query and optional refresh policy.

    ``query`` is the body of ``CREATE MATERIALIZED VIEW ... AS <query>`` and
    is used verbatim.  It is never validated or escaped; callers must not
    build it from untrusted input.

    When ``refresh_interval`` is set a refresh policy is added after the view
    is created, with ``end_offset`` set to ``refresh_interval`` and, when
    ``refresh_lag`` is also set, ``schedule_interval`` set to ``refresh_lag``.
    """

    view_name: SqlIdentifier
    query: str
    refresh_lag: TimeInterval | None = None
    refresh_interval: TimeInterval | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.view_name, SqlIdentifier):
            raise TypeError("view_name must be a SqlIdentifier; use ContinuousAggregateConfig.new for raw names")
        if not self.query or not self.query.strip():
            raise ValueError("query must be a non-empty SQL SELECT statement")
        for name in ("refresh_lag", "refresh_interval"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, TimeInterval):
                raise TypeError(f"{name} must be a TimeInterval")

    @classmethod
    def new(cls, view_name: SqlIdentifier | str, query: str) -> "ContinuousAggregateConfig":
        return cls(parse_identifier(view_name, operation="create_continuous_aggregate"), query)

    def with_refresh_lag(self, lag: TimeInterval | str | timedelta) -> "ContinuousAggregateConfig":
        return replace(self, refresh_lag=parse_interval(lag, operation="create_continuous_aggregate"))

    def with_refresh_interval(self, interval: TimeInterval | str | timedelta) -> "ContinuousAggregateConfig":
        return replace(self, refresh_interval=parse_interval(interval, operation="create_continuous_aggregate"))

    def create_statement(self) -> Statement:
        return create_continuous_aggregate(self.view_name, self.query)

    def policy_statement(self) -> Statement | None:
        if self.refresh_interval is None:
            return None
        return add_continuous_aggregate_policy(self.view_name, self.refresh_interval, self.refresh_lag)

    def statements(self) -> tuple[Statement, ...]:
        """Return the view creation statement, followed by the policy if any."""

        policy = self.policy_statement()
        if policy is None:
            return (self.create_statement(),)
        return (self.create_statement(), policy)

    def create(self, executor: StatementExecutor) -> None:
        """Create the view and its policy, logged under one correlation id."""

        statements = self.statements()
        with correlation_context(get_correlation_id()):
            for statement in statements:
                execute_statement(executor, statement, operation="create_continuous_aggregate")

    def refresh(
        self,
        executor: StatementExecutor,
        window_start: datetime | None = None,
        window_end: datetime | None = None,
    ) -> None:
        """Refresh the materialized data between the two (UTC) bounds.

        TimescaleDB refuses to run this inside a transaction block, so
        ``executor`` must be in autocommit mode.
        """

        statement = refresh_continuous_aggregate(self.view_name, window_start, window_end)
        execute_statement(executor, statement, operation="refresh_continuous_aggregate")
