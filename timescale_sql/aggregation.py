# SPDX-License-Identifier: MIT
"""Bucketed average/sum/count queries over a single measure column."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .identifiers import SqlIdentifier
from .inputs import logged_rejection
from .intervals import TimeInterval
from .statements import Statement

__all__ = ["AggregationKind", "AggregationSpec"]

AggregationKind = Literal["avg", "sum", "count"]


@dataclass(frozen=True, slots=True)
class AggregationSpec:
    """Table, time column, value column and bucket width of an aggregation."""

    table: SqlIdentifier
    time_column: SqlIdentifier
    value_column: SqlIdentifier
    bucket_interval: TimeInterval

    def __post_init__(self) -> None:
        for name in ("table", "time_column", "value_column"):
            if not isinstance(getattr(self, name), SqlIdentifier):
                raise TypeError(f"{name} must be a SqlIdentifier; use AggregationSpec.from_raw for raw names")
        if not isinstance(self.bucket_interval, TimeInterval):
            raise TypeError("bucket_interval must be a TimeInterval; use AggregationSpec.from_raw for text")

    @classmethod
    def from_raw(cls, table: str, time_column: str, value_column: str, bucket_interval: str) -> "AggregationSpec":
        """Validate every argument, failing on the first invalid one."""

        with logged_rejection("aggregation"):
            return cls(
                SqlIdentifier(table),
                SqlIdentifier(time_column),
                SqlIdentifier(value_column),
                TimeInterval.from_string(bucket_interval),
            )

    def _query(self, aggregate: str, alias: str) -> str:
        return "\n".join(
            [
                f"SELECT time_bucket({self.bucket_interval.to_sql()}, {self.time_column.escaped()}) AS bucket, "
                f"{aggregate} AS {alias}",
                f"FROM {self.table.escaped()}",
                "GROUP BY bucket",
                "ORDER BY bucket",
            ]
        )

    def avg_query(self) -> str:
        return self._query(f"avg({self.value_column.escaped()})", "average")

    def sum_query(self) -> str:
        return self._query(f"sum({self.value_column.escaped()})", "total")

    def count_query(self) -> str:
        return self._query("count(*)", "count")

    def query(self, kind: AggregationKind) -> str:
        builders = {"avg": self.avg_query, "sum": self.sum_query, "count": self.count_query}
        try:
            builder = builders[kind]
        except KeyError:
            raise ValueError(f"unsupported aggregation {kind!r}") from None
        return builder()

    def statement(self, kind: AggregationKind) -> Statement:
        return Statement(self.query(kind))
