# SPDX-License-Identifier: MIT
"""SQLAlchemy expression helpers for TimescaleDB SQL functions.

Bucket widths are :class:`~timescale_sql.intervals.TimeInterval` values and
are rendered as ``INTERVAL '...'`` literals; everything else (columns,
timestamps, origins) flows through SQLAlchemy as bound parameters or column
references.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, Integer, Select, and_, func, literal_column, select
from sqlalchemy.sql.functions import Function
from sqlalchemy.types import ARRAY, BigInteger, Interval

from .inputs import parse_interval
from .intervals import TimeInterval
from .types import TimestampTz, ensure_utc

__all__ = [
    "bucketed_select",
    "first",
    "histogram",
    "interval_literal",
    "last",
    "time_bucket",
    "time_bucket_int",
    "time_bucket_str",
    "time_bucket_with_origin",
    "time_range",
]


def interval_literal(interval: TimeInterval) -> ColumnElement[Any]:
    """Render ``interval`` as an inline ``INTERVAL '...'`` SQL literal."""

    if not isinstance(interval, TimeInterval):
        raise TypeError("interval must be a TimeInterval")
    return literal_column(interval.to_sql(), type_=Interval())


def time_bucket(interval: TimeInterval, timestamp: Any) -> Function[Any]:
    """``time_bucket(INTERVAL '...', timestamp)``."""

    return func.time_bucket(interval_literal(interval), timestamp, type_=TimestampTz())


def time_bucket_str(interval: str, timestamp: Any) -> Function[Any]:
    return time_bucket(parse_interval(interval, operation="time_bucket"), timestamp)


def time_bucket_with_origin(interval: TimeInterval, timestamp: Any, origin: datetime) -> Function[Any]:
    return func.time_bucket(interval_literal(interval), timestamp, ensure_utc(origin), type_=TimestampTz())


def time_bucket_int(bucket_width: int, value: Any) -> Function[Any]:
    """Integer bucketing for hypertables partitioned on a numeric column."""

    if isinstance(bucket_width, bool) or not isinstance(bucket_width, int) or bucket_width <= 0:
        raise ValueError("bucket_width must be a positive integer")
    return func.time_bucket(bucket_width, value, type_=BigInteger())


def first(value: Any, time: Any) -> Function[Any]:
    """Value of ``value`` at the earliest ``time`` in the group."""

    return func.first(value, time)


def last(value: Any, time: Any) -> Function[Any]:
    """Value of ``value`` at the latest ``time`` in the group."""

    return func.last(value, time)


def histogram(value: Any, min_value: float, max_value: float, buckets: int) -> Function[Any]:
    if buckets <= 0:
        raise ValueError("buckets must be positive")
    if min_value >= max_value:
        raise ValueError("min_value must be lower than max_value")
    return func.histogram(value, min_value, max_value, buckets, type_=ARRAY(Integer()))


def time_range(column: Any, start: datetime, end: datetime) -> ColumnElement[bool]:
    """Half-open ``start <= column < end`` filter with bound timestamps."""

    start_utc, end_utc = ensure_utc(start), ensure_utc(end)
    if end_utc < start_utc:
        raise ValueError("end must not precede start")
    return and_(column >= start_utc, column < end_utc)


def bucketed_select(time_column: Any, interval: TimeInterval | str, *aggregates: Any) -> Select[Any]:
    """``SELECT time_bucket(...) AS bucket, <aggregates>`` grouped and ordered by bucket.

    ``interval`` text is validated before use.  Add ``.where(...)`` (for
    example :func:`time_range`) on the returned statement as needed.
    """

    bucket = time_bucket(parse_interval(interval, operation="time_bucket"), time_column).label("bucket")
    return select(bucket, *aggregates).group_by(bucket).order_by(bucket)
