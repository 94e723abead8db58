# SPDX-License-Identifier: MIT
"""Time intervals restricted to a fixed unit vocabulary.

A :class:`TimeInterval` is either built from a count and a :class:`TimeUnit`
(always valid) or parsed from text by :meth:`TimeInterval.from_string`.
Rendering is canonical: ``"15m"``, ``"15 m"`` and ``"15 minute"`` all render as
``15 minutes``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from .exceptions import IntervalRule, InvalidInterval

__all__ = [
    "MAX_INTERVAL_LENGTH",
    "TimeInterval",
    "TimeUnit",
    "coerce_interval",
]

MAX_INTERVAL_LENGTH = 50
MAX_MAGNITUDE = 2**64 - 1

_ALLOWED = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789 .-_")
_DIGITS = re.compile(r"[0-9]+")
_COMPACT = re.compile(r"([0-9]+)([A-Za-z]+)")


class TimeUnit(str, Enum):
    """Supported interval units; the value is the canonical plural name."""

    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


_UNIT_ALIASES: dict[str, TimeUnit] = {
    "microsecond": TimeUnit.MICROSECONDS,
    "microseconds": TimeUnit.MICROSECONDS,
    "us": TimeUnit.MICROSECONDS,
    "millisecond": TimeUnit.MILLISECONDS,
    "milliseconds": TimeUnit.MILLISECONDS,
    "ms": TimeUnit.MILLISECONDS,
    "second": TimeUnit.SECONDS,
    "seconds": TimeUnit.SECONDS,
    "s": TimeUnit.SECONDS,
    "minute": TimeUnit.MINUTES,
    "minutes": TimeUnit.MINUTES,
    "m": TimeUnit.MINUTES,
    "hour": TimeUnit.HOURS,
    "hours": TimeUnit.HOURS,
    "h": TimeUnit.HOURS,
    "day": TimeUnit.DAYS,
    "days": TimeUnit.DAYS,
    "d": TimeUnit.DAYS,
    "week": TimeUnit.WEEKS,
    "weeks": TimeUnit.WEEKS,
    "w": TimeUnit.WEEKS,
    "month": TimeUnit.MONTHS,
    "months": TimeUnit.MONTHS,
    "year": TimeUnit.YEARS,
    "years": TimeUnit.YEARS,
    "y": TimeUnit.YEARS,
}

_FIXED_WIDTH: dict[TimeUnit, timedelta] = {
    TimeUnit.MICROSECONDS: timedelta(microseconds=1),
    TimeUnit.MILLISECONDS: timedelta(milliseconds=1),
    TimeUnit.SECONDS: timedelta(seconds=1),
    TimeUnit.MINUTES: timedelta(minutes=1),
    TimeUnit.HOURS: timedelta(hours=1),
    TimeUnit.DAYS: timedelta(days=1),
    TimeUnit.WEEKS: timedelta(weeks=1),
}


_EXACT_UNITS = (
    TimeUnit.WEEKS,
    TimeUnit.DAYS,
    TimeUnit.HOURS,
    TimeUnit.MINUTES,
    TimeUnit.SECONDS,
    TimeUnit.MILLISECONDS,
)


def _validate_interval_string(interval: str) -> None:
    if not interval:
        raise InvalidInterval("Interval cannot be empty", rule=IntervalRule.EMPTY)
    if len(interval.encode("utf-8")) > MAX_INTERVAL_LENGTH:
        raise InvalidInterval("Interval string too long", rule=IntervalRule.TOO_LONG)
    for char in interval:
        if char not in _ALLOWED:
            raise InvalidInterval(
                f"Invalid character {char!r} in interval",
                rule=IntervalRule.CHARACTER,
                offending=char,
            )


def _split(interval: str) -> tuple[str, str]:
    parts = interval.split()
    if len(parts) == 2:
        return parts[0], parts[1]
    if len(parts) == 1:
        compact = _COMPACT.fullmatch(parts[0])
        if compact is not None:
            return compact.group(1), compact.group(2)
    raise InvalidInterval("Interval must have format 'number unit'", rule=IntervalRule.FORMAT)


def _parse_magnitude(token: str) -> int:
    if not _DIGITS.fullmatch(token):
        raise InvalidInterval("Invalid numeric value", rule=IntervalRule.MAGNITUDE, offending=token)
    value = int(token)
    if value > MAX_MAGNITUDE:
        raise InvalidInterval("Numeric value out of range", rule=IntervalRule.MAGNITUDE, offending=token)
    return value


def _parse_unit(token: str) -> TimeUnit:
    unit = _UNIT_ALIASES.get(token.lower())
    if unit is None:
        raise InvalidInterval(f"Unknown time unit: {token}", rule=IntervalRule.UNIT, offending=token)
    return unit


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """A non-negative count of a single :class:`TimeUnit`."""

    value: int
    unit: TimeUnit

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("value must be an integer")
        if not 0 <= self.value <= MAX_MAGNITUDE:
            raise ValueError("value must fit in an unsigned 64-bit integer")
        if not isinstance(self.unit, TimeUnit):
            raise TypeError("unit must be a TimeUnit member")

    @classmethod
    def from_string(cls, interval: str) -> "TimeInterval":
        """Parse ``"<number> <unit>"`` (or the compact ``"<number><unit>"``)."""

        if not isinstance(interval, str):
            raise TypeError(f"interval must be a str, not {type(interval).__name__}")
        _validate_interval_string(interval)
        magnitude, unit = _split(interval)
        return cls(_parse_magnitude(magnitude), _parse_unit(unit))

    @classmethod
    def from_timedelta(cls, value: timedelta) -> "TimeInterval":
        """Express ``value`` in the largest unit that represents it exactly."""

        if value < timedelta(0):
            raise ValueError("negative durations cannot be expressed as an interval")
        total = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
        for unit in _EXACT_UNITS:
            width = _FIXED_WIDTH[unit] // timedelta(microseconds=1)
            if total and total % width == 0:
                return cls(total // width, unit)
        return cls(total, TimeUnit.MICROSECONDS)

    @classmethod
    def from_microseconds(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.MICROSECONDS)

    @classmethod
    def from_milliseconds(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.MILLISECONDS)

    @classmethod
    def from_seconds(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.SECONDS)

    @classmethod
    def from_minutes(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.MINUTES)

    @classmethod
    def from_hours(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.HOURS)

    @classmethod
    def from_days(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.DAYS)

    @classmethod
    def from_weeks(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.WEEKS)

    @classmethod
    def from_months(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.MONTHS)

    @classmethod
    def from_years(cls, value: int) -> "TimeInterval":
        return cls(value, TimeUnit.YEARS)

    def to_postgres_interval(self) -> str:
        """Return the canonical ``"<value> <plural unit>"`` literal body."""

        return f"{self.value} {self.unit.value}"

    def to_sql(self) -> str:
        """Return a complete ``INTERVAL '...'`` literal."""

        return f"INTERVAL '{self.to_postgres_interval()}'"

    def to_timedelta(self) -> timedelta:
        """Convert fixed-width intervals; months and years have no fixed width."""

        width = _FIXED_WIDTH.get(self.unit)
        if width is None:
            raise ValueError(f"{self.unit.value} do not have a fixed duration")
        return width * self.value

    def __str__(self) -> str:
        return self.to_postgres_interval()


def coerce_interval(value: "TimeInterval | str | timedelta") -> TimeInterval:
    """Accept a validated interval, interval text or a :class:`timedelta`."""

    if isinstance(value, TimeInterval):
        return value
    if isinstance(value, str):
        return TimeInterval.from_string(value)
    if isinstance(value, timedelta):
        return TimeInterval.from_timedelta(value)
    raise TypeError(f"cannot derive an interval from {type(value).__name__}")
