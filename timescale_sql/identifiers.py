# SPDX-License-Identifier: MIT
"""Validated SQL identifiers.

:class:`SqlIdentifier` is the only way table, column and view names reach
SQL text.  Construction runs the full rule set, so any instance in existence
is safe to interpolate through :meth:`SqlIdentifier.escaped` in positions
where PostgreSQL does not accept bind parameters (DDL object names).

Rules, first failure wins:

1. the value is not empty;
2. it is at most 63 bytes long (PostgreSQL ``NAMEDATALEN - 1``);
3. it starts with an ASCII letter or an underscore;
4. every character is an ASCII letter, digit, underscore or dollar sign;
5. it is not a reserved word (case-insensitive).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import IdentifierRule, InvalidIdentifier

__all__ = [
    "DEFAULT_POLICY",
    "MAX_IDENTIFIER_LENGTH",
    "RESERVED_WORDS",
    "IdentifierPolicy",
    "SqlIdentifier",
    "coerce_identifier",
    "validate_identifier",
]

MAX_IDENTIFIER_LENGTH = 63

RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "select",
        "insert",
        "update",
        "delete",
        "drop",
        "create",
        "alter",
        "table",
        "index",
        "view",
        "procedure",
        "function",
        "trigger",
        "from",
        "where",
        "join",
        "union",
        "order",
        "group",
        "having",
        "and",
        "or",
        "not",
        "null",
        "true",
        "false",
    }
)

_LEADING = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_ALLOWED = _LEADING | frozenset("0123456789$")


@dataclass(frozen=True, slots=True)
class IdentifierPolicy:
    """Reserved-word set applied on top of the structural identifier rules.

    The built-in :data:`RESERVED_WORDS` are always part of the set; a policy
    can only grow it through :meth:`extend`.
    """

    reserved_words: frozenset[str] = field(default=RESERVED_WORDS)

    def __post_init__(self) -> None:
        words = frozenset(word.lower() for word in self.reserved_words) | RESERVED_WORDS
        object.__setattr__(self, "reserved_words", words)

    def extend(self, *words: str) -> "IdentifierPolicy":
        """Return a new policy that additionally rejects ``words``."""

        return IdentifierPolicy(self.reserved_words | frozenset(words))

    def check(self, identifier: str) -> None:
        """Raise :class:`InvalidIdentifier` naming the first violated rule."""

        if not isinstance(identifier, str):
            raise TypeError(f"identifier must be a str, not {type(identifier).__name__}")
        if not identifier:
            raise InvalidIdentifier("Identifier cannot be empty", rule=IdentifierRule.EMPTY)
        if len(identifier.encode("utf-8")) > MAX_IDENTIFIER_LENGTH:
            raise InvalidIdentifier(
                f"Identifier too long (max {MAX_IDENTIFIER_LENGTH} characters)",
                rule=IdentifierRule.TOO_LONG,
            )
        first = identifier[0]
        if first not in _LEADING:
            raise InvalidIdentifier(
                "Identifier must start with letter or underscore",
                rule=IdentifierRule.LEADING_CHARACTER,
                offending=first,
            )
        for char in identifier:
            if char not in _ALLOWED:
                raise InvalidIdentifier(
                    f"Invalid character {char!r} in identifier",
                    rule=IdentifierRule.CHARACTER,
                    offending=char,
                )
        if identifier.lower() in self.reserved_words:
            raise InvalidIdentifier(
                f"{identifier!r} is a reserved SQL keyword",
                rule=IdentifierRule.RESERVED_WORD,
                offending=identifier,
            )


DEFAULT_POLICY = IdentifierPolicy()


class SqlIdentifier:
    """An identifier that passed validation, with its quoted SQL rendering."""

    __slots__ = ("_value",)

    def __init__(self, identifier: str, *, policy: IdentifierPolicy | None = None) -> None:
        (policy or DEFAULT_POLICY).check(identifier)
        object.__setattr__(self, "_value", identifier)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def raw(self) -> str:
        return self._value

    def as_str(self) -> str:
        return self._value

    def escaped(self) -> str:
        """Return the value as a delimited identifier (``"name"``)."""

        return '"' + self._value.replace('"', '""') + '"'

    def __str__(self) -> str:
        return self.escaped()

    def __repr__(self) -> str:
        return f"SqlIdentifier({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SqlIdentifier):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((SqlIdentifier, self._value))

    def __reduce__(self) -> tuple[Any, ...]:
        return (SqlIdentifier, (self._value,))


def validate_identifier(identifier: str, *, policy: IdentifierPolicy | None = None) -> SqlIdentifier:
    """Validate ``identifier`` and wrap it."""

    return SqlIdentifier(identifier, policy=policy)


def coerce_identifier(value: "SqlIdentifier | str | Any") -> SqlIdentifier:
    """Accept an already validated identifier, a raw string, or a named object.

    SQLAlchemy ``Table`` and ``Column`` objects (anything exposing a string
    ``name``) are validated by name.
    """

    if isinstance(value, SqlIdentifier):
        return value
    if isinstance(value, str):
        return SqlIdentifier(value)
    name = getattr(value, "name", None)
    if isinstance(name, str):
        return SqlIdentifier(name)
    raise TypeError(f"cannot derive an identifier from {type(value).__name__}")

