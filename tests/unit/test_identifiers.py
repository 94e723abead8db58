# SPDX-License-Identifier: MIT
from __future__ import annotations

import pickle

import pytest

from timescale_sql.exceptions import IdentifierRule, InvalidIdentifier, ValidationError
from timescale_sql.identifiers import (
    DEFAULT_POLICY,
    RESERVED_WORDS,
    IdentifierPolicy,
    SqlIdentifier,
    coerce_identifier,
    validate_identifier,
)


@pytest.mark.parametrize("name", ["metrics", "_private", "Sensor_Data", "col$1", "a", "x" * 63])
def test_valid_identifiers_are_accepted(name: str) -> None:
    identifier = SqlIdentifier(name)
    assert identifier.as_str() == name
    assert identifier.raw == name
    assert identifier.escaped() == f'"{name}"'
    assert str(identifier) == f'"{name}"'


@pytest.mark.parametrize(
    ("raw", "rule", "offending"),
    [
        ("", IdentifierRule.EMPTY, None),
        ("a" * 64, IdentifierRule.TOO_LONG, None),
        ("123abc", IdentifierRule.LEADING_CHARACTER, "1"),
        ("$price", IdentifierRule.LEADING_CHARACTER, "$"),
        ("bad-name", IdentifierRule.CHARACTER, "-"),
        ("with space", IdentifierRule.CHARACTER, " "),
        ('quo"te', IdentifierRule.CHARACTER, '"'),
        ("café", IdentifierRule.CHARACTER, "é"),
        ("select", IdentifierRule.RESERVED_WORD, "select"),
        ("DROP", IdentifierRule.RESERVED_WORD, "DROP"),
        ("Null", IdentifierRule.RESERVED_WORD, "Null"),
    ],
)
def test_rejections_name_the_violated_rule(raw: str, rule: IdentifierRule, offending: str | None) -> None:
    with pytest.raises(InvalidIdentifier) as excinfo:
        SqlIdentifier(raw)
    assert excinfo.value.rule is rule
    assert excinfo.value.offending == offending
    assert str(excinfo.value).startswith("Invalid SQL identifier: ")


def test_rules_apply_in_order() -> None:
    # too long wins over the bad leading character
    with pytest.raises(InvalidIdentifier) as excinfo:
        SqlIdentifier("1" * 64)
    assert excinfo.value.rule is IdentifierRule.TOO_LONG

    # leading character wins over later bad characters
    with pytest.raises(InvalidIdentifier) as excinfo:
        SqlIdentifier("; DROP TABLE x; --")
    assert excinfo.value.rule is IdentifierRule.LEADING_CHARACTER


def test_length_is_measured_in_bytes() -> None:
    with pytest.raises(InvalidIdentifier) as excinfo:
        SqlIdentifier("a" + "é" * 32)
    assert excinfo.value.rule is IdentifierRule.TOO_LONG


def test_injection_payloads_are_rejected() -> None:
    for payload in ("x; DROP TABLE x; --", 'metrics"; DROP TABLE x; --', "metrics--", "a/*b*/"):
        with pytest.raises(InvalidIdentifier):
            SqlIdentifier(payload)


def test_reserved_words_only_match_exactly() -> None:
    assert SqlIdentifier("selection").as_str() == "selection"
    assert SqlIdentifier("order_id").as_str() == "order_id"


def test_invalid_identifier_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        SqlIdentifier("")
    assert issubclass(InvalidIdentifier, ValidationError)


def test_non_string_input_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        SqlIdentifier(42)  # type: ignore[arg-type]


def test_identifier_is_immutable_and_hashable() -> None:
    identifier = SqlIdentifier("metrics")
    with pytest.raises(AttributeError):
        identifier._value = "drop"  # type: ignore[misc]
    assert identifier == SqlIdentifier("metrics")
    assert identifier != SqlIdentifier("other")
    assert len({identifier, SqlIdentifier("metrics")}) == 1
    assert pickle.loads(pickle.dumps(identifier)) == identifier


def test_policy_can_only_extend_reserved_words() -> None:
    policy = DEFAULT_POLICY.extend("Limit", "offset")
    assert {"limit", "offset"} <= policy.reserved_words
    assert RESERVED_WORDS <= policy.reserved_words
    assert RESERVED_WORDS <= IdentifierPolicy(frozenset({"only"})).reserved_words

    with pytest.raises(InvalidIdentifier) as excinfo:
        SqlIdentifier("LIMIT", policy=policy)
    assert excinfo.value.rule is IdentifierRule.RESERVED_WORD
    assert SqlIdentifier("limit").as_str() == "limit"


def test_validate_and_coerce_helpers() -> None:
    assert validate_identifier("metrics") == SqlIdentifier("metrics")
    existing = SqlIdentifier("metrics")
    assert coerce_identifier(existing) is existing
    assert coerce_identifier("metrics") == existing

    class Named:
        name = "metrics"

    assert coerce_identifier(Named()) == existing
    with pytest.raises(TypeError):
        coerce_identifier(3.5)
