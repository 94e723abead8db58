# SPDX-License-Identifier: MIT
from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from timescale_sql.aggregation import AggregationSpec
from timescale_sql.chunks import drop_old_chunks, get_chunk_info
from timescale_sql.exceptions import InvalidIdentifier, InvalidInterval
from timescale_sql.hypertable import hypertable
from timescale_sql.identifiers import SqlIdentifier
from timescale_sql.inputs import parse_identifier, parse_interval
from timescale_sql.intervals import TimeInterval


def _rejections(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [record for record in caplog.records if record.name == "timescale_sql.inputs"]


def test_valid_input_is_parsed_silently(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG):
        assert parse_identifier("metrics", operation="hypertable") == SqlIdentifier("metrics")
        assert parse_interval("15m", operation="time_bucket") == TimeInterval.from_minutes(15)
    assert _rejections(caplog) == []


def test_rejected_interval_is_logged_and_reraised(executor, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG):
        with pytest.raises(InvalidInterval) as excinfo:
            hypertable("metrics", "ts").add_retention_policy_str(executor, "1 parsec")

    assert executor.calls == []
    [record] = _rejections(caplog)
    assert record.levelno == logging.WARNING
    assert record.extra_fields["operation"] == "add_retention_policy"
    assert record.extra_fields["rule"] == "unit"
    assert record.extra_fields["offending"] == "parsec"
    assert record.extra_fields["error_type"] == "InvalidInterval"
    assert excinfo.value.offending == "parsec"


def test_rejected_identifier_is_logged_without_raw_input(executor, caplog: pytest.LogCaptureFixture) -> None:
    raw = "metrics; DROP TABLE users"
    with caplog.at_level(logging.DEBUG):
        with pytest.raises(InvalidIdentifier):
            get_chunk_info(executor, raw)

    assert executor.calls == []
    [record] = _rejections(caplog)
    assert record.extra_fields["operation"] == "list_chunks"
    assert record.extra_fields["rule"] == "character"
    assert record.extra_fields["offending"] == ";"
    assert raw not in record.getMessage()
    assert raw not in str(record.extra_fields)


@pytest.mark.parametrize(
    "call",
    [
        lambda executor: drop_old_chunks(executor, "", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        lambda executor: AggregationSpec.from_raw("metrics", "ts", "select", "1 hour"),
        lambda executor: hypertable("metrics", "ts").create_with_interval_str(executor, "1"),
    ],
)
def test_every_string_entry_point_logs_rejections(call, executor, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG):
        with pytest.raises((InvalidIdentifier, InvalidInterval)):
            call(executor)
    assert len(_rejections(caplog)) == 1
    assert executor.calls == []
