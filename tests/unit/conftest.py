# SPDX-License-Identifier: MIT
from __future__ import annotations

from typing import Any, Callable

import pytest


class RecordingExecutor:
    """Execution collaborator that records statements and returns canned rows."""

    def __init__(self, *, rows: list[Any] | None = None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple[str, str, Any]] = []

    def execute(self, query: str, params: Any = None) -> int:
        self.calls.append(("execute", query, params))
        if self.error is not None:
            raise self.error
        return 1

    def fetch_all(self, query: str, params: Any = None) -> list[Any]:
        self.calls.append(("fetch_all", query, params))
        if self.error is not None:
            raise self.error
        return list(self.rows)


@pytest.fixture
def make_executor() -> Callable[..., RecordingExecutor]:
    return RecordingExecutor


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()
