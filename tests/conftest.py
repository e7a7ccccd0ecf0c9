"""Shared test fixtures for minigql tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from tests.fakes.transport import RecordingTransport

ENDPOINT = "https://api.example.test/graphql"


@pytest.fixture
def endpoint() -> str:
    return ENDPOINT


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory for a RecordingTransport replying with the given body."""

    def _make(
        body: str | bytes | dict[str, Any] = b'{"data":{}}',
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> RecordingTransport:
        return RecordingTransport(body, status_code=status_code, headers=headers)

    return _make
