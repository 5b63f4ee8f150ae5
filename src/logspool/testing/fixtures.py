"""
Pytest fixtures for logspool tests.

Register with ``pytest_plugins = ("logspool.testing.fixtures",)``.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from ..core.appender import Appender
from ..core.settings import Settings
from .mocks import MockListStore, RecordingErrorHandler
from .validators import validate_formatter, validate_list_store


@pytest.fixture
def mock_store() -> MockListStore:
    """Fresh in-memory list store."""
    return MockListStore()


@pytest.fixture
def error_recorder() -> RecordingErrorHandler:
    """Error handler that records every report."""
    return RecordingErrorHandler()


@pytest.fixture
def appender_settings() -> Settings:
    """Settings with a key set and a long period so tests drive flushes."""
    return Settings(
        redis={"key": "test:logs"},
        appender={"period_ms": 60_000, "final_flush_timeout_seconds": 5.0},
    )


@pytest.fixture
def appender(
    appender_settings: Settings,
    mock_store: MockListStore,
    error_recorder: RecordingErrorHandler,
) -> Iterator[Appender]:
    """Active appender backed by ``mock_store``; closed after the test."""
    app = Appender(
        appender_settings,
        store=mock_store,
        error_handler=error_recorder,
    )
    app.activate()
    try:
        yield app
    finally:
        app.close()


@pytest.fixture
def assert_valid_list_store():
    """Fixture returning a list store validation helper."""

    def _assert(store) -> None:
        result = validate_list_store(store)
        result.raise_if_invalid()

    return _assert


@pytest.fixture
def assert_valid_formatter():
    """Fixture returning a formatter validation helper."""

    def _assert(formatter) -> None:
        result = validate_formatter(formatter)
        result.raise_if_invalid()

    return _assert
