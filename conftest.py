"""
Root pytest configuration.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest


# Register logspool testing fixtures for all tests
pytest_plugins = ("logspool.testing.fixtures",)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests requiring a live Redis server",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take >1 second",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics() -> Generator[None, None, None]:
    """Reset diagnostics module state around each test.

    The diagnostics module caches ``internal_logging_enabled`` on first use
    and keeps a rate-limit table; both leak between tests otherwise.
    """
    import logspool.core.diagnostics as diag

    diag._reset_for_tests()
    yield
    diag._reset_for_tests()
