"""
Testing utilities for logspool.

Provides an in-memory list store, a recording error handler, protocol
validators, and pytest fixtures.

Example:
    from logspool.testing import MockListStore, validate_list_store

    def test_my_store():
        result = validate_list_store(MyStore())
        assert result.valid
"""

from .mocks import (
    MockListStore,
    MockListStoreConfig,
    RecordingErrorHandler,
    ReportedError,
)
from .validators import (
    ProtocolViolationError,
    ValidationResult,
    validate_formatter,
    validate_list_store,
)

__all__ = [
    # Mocks
    "MockListStore",
    "MockListStoreConfig",
    "RecordingErrorHandler",
    "ReportedError",
    # Validators
    "validate_list_store",
    "validate_formatter",
    "ValidationResult",
    "ProtocolViolationError",
]
