"""Tests for the error taxonomy and error handler plumbing."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from logspool.core.errors import (
    AuthenticationError,
    CloseError,
    ConfigurationError,
    ConnectError,
    DiagnosticsErrorHandler,
    EnqueueError,
    ErrorCategory,
    ErrorHandler,
    ErrorKind,
    ErrorSeverity,
    FormatError,
    SinkWriteError,
    report,
)
from logspool.testing import RecordingErrorHandler


@pytest.mark.parametrize(
    "cls, kind, category",
    [
        (EnqueueError, ErrorKind.ENQUEUE, ErrorCategory.QUEUE),
        (FormatError, ErrorKind.FORMAT, ErrorCategory.SERIALIZATION),
        (ConnectError, ErrorKind.CONNECT, ErrorCategory.NETWORK),
        (AuthenticationError, ErrorKind.CONNECT, ErrorCategory.AUTHENTICATION),
        (SinkWriteError, ErrorKind.WRITE, ErrorCategory.NETWORK),
        (ConfigurationError, ErrorKind.CONFIGURATION, ErrorCategory.CONFIGURATION),
        (CloseError, ErrorKind.CLOSE, ErrorCategory.SYSTEM),
    ],
)
def test_each_error_maps_to_one_kind(cls, kind, category) -> None:
    err = cls("boom")
    assert err.kind is kind
    assert err.context.category is category


def test_context_and_to_dict() -> None:
    cause = OSError("reset")
    err = SinkWriteError(
        "push failed", cause=cause, severity=ErrorSeverity.CRITICAL, key="logs"
    )

    assert err.__cause__ is cause
    data = err.to_dict()
    assert data["kind"] == "write"
    assert data["severity"] == "critical"
    assert data["cause"] == "OSError"
    assert data["key"] == "logs"
    assert len(data["error_id"]) == 32


def test_diagnostics_handler_forwards_to_warn() -> None:
    handler = DiagnosticsErrorHandler(component="appender")
    assert isinstance(handler, ErrorHandler)

    with patch("logspool.core.diagnostics.warn") as mock_warn:
        handler.error(ErrorKind.WRITE, "push failed", ValueError("bad"), dropped=4)

    mock_warn.assert_called_once()
    args, kwargs = mock_warn.call_args
    assert args == ("appender", "push failed")
    assert kwargs["kind"] == "write"
    assert kwargs["error_type"] == "ValueError"
    assert kwargs["error"] == "bad"
    assert kwargs["dropped"] == 4
    assert kwargs["_rate_limit_key"] == "write:push failed"


def test_report_delivers_fields() -> None:
    recorder = RecordingErrorHandler()
    report(recorder, ErrorKind.CONNECT, "refused", None, purged=2)
    (entry,) = recorder.reports
    assert entry.kind is ErrorKind.CONNECT
    assert entry.fields == {"purged": 2}


def test_report_contains_handler_failures() -> None:
    class Broken:
        def error(self, kind, message, exc=None, **fields) -> None:
            raise RuntimeError("handler bug")

    with patch("logspool.core.diagnostics.warn") as mock_warn:
        report(Broken(), ErrorKind.FORMAT, "bad event")

    mock_warn.assert_called_once()
    assert mock_warn.call_args.kwargs["error_type"] == "RuntimeError"
