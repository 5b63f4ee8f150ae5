"""
Error taxonomy for the logspool flush engine.

Each failure category of the engine maps to one ``ErrorKind`` and one
exception class. Exceptions carry an ``ErrorContext`` with category and
severity so reporters can route them without string matching.

Only ``ConfigurationError`` is raised across a public operation
(``Appender.activate``). Every other failure is reported through an
``ErrorHandler`` and surfaced to callers as a result value.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from . import diagnostics


class ErrorCategory(str, Enum):
    QUEUE = "queue"
    SERIALIZATION = "serialization"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorKind(str, Enum):
    """Failure categories reported by the engine."""

    ENQUEUE = "enqueue"
    FORMAT = "format"
    CONNECT = "connect"
    WRITE = "write"
    CONFIGURATION = "configuration"
    CLOSE = "close"


@dataclass
class ErrorContext:
    category: ErrorCategory = ErrorCategory.SYSTEM
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    error_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: float = field(default_factory=time.time)
    metadata: dict[str, Any] = field(default_factory=dict)


class LogspoolError(Exception):
    """Base class for all logspool errors."""

    kind: ErrorKind = ErrorKind.WRITE
    default_category: ErrorCategory = ErrorCategory.SYSTEM
    default_severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        cause: BaseException | None = None,
        **metadata: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = ErrorContext(
            category=category or self.default_category,
            severity=severity or self.default_severity,
            metadata=dict(metadata),
        )
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "category": self.context.category.value,
            "severity": self.context.severity.value,
            "error_id": self.context.error_id,
        }
        if self.__cause__ is not None:
            data["cause"] = type(self.__cause__).__name__
        data.update(self.context.metadata)
        return data


class EnqueueError(LogspoolError):
    kind = ErrorKind.ENQUEUE
    default_category = ErrorCategory.QUEUE
    default_severity = ErrorSeverity.LOW


class FormatError(LogspoolError):
    kind = ErrorKind.FORMAT
    default_category = ErrorCategory.SERIALIZATION
    default_severity = ErrorSeverity.LOW


class ConnectError(LogspoolError):
    kind = ErrorKind.CONNECT
    default_category = ErrorCategory.NETWORK
    default_severity = ErrorSeverity.HIGH


class AuthenticationError(ConnectError):
    default_category = ErrorCategory.AUTHENTICATION


class SinkWriteError(LogspoolError):
    kind = ErrorKind.WRITE
    default_category = ErrorCategory.NETWORK
    default_severity = ErrorSeverity.HIGH


class ConfigurationError(LogspoolError):
    kind = ErrorKind.CONFIGURATION
    default_category = ErrorCategory.CONFIGURATION
    default_severity = ErrorSeverity.CRITICAL


class CloseError(LogspoolError):
    kind = ErrorKind.CLOSE
    default_category = ErrorCategory.SYSTEM
    default_severity = ErrorSeverity.MEDIUM


@runtime_checkable
class ErrorHandler(Protocol):
    """Receives human-readable notifications for every failure category.

    Implementations must not influence control flow; anything they raise is
    contained by the caller.
    """

    def error(
        self,
        kind: ErrorKind,
        message: str,
        exc: BaseException | None = None,
        **fields: Any,
    ) -> None:  # pragma: no cover - structural protocol
        ...


class DiagnosticsErrorHandler:
    """Default handler that forwards failures to the diagnostics channel."""

    def __init__(self, component: str = "appender") -> None:
        self._component = component

    def error(
        self,
        kind: ErrorKind,
        message: str,
        exc: BaseException | None = None,
        **fields: Any,
    ) -> None:
        payload: dict[str, Any] = {"kind": kind.value}
        if exc is not None:
            payload["error_type"] = type(exc).__name__
            payload["error"] = str(exc)
        payload.update(fields)
        diagnostics.warn(
            self._component,
            message,
            _rate_limit_key=f"{kind.value}:{message}",
            **payload,
        )


def report(
    handler: ErrorHandler,
    kind: ErrorKind,
    message: str,
    exc: BaseException | None = None,
    **fields: Any,
) -> None:
    """Invoke ``handler`` and contain anything it raises."""
    try:
        handler.error(kind, message, exc, **fields)
    except Exception as handler_exc:  # noqa: BLE001
        try:
            diagnostics.warn(
                "error-handler",
                "error handler raised",
                kind=kind.value,
                error_type=type(handler_exc).__name__,
            )
        except Exception:
            pass


__all__ = [
    "AuthenticationError",
    "CloseError",
    "ConfigurationError",
    "ConnectError",
    "DiagnosticsErrorHandler",
    "EnqueueError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorHandler",
    "ErrorKind",
    "ErrorSeverity",
    "FormatError",
    "LogspoolError",
    "SinkWriteError",
    "report",
]
