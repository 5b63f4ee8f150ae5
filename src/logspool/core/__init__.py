"""Core flush engine: queue, batch buffer, connection, scheduler, appender."""

from __future__ import annotations

from .appender import Appender, AppenderResources, SubmitResult
from .batch import BatchBuffer
from .concurrency import EventQueue
from .connection import ConnectionState, ConnectResult, PushResult, SinkConnection
from .errors import (
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
    LogspoolError,
    SinkWriteError,
)
from .scheduler import FlushScheduler, ScheduledTask
from .settings import AppenderSettings, CoreSettings, RedisSettings, Settings
from .worker import FlushWorker

__all__ = [
    "Appender",
    "AppenderResources",
    "AppenderSettings",
    "AuthenticationError",
    "BatchBuffer",
    "CloseError",
    "ConfigurationError",
    "ConnectError",
    "ConnectResult",
    "ConnectionState",
    "CoreSettings",
    "DiagnosticsErrorHandler",
    "EnqueueError",
    "ErrorCategory",
    "ErrorHandler",
    "ErrorKind",
    "ErrorSeverity",
    "EventQueue",
    "FlushScheduler",
    "FlushWorker",
    "FormatError",
    "LogspoolError",
    "PushResult",
    "RedisSettings",
    "ScheduledTask",
    "Settings",
    "SinkConnection",
    "SinkWriteError",
    "SubmitResult",
]
