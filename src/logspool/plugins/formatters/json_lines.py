"""
JSON formatter for mapping events, serialized with orjson.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

import orjson
from pydantic import BaseModel, ConfigDict, Field

from ..utils import parse_plugin_config

__all__ = ["JsonLinesFormatter", "JsonLinesFormatterConfig"]


def _default(obj: Any) -> Any:
    """Serializer hook for types orjson does not handle natively."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if isinstance(obj, BaseException):
        return f"{type(obj).__name__}: {obj}"
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class JsonLinesFormatterConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    add_timestamp: bool = Field(
        default=True,
        description="Add an ISO-8601 UTC 'timestamp' when the event has none",
    )
    static_fields: dict[str, Any] = Field(
        default_factory=dict,
        description="Fields merged into every event (event values win)",
    )
    sort_keys: bool = False


class JsonLinesFormatter:
    """Render mapping events as one compact JSON document each."""

    name = "json-lines"

    def __init__(
        self,
        config: JsonLinesFormatterConfig | dict | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = parse_plugin_config(JsonLinesFormatterConfig, config, **kwargs)
        option = orjson.OPT_NON_STR_KEYS
        if self._config.sort_keys:
            option |= orjson.OPT_SORT_KEYS
        self._option = option

    def format(self, event: Any) -> bytes:
        if isinstance(event, Mapping):
            payload: dict[str, Any] = {**self._config.static_fields, **event}
        else:
            payload = {**self._config.static_fields, "message": str(event)}
        if self._config.add_timestamp and "timestamp" not in payload:
            payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        return orjson.dumps(payload, default=_default, option=self._option)
