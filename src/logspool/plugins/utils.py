"""
Plugin utilities for config parsing and name resolution.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def parse_plugin_config(
    config_cls: type[ConfigT],
    config: ConfigT | dict[str, Any] | None,
    **kwargs: Any,
) -> ConfigT:
    """Build a plugin config from a model instance, a dict, or keyword args.

    Keyword arguments override values supplied through ``config``.
    """
    if isinstance(config, config_cls):
        if not kwargs:
            return config
        return config_cls(**{**config.model_dump(), **kwargs})
    data: dict[str, Any] = dict(config or {})
    data.update(kwargs)
    return config_cls(**data)


def get_plugin_name(plugin: Any) -> str:
    """Get the canonical name of a plugin.

    Resolution order:
    1. plugin.name attribute (if non-empty string)
    2. Class name (fallback)
    """
    name = getattr(plugin, "name", None)
    if name and isinstance(name, str) and name.strip():
        result: str = name.strip()
        return result
    cls = plugin if isinstance(plugin, type) else plugin.__class__
    class_name: str = cls.__name__
    return class_name
