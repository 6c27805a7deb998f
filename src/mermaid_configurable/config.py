"""Layered configuration for mermaid-configurable.

Three layers are merged key-by-key, later layers winning:

1. built-in defaults (``DEFAULT_CONFIG``),
2. the host configuration stored under ``PLUGIN_CONFIG_KEY``,
3. call-site overrides passed to a single render.

A ``None`` value in a later layer counts as unset.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Protocol

logger = logging.getLogger(__name__)

PLUGIN_CONFIG_KEY = "pluginsConfig.mermaid-configurable"

DEFAULT_CONFIG: Mapping[str, Any] = MappingProxyType(
    {
        "theme": "default",
        "securityLevel": "strict",
        "fontFamily": "Arial, sans-serif",
    }
)

SECURITY_LEVELS = ("strict", "loose", "antiscript", "sandbox")


class HostConfig(Protocol):
    """Host configuration store."""

    def get(self, key: str) -> Any:
        """Return the value stored under ``key``, or None."""
        ...


class HostLog(Protocol):
    """Host logging capability."""

    def info(self, message: str) -> None: ...


def merge_config(base: Mapping[str, Any], overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a new dict of ``base`` with the set keys of ``overrides`` applied on top.

    Neither argument is mutated.
    """
    merged = dict(base)
    if overrides:
        merged.update((key, value) for key, value in overrides.items() if value is not None)
    return merged


def as_overrides(value: Any, name: str) -> Mapping[str, Any] | None:
    """Pass mappings and None through; anything else is logged and treated as absent."""
    if value is None or isinstance(value, Mapping):
        return value
    logger.warning("ignoring %s: expected a mapping, got %s", name, type(value).__name__)
    return None


def resolve_config(host_value: Any) -> dict[str, Any]:
    """Merge a host configuration value over the built-in defaults.

    Anything that is not a mapping is treated as absent.
    """
    return merge_config(DEFAULT_CONFIG, as_overrides(host_value, PLUGIN_CONFIG_KEY))


def init_config(host_config: HostConfig | None, log: HostLog | None = None) -> dict[str, Any]:
    """Build the session configuration from the host store.

    Never raises: a missing store, a missing key or a failing lookup all
    degrade to the built-in defaults, and a failing host log is reported to
    the module logger. Emits one info entry through ``log`` (the module
    logger when ``log`` is None).
    """
    host_value = None
    if host_config is not None:
        try:
            host_value = host_config.get(PLUGIN_CONFIG_KEY)
        except Exception:
            logger.warning("lookup of %s failed; using defaults", PLUGIN_CONFIG_KEY, exc_info=True)

    effective = resolve_config(host_value)
    message = (
        f"mermaid-configurable initialized (theme={effective['theme']}, "
        f"securityLevel={effective['securityLevel']})"
    )
    try:
        (log or logger).info(message)
    except Exception:
        logger.warning("host log rejected the init message", exc_info=True)
    return effective


def font_size_px(config: Mapping[str, Any], default: float = 16.0) -> float:
    """Read ``fontSize`` as a pixel count; accepts numbers and strings like ``"14px"``."""
    value = config.get("fontSize")
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else default
    text = str(value).strip().lower().removesuffix("px").strip()
    try:
        size = float(text)
    except ValueError:
        return default
    return size if size > 0 else default
