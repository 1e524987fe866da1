"""Settings and connection configuration for the index browser.

This module provides:
- BrowserSettings: page size, search debounce window and superseded-request
  cancellation, injected into the search session at construction
- ConnectionConfig: URL, API key and timeout used to build a search backend

Both support environment loading with explicit parameters taking precedence,
and dictionary loading where saved values are merged over defaults (unknown
keys such as UI theme preferences are ignored).
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from ..constants import DEFAULT_CONNECTION_TIMEOUT, DEFAULT_DEBOUNCE_MS, DEFAULT_PAGE_SIZE
from .base import Configuration, ConfigValidationResult, SerializationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise SerializationError(f"Environment variable {name} must be an integer, got {raw!r}") from e


def _env_bool(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in _TRUE_VALUES


class BrowserSettings(Configuration):
    """Search behaviour settings.

    Example usage:
        settings = BrowserSettings(default_page_size=50)
        settings = BrowserSettings.from_environment()
        settings = BrowserSettings.from_dict({"searchDebounceMs": 250})
    """

    # Key names used by the settings store of the desktop application.
    _STORE_KEYS = {
        "default_page_size": "defaultPageSize",
        "search_debounce_ms": "searchDebounceMs",
        "cancel_superseded": "cancelSuperseded",
    }

    def __init__(
        self,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        search_debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        cancel_superseded: bool = True,
    ):
        """Initialize settings.

        Args:
            default_page_size: Results per page, must be > 0
            search_debounce_ms: Quiet period before a text edit is dispatched, >= 0
            cancel_superseded: Cancel in-flight searches once a newer one is dispatched
        """
        self.default_page_size = default_page_size
        self.search_debounce_ms = search_debounce_ms
        self.cancel_superseded = cancel_superseded

    @property
    def debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult.success_result()

        if isinstance(self.default_page_size, bool) or not isinstance(self.default_page_size, int):
            result.add_error("defaultPageSize must be an integer")
        elif self.default_page_size <= 0:
            result.add_error(f"defaultPageSize must be greater than 0, got {self.default_page_size}")

        if isinstance(self.search_debounce_ms, bool) or not isinstance(self.search_debounce_ms, int):
            result.add_error("searchDebounceMs must be an integer")
        elif self.search_debounce_ms < 0:
            result.add_error(f"searchDebounceMs cannot be negative, got {self.search_debounce_ms}")

        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "defaultPageSize": self.default_page_size,
            "searchDebounceMs": self.search_debounce_ms,
            "cancelSuperseded": self.cancel_superseded,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BrowserSettings:
        """Merge saved settings over the defaults.

        Accepts both the store's camelCase keys and attribute names.

        Raises:
            SerializationError: If data is not a mapping
        """
        if not isinstance(data, dict):
            raise SerializationError(f"Settings must be a dictionary, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for attr, store_key in cls._STORE_KEYS.items():
            if store_key in data:
                values[attr] = data[store_key]
            elif attr in data:
                values[attr] = data[attr]
        return cls(**values)

    @classmethod
    def from_environment(cls) -> BrowserSettings:
        """Read INDEX_BROWSER_PAGE_SIZE, INDEX_BROWSER_DEBOUNCE_MS and
        INDEX_BROWSER_CANCEL_SUPERSEDED; unset variables fall back to defaults."""
        return cls.with_defaults()

    @classmethod
    def with_defaults(cls, **kwargs) -> BrowserSettings:
        """Explicit keyword arguments > environment variables > defaults."""
        env_values = {
            "default_page_size": _env_int("INDEX_BROWSER_PAGE_SIZE"),
            "search_debounce_ms": _env_int("INDEX_BROWSER_DEBOUNCE_MS"),
            "cancel_superseded": _env_bool("INDEX_BROWSER_CANCEL_SUPERSEDED"),
        }
        values = {key: value for key, value in env_values.items() if value is not None}
        values.update(kwargs)
        return cls(**values)

    def __repr__(self) -> str:
        return (
            f"BrowserSettings(default_page_size={self.default_page_size}, "
            f"search_debounce_ms={self.search_debounce_ms}, "
            f"cancel_superseded={self.cancel_superseded})"
        )


class ConnectionConfig(Configuration):
    """Connection details for a Typesense server."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_CONNECTION_TIMEOUT,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        """URL with an explicit port, defaulting to 443/80 by scheme."""
        parsed = urlparse(self.url or "")
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return f"{parsed.scheme}://{parsed.hostname}:{port}"

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult.success_result()

        if not self.url or not self.url.strip():
            result.add_error("Server URL is required")
        elif not (self.url.startswith("http://") or self.url.startswith("https://")):
            result.add_error("Server URL must start with 'http://' or 'https://' (e.g., 'http://localhost:8108')")
        elif not urlparse(self.url).hostname:
            result.add_error("Server URL must specify a hostname")

        if not self.api_key or not self.api_key.strip():
            result.add_error("API key is required")

        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            result.add_error(f"Timeout must be a positive number of seconds, got {self.timeout!r}")

        return result

    def to_dict(self) -> Dict[str, Any]:
        # api_key is never persisted.
        result: Dict[str, Any] = {"timeout": self.timeout}
        if self.url is not None:
            result["url"] = self.url
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConnectionConfig:
        if not isinstance(data, dict):
            raise SerializationError(f"Connection config must be a dictionary, got {type(data).__name__}")
        try:
            return cls(
                url=data.get("url"),
                api_key=data.get("api_key"),
                timeout=float(data.get("timeout", DEFAULT_CONNECTION_TIMEOUT)),
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to deserialize ConnectionConfig: {e}") from e

    @classmethod
    def from_environment(cls) -> ConnectionConfig:
        """Read TYPESENSE_URL, TYPESENSE_API_KEY and TYPESENSE_TIMEOUT."""
        timeout_raw = os.environ.get("TYPESENSE_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_CONNECTION_TIMEOUT
        except ValueError as e:
            raise SerializationError(f"TYPESENSE_TIMEOUT must be a number, got {timeout_raw!r}") from e
        return cls(
            url=os.environ.get("TYPESENSE_URL"),
            api_key=os.environ.get("TYPESENSE_API_KEY"),
            timeout=timeout,
        )

    def __repr__(self) -> str:
        masked = "***" if self.api_key else None
        return f"ConnectionConfig(url={self.url!r}, api_key={masked!r}, timeout={self.timeout})"
