"""Configuration helpers for the index browser."""

from .base import ConfigurationError, ConfigValidationResult, SerializationError, ValidationError
from .settings import BrowserSettings, ConnectionConfig

__all__ = [
    "BrowserSettings",
    "ConnectionConfig",
    "ConfigurationError",
    "ConfigValidationResult",
    "SerializationError",
    "ValidationError",
]
