"""Configuration base classes and validation framework.

Every configuration object in the index browser (settings, connection details)
derives from :class:`Configuration`, which gives it:

- A ``validate()`` method returning a structured :class:`ConfigValidationResult`
- Dictionary round-tripping through ``to_dict()`` / ``from_dict()``
- ``validate_or_raise()`` for call sites that want an exception instead

Configuration objects are passed explicitly to the components that need them;
nothing in this package reads a process-wide settings singleton.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List


class ConfigurationError(Exception):
    """Root of the configuration error hierarchy."""

    pass


class ValidationError(ConfigurationError):
    """Raised when a configuration value is missing, out of range or malformed."""

    pass


class SerializationError(ConfigurationError):
    """Raised when a configuration cannot be converted to or from a dictionary."""

    pass


@dataclass
class ConfigValidationResult:
    """Outcome of validating a configuration object.

    Attributes:
        success: True if every check passed
        errors: Human-readable messages for each failed check
    """

    success: bool
    errors: List[str]

    def add_error(self, error: str) -> None:
        """Record a failed check and flip the result to unsuccessful."""
        self.errors.append(error)
        self.success = False

    @classmethod
    def success_result(cls) -> ConfigValidationResult:
        return cls(success=True, errors=[])


class Configuration(ABC):
    """Abstract base for every configuration type.

    Subclasses implement ``validate``, ``to_dict`` and ``from_dict``. The
    dictionary form must be JSON compatible so settings can be persisted and
    reloaded by whatever settings store the host application uses.
    """

    @abstractmethod
    def validate(self) -> ConfigValidationResult:
        """Check every value and report all problems found."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary.

        Raises:
            SerializationError: If the configuration cannot be serialized
        """
        pass

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> Configuration:
        """Build an instance from the output of ``to_dict``.

        Raises:
            SerializationError: If the data cannot be interpreted
        """
        pass

    def is_valid(self) -> bool:
        return self.validate().success

    def validate_or_raise(self) -> None:
        """Validate and raise :class:`ValidationError` listing every failure.

        Raises:
            ValidationError: If validation fails
        """
        result = self.validate()
        if not result.success:
            error_msg = f"{type(self).__name__} validation failed:\n" + "\n".join(
                f"  - {error}" for error in result.errors
            )
            raise ValidationError(error_msg)
