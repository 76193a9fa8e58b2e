"""Exception hierarchy for freelan.

Every failure raised while resolving the startup configuration derives from
FreelanError, so the entry point can report any of them with one handler.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class FreelanError(Exception):
    """Base exception for all freelan errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize freelan error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(FreelanError):
    """Configuration resolution errors."""


class MissingRequiredOptionError(ConfigurationError):
    """A required option resolved to no value."""

    def __init__(self, name: str):
        """Initialize with the name of the missing option."""
        super().__init__(f"the option '{name}' is required but missing")
        self.name = name


class DuplicateOptionDescriptorError(ConfigurationError):
    """Two option descriptors share the same name.

    This is a programming defect in the option tables, never a user error.
    """

    def __init__(self, name: str):
        """Initialize with the duplicated option name."""
        super().__init__(f"option '{name}' is declared more than once")
        self.name = name


class FileUnreadableError(ConfigurationError):
    """An explicitly requested configuration file cannot be read."""

    def __init__(self, path: str | Path):
        """Initialize with the offending path."""
        super().__init__(f"can not read configuration file: {path}")
        self.path = Path(path)


class ConfigurationFileError(ConfigurationError):
    """A configuration file could be read but not parsed."""

    def __init__(self, path: str | Path, reason: str):
        """Initialize with the file path and the parser's reason."""
        super().__init__(f"invalid configuration file {path}: {reason}")
        self.path = Path(path)
        self.reason = reason


class InvalidOptionValueError(ConfigurationError):
    """An option value could not be converted to its domain type."""

    expected = "a valid value"

    def __init__(self, name: str, value: str, reason: str | None = None):
        """Initialize with the option name and the rejected value."""
        message = f"\"{value}\" is not {self.expected} for option '{name}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.name = name
        self.value = value


class InvalidEnumValueError(InvalidOptionValueError):
    """Value is not one of the accepted enumeration tokens."""

    expected = "an accepted value"

    def __init__(self, name: str, value: str, choices: tuple[str, ...] = ()):
        """Initialize with the accepted choices, if known."""
        reason = f"expected one of {', '.join(choices)}" if choices else None
        super().__init__(name, value, reason)
        self.choices = choices


class InvalidEndpointError(InvalidOptionValueError):
    """Value is not a host:port endpoint."""

    expected = "a valid endpoint"


class InvalidAddressPrefixError(InvalidOptionValueError):
    """Value is not an address/prefix-length pair."""

    expected = "a valid address and prefix length"


class InvalidHardwareAddressError(InvalidOptionValueError):
    """Value is not a colon-separated ethernet address."""

    expected = "a valid ethernet address"


class InvalidBooleanValueError(InvalidOptionValueError):
    """Value is not a recognized boolean token."""

    expected = "a valid boolean"


class InvalidNumberValueError(InvalidOptionValueError):
    """Value is not an unsigned integer in range."""

    expected = "a valid unsigned integer"


class SecurityError(FreelanError):
    """Security-related errors."""


class CredentialLoadError(SecurityError):
    """A certificate or private key file could not be loaded."""

    def __init__(self, path: str | Path, cause: BaseException | str):
        """Initialize with the file path and the underlying cause."""
        super().__init__(f"unable to load {path}: {cause}")
        self.path = Path(path)
        self.cause = cause
