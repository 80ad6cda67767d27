"""
Custom exceptions for the Flashbuild application.

This module defines domain-specific exceptions that give build failures a
clear category and an informative message for the person running the build.
Plain I/O failures are not wrapped: an OSError raised while
reading a properties file reaches the caller unchanged.
"""

from typing import AbstractSet, Iterable, Optional

from flashbuild.constants import REQUIRED_SIGNING_KEYS


class FlashbuildError(Exception):
    """
    Base exception for all Flashbuild errors.

    All custom exceptions in Flashbuild inherit from this class so callers
    can catch every application-specific error at once.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


def _ordered_keys(keys: Iterable[str]) -> list:
    known = [key for key in REQUIRED_SIGNING_KEYS if key in keys]
    extra = sorted(key for key in keys if key not in REQUIRED_SIGNING_KEYS)
    return known + extra


class ConfigurationError(FlashbuildError):
    """
    Exception raised when configuration is invalid or incomplete.

    For signing properties, `missing_keys` holds exactly the required keys
    that were absent or empty. A present-but-incomplete signing file is
    always fatal: the release build must not continue with a half-populated
    signature.

    Attributes:
        missing_keys: Required keys that were missing or empty.
        properties_path: The properties file that was being resolved, if any.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        missing_keys: Iterable[str] = (),
        properties_path: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        """
        Initialize the configuration exception.

        Args:
            message: The primary error message. Built from `missing_keys`
                when omitted.
            missing_keys: Required keys that were missing or empty.
            properties_path: The properties file that was being resolved.
            details: Optional additional context.
        """
        self.missing_keys: AbstractSet[str] = frozenset(missing_keys)
        self.properties_path = properties_path
        if message is None:
            names = ", ".join(_ordered_keys(self.missing_keys))
            message = f"Signing properties are missing required key(s): {names}"
            if properties_path and details is None:
                details = f"check {properties_path}"
        super().__init__(message, details)


class ConfigFileError(ConfigurationError):
    """Exception raised when a configuration file cannot be read or parsed."""

    pass


class ConfigValidationError(ConfigurationError):
    """
    Exception raised when a configuration value fails validation.

    Attributes:
        field: The name of the field that failed validation.
        value: The offending value.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: object = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.field = field
        self.value = value


class PropertiesParseError(ConfigFileError):
    """
    Exception raised when properties text is malformed.

    Attributes:
        line_number: 1-based line where the problem was found.
    """

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        properties_path: Optional[str] = None,
    ) -> None:
        details = f"line {line_number}" if line_number is not None else None
        super().__init__(message, properties_path=properties_path, details=details)
        self.line_number = line_number


# =============================================================================
# Build Errors
# =============================================================================


class BuildError(FlashbuildError):
    """Exception raised when the packaging step cannot be started."""

    pass


class KeystoreNotFoundError(BuildError):
    """
    Exception raised when a release keystore path does not exist.

    Attributes:
        path: The keystore path from the signing profile.
    """

    def __init__(self, path: str, details: Optional[str] = None) -> None:
        super().__init__(f"Keystore not found: {path}", details)
        self.path = path
