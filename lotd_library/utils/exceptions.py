"""
Custom exception hierarchy for lotd-library.

Provides a structured exception hierarchy for different error scenarios:
- AppException: Base for all application errors
- ConfigError: Configuration-related errors
- ScraperError: Fetching, parsing and retry errors

Each exception includes:
- Descriptive message
- Optional error code for programmatic handling
- Optional context dictionary for debugging

Scraper errors additionally carry a ``retryable`` flag that the retry
policy uses to decide whether another attempt is worth making.

Example:
    >>> from lotd_library.utils.exceptions import NetworkError
    >>> raise NetworkError("Connection reset", url=url)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# ============================================
# Base Exception
# ============================================


class AppException(Exception):
    """
    Base exception for all lotd-library application errors.

    Attributes:
        message: Human-readable error description.
        code: Optional error code for programmatic handling.
        context: Optional dictionary with debugging context.

    Example:
        >>> try:
        ...     raise AppException("Something went wrong", code="APP_001")
        ... except AppException as e:
        ...     print(f"Error {e.code}: {e.message}")
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description.
            code: Optional error code (e.g., "CONFIG_001").
            context: Optional dict with additional debugging info.
        """
        self.message = message
        self.code = code or self._default_code()
        self.context = context or {}
        super().__init__(self.message)

    def _default_code(self) -> str:
        """Generate default error code from class name."""
        # CamelCase -> UPPER_SNAKE_CASE
        name = self.__class__.__name__
        code = ""
        for i, char in enumerate(name):
            if char.isupper() and i > 0:
                code += "_"
            code += char.upper()
        return code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
        }


# ============================================
# Configuration Errors
# ============================================


class ConfigError(AppException):
    """
    Base exception for configuration-related errors.

    Raised when there are issues with:
    - Loading configuration files
    - Parsing YAML
    - Validating configuration values
    """

    pass


class ConfigFileNotFoundError(ConfigError):
    """
    Raised when an explicitly requested configuration file is missing.

    Example:
        >>> raise ConfigFileNotFoundError(path="/path/to/config.yaml")
    """

    def __init__(
        self,
        message: str = "Configuration file not found",
        path: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, code="CONFIG_FILE_NOT_FOUND", context=context, **kwargs)


class ConfigValidationError(ConfigError):
    """
    Raised when configuration values fail validation.

    Example:
        >>> raise ConfigValidationError(
        ...     "max_attempts must be positive",
        ...     field="retry.max_attempts",
        ...     value=0
        ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = value
        super().__init__(message, code="CONFIG_VALIDATION", context=context, **kwargs)


# ============================================
# Scraper Errors
# ============================================


class ScraperError(AppException):
    """
    Base exception for web scraping errors.

    Raised when there are issues with:
    - HTTP requests
    - Page parsing
    - Exhausted retries

    Attributes:
        retryable: Whether a fresh attempt at the same operation may succeed.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        retryable: Optional[bool] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        if retryable is not None:
            self.retryable = retryable


class NetworkError(ScraperError):
    """
    Raised when a network request fails.

    Transport failures, timeouts, HTTP 429 and 5xx are retryable;
    any other HTTP error status is not.

    Example:
        >>> raise NetworkError(
        ...     "HTTP 503",
        ...     url="https://legacy-of-the-dragonborn.fandom.com/wiki/Foo",
        ...     status_code=503
        ... )
    """

    def __init__(
        self,
        message: str = "Network request failed",
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if url:
            context["url"] = url
        if status_code:
            context["status_code"] = status_code
        retryable = kwargs.pop("retryable", None)
        if retryable is None:
            retryable = status_code is None or status_code == 429 or status_code >= 500
        self.url = url
        self.status_code = status_code
        super().__init__(
            message, retryable=retryable, code="NETWORK_ERROR", context=context, **kwargs
        )


class PageParsingError(ScraperError):
    """
    Raised when page content cannot be turned into the expected data.

    Example:
        >>> raise PageParsingError(
        ...     "No acquisition block",
        ...     url="https://legacy-of-the-dragonborn.fandom.com/wiki/Foo",
        ... )
    """

    def __init__(
        self,
        message: str = "Failed to parse page content",
        url: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if url:
            context["url"] = url
        kwargs.setdefault("code", "PAGE_PARSE")
        self.url = url
        super().__init__(message, context=context, **kwargs)


class EmptyExtractionError(PageParsingError):
    """Raised when an item page yields an empty title or no locations."""

    retryable = True

    def __init__(
        self,
        message: str = "Item page yielded an empty title or no locations",
        **kwargs,
    ) -> None:
        super().__init__(message, code="EMPTY_EXTRACTION", **kwargs)


class EmptyListingError(PageParsingError):
    """Raised when a floor page yields no item links."""

    retryable = True

    def __init__(
        self,
        message: str = "Listing page yielded no item links",
        **kwargs,
    ) -> None:
        super().__init__(message, code="EMPTY_LISTING", **kwargs)


class RetryExhaustedError(ScraperError):
    """
    Raised when an operation keeps failing after every allowed attempt.

    Example:
        >>> raise RetryExhaustedError(operation="extract book https://...", attempts=5)
    """

    def __init__(
        self,
        message: Optional[str] = None,
        operation: Optional[str] = None,
        attempts: Optional[int] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if operation:
            context["operation"] = operation
        if attempts:
            context["attempts"] = attempts
        if message is None:
            message = f"Gave up on {operation or 'operation'} after {attempts} attempts"
        self.operation = operation
        self.attempts = attempts
        super().__init__(
            message, retryable=False, code="RETRY_EXHAUSTED", context=context, **kwargs
        )
