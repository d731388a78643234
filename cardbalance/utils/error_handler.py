"""
Centralized error handling for the card balance client.

This module defines the exception taxonomy shared by the transport, cache and
sync layers, plus a small helper for logging errors with context at the
boundary where they are absorbed.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass, field


class CardBalanceError(Exception):
    """Base exception class for all card balance errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CardBalanceError):
    """Raised when settings or caller-supplied inputs are invalid."""
    pass


class CacheError(CardBalanceError):
    """Raised when the local card store cannot be read or written."""
    pass


class NoCachedDataError(CardBalanceError):
    """Raised when a refresh needs a cached card and there is none."""

    def __init__(self, message: str = "No card data found to refresh",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class TransportError(CardBalanceError):
    """Base class for failures talking to the recognition service."""

    #: Message shown to the user when fallback is disabled.
    user_message = "Network request failed. Please try again."


class RequestTimeoutError(TransportError):
    """Raised when a request is cancelled by its deadline."""

    user_message = "Request timed out. Please try again."


class HttpError(TransportError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status: int, reason: str = "",
                 details: Optional[Dict[str, Any]] = None):
        message = f"HTTP {status}: {reason}" if reason else f"HTTP {status}"
        super().__init__(message, details)
        self.status = status
        self.reason = reason

    @property
    def user_message(self) -> str:
        return self.message


class NetworkError(TransportError):
    """Raised when the request fails below HTTP (DNS, refused, reset, ...)."""
    pass


class InvalidResponseError(NetworkError):
    """Raised when the service answers 2xx with a body we cannot use."""

    user_message = "Unexpected response from server. Please try again."


@dataclass
class ErrorContext:
    """Context information for error reporting."""
    operation: str
    module: str
    function: str
    input_data: Dict[str, Any] = field(default_factory=dict)


def handle_error(
    error: Exception,
    context: ErrorContext,
    logger,
    reraise: bool = True,
    default_return: Any = None
) -> Any:
    """
    Log an error with its context and optionally re-raise it.

    Args:
        error: The exception that occurred
        context: Where the error occurred
        logger: structlog logger used for reporting
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if not re-raising

    Returns:
        The default_return value if not re-raising

    Raises:
        The original exception if reraise is True
    """
    error_msg = f"Error in {context.module}.{context.function} during {context.operation}"

    if isinstance(error, CardBalanceError):
        details = error.details
        error_msg += f": {error.message}"
    else:
        details = {}
        error_msg += f": {error}"

    logger.error(
        error_msg,
        error_type=type(error).__name__,
        operation=context.operation,
        error_module=context.module,
        error_function=context.function,
        input_data=context.input_data,
        details=details,
    )

    if reraise:
        raise error

    return default_return
