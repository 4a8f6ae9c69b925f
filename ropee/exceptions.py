"""Custom exceptions for ropee."""

from typing import Any


class RopeeError(Exception):
    """Base exception for all ropee errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(RopeeError):
    """Configuration-related errors."""

    pass


class BodyReadError(RopeeError):
    """The inbound request body could not be read."""

    def __init__(self, details: str) -> None:
        super().__init__(details, details=details)


class DecodeError(RopeeError):
    """Base class for payloads that cannot be decoded.

    The fault is attributable to the caller.
    """

    pass


class FramingError(DecodeError):
    """The snappy compression envelope is empty, truncated or malformed."""

    def __init__(self, details: str, size: int | None = None) -> None:
        super().__init__(f"snappy: {details}", details=details, size=size)


class ProtocolError(DecodeError):
    """Decompressed bytes are not a well-formed message of the expected type."""

    def __init__(self, message_type: str, details: str) -> None:
        super().__init__(
            f"proto: cannot parse {message_type}: {details}",
            message_type=message_type,
            details=details,
        )


class ConstructionError(RopeeError):
    """A backend client could not be built from its handle."""

    def __init__(self, details: str, backend: str | None = None) -> None:
        super().__init__(details, backend=backend, details=details)


class BackendError(RopeeError):
    """A backend read or write call failed.

    The message is surfaced verbatim to the caller.
    """

    def __init__(self, message: str, operation: str | None = None, **context: Any) -> None:
        super().__init__(message, operation=operation, **context)
        self.operation = operation


class BackendTimeoutError(BackendError):
    """A backend call exceeded its deadline."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(
            f"{operation} timed out after {timeout_seconds:g}s",
            operation=operation,
            timeout_seconds=timeout_seconds,
        )
        self.timeout_seconds = timeout_seconds


def get_http_status(error: Exception) -> int:
    """Map exception to HTTP status code."""
    status_map = {
        FramingError: 400,
        ProtocolError: 400,
        DecodeError: 400,
        BodyReadError: 500,
        ConstructionError: 500,
        BackendTimeoutError: 500,
        BackendError: 500,
        ConfigurationError: 500,
    }

    for exc_type, status in status_map.items():
        if isinstance(error, exc_type):
            return status

    return 500
