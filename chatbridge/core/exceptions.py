"""Core exceptions for the bridge."""

from typing import Optional


class BridgeError(Exception):
    """Base exception for bridge errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BridgeError):
    """Raised when an incoming chat request cannot be translated.

    Caller-correctable; the HTTP layer maps it to a 400 response.
    """

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class BackendError(BridgeError):
    """Opaque failure reported by the Messages backend.

    Propagated unchanged through the translation core, never retried.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[bytes] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(BridgeError):
    """Raised when there's an issue with the configuration."""
    pass
