"""
Shared error handling for Cacheman.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class CachemanError(Exception):
    """Base exception for Cacheman."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidKeyError(CachemanError):
    """Key is neither a string nor a sequence of strings."""

    def __init__(self, message: str = "Invalid key, key must be a string or array.", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_KEY", message, details)


class InvalidEngineError(CachemanError):
    """Engine configuration is malformed or cannot be resolved."""

    def __init__(self, message: str = "Invalid engine format", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_ENGINE", message, details)


class InvalidTTLError(CachemanError):
    """TTL is not a non-negative number or a parseable duration."""

    def __init__(self, message: str = "Invalid ttl", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_TTL", message, details)


class MiddlewareError(CachemanError):
    """A middleware stage signalled a non-exception failure."""

    def __init__(self, cause: Any, details: Optional[Dict[str, Any]] = None):
        self.cause = cause
        super().__init__("MIDDLEWARE_ERROR", f"Middleware failed: {cause!r}", details)


class StoreError(CachemanError):
    """Storage engine failure."""

    def __init__(self, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)


class PromiseUnavailableError(CachemanError):
    """Awaitable mode requested without a promise factory or running event loop."""

    def __init__(
        self,
        message: str = (
            "Promises not available: run inside an event loop, pass a promise "
            "factory as a Cacheman option, or use the callback interface"
        ),
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__("PROMISE_UNAVAILABLE", message, details)


class DoubleCompletionError(CachemanError):
    """A completion callback was invoked more than once."""

    def __init__(self, message: str = "callback called twice", details: Optional[Dict[str, Any]] = None):
        super().__init__("DOUBLE_COMPLETION", message, details)
