"""Custom exceptions for the proxy application."""

from typing import Any, Dict, Optional


class ProxyException(Exception):
    """Base class for proxy exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500

    def __init__(self, message: str = "Proxy error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        """Convert to the JSON error envelope returned to clients."""
        return {"error": self.message}


class InvalidQueryError(ProxyException):
    """Raised when a music lookup arrives without a search query.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400

    def __init__(self, message: str = "No query provided"):
        super().__init__(message)


class CatalogUnavailableError(ProxyException):
    """Raised when the music catalog credential exchange failed.

    Maps to HTTP 503 Service Unavailable.
    """
    status_code = 503

    def __init__(self, catalog: str = "spotify", message: str = "Service unavailable"):
        self.catalog = catalog
        super().__init__(message)


class CatalogLookupError(ProxyException):
    """Raised when an upstream catalog search fails.

    Maps to HTTP 500 Internal Server Error.
    """
    status_code = 500

    def __init__(self, catalog: str = "spotify", message: str = "Search failed"):
        self.catalog = catalog
        super().__init__(message)


class RateLimitExceededError(ProxyException):
    """Raised when a client identifier is over its request budget or banned.

    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429

    def __init__(
        self,
        retry_after: int,
        limit: int,
        newly_banned: bool = False,
        detail: Optional[str] = None,
    ):
        self.retry_after = retry_after
        self.limit = limit
        self.newly_banned = newly_banned
        message = detail or (
            f"Rate limit exceeded. Try again in {retry_after} seconds."
        )
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        return {
            "error": "rate_limit_exceeded",
            "message": self.message,
            "retry_after": self.retry_after,
        }

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
        }
