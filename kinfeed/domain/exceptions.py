"""Domain exceptions for the kinfeed search service.

Defines domain-level exceptions independent of infrastructure concerns.
The presentation layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class KinfeedException(Exception):
    """Base exception for all kinfeed application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, source).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses. "error" carries the client-facing message."""
        body: dict[str, Any] = {"error": self.message, "code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationException(KinfeedException):
    """Raised when input validation fails (empty query, malformed cursor)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional request parameter that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(KinfeedException):
    """Raised when the request has no valid session (missing or bad bearer token)."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class SourceFetchException(KinfeedException):
    """Raised by a per-source fetcher when its query fails.

    Never reaches the client: the search use case catches it at the fetcher
    boundary and the source contributes zero results.
    """

    def __init__(self, source: str, reason: str) -> None:
        """Initialize with the failing source and a short reason.

        Args:
            source: Result type of the source (memory, comment, ...).
            reason: Underlying error text (logged server-side only).
        """
        super().__init__(
            f"Search source '{source}' failed: {reason}",
            "SOURCE_FETCH_ERROR",
            {"source": source},
        )
        self.source = source


class AnalyticsWriteException(KinfeedException):
    """Raised when a search analytics row cannot be persisted."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Search analytics write failed: {reason}", "ANALYTICS_WRITE_ERROR"
        )
