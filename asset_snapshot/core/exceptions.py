"""
Custom exception hierarchy for error categorization.

Distinguishes the failure classes the data pipeline handles differently:
- Caller errors (400-level): unusable asset identifiers, bad input
- External errors (503): third-party data sources failed

Usage:
    from asset_snapshot.core.exceptions import FetchError, HolderAggregationError

    # Retries exhausted against a data source
    raise FetchError("Birdeye returned 429", url=url, attempts=3, status_code=429)

    # Holder pagination aborted
    raise HolderAggregationError("Helius RPC failed", mint=address)
"""

from typing import Any


class AppError(Exception):
    """
    Base application error with status mapping.

    All custom exceptions inherit from this to enable consistent error handling.
    """

    # Default status code (subclasses override)
    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional key-value pairs for logging (e.g., mint, url)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for structured logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


# ===== 400-level: Client Errors =====


class ValidationError(AppError):
    """Caller provided invalid input."""

    status_code = 400
    error_type = "validation_error"


class AssetIdentifierError(ValidationError):
    """
    No resolved asset identifier is available for an operation that needs one.

    Raised when a symbol cannot be resolved to a mint address, or when an
    operation is invoked on an empty identifier.
    """

    error_type = "asset_identifier_error"


# ===== 503: External Service Errors =====


class ExternalServiceError(AppError):
    """
    External data source unavailable or returned an error.

    Maps to 503 Service Unavailable (third-party problem, retry may help).
    """

    status_code = 503
    error_type = "external_service_error"

    def __init__(self, message: str, service: str, **context: Any):
        """
        Initialize with service name for easier debugging.

        Args:
            message: Error description
            service: Service identifier (e.g., "birdeye", "codex")
            **context: Additional context (e.g., mint, attempt_count)
        """
        super().__init__(message, service=service, **context)
        self.service = service


class FetchError(ExternalServiceError):
    """HTTP request still failing after every retry attempt."""

    error_type = "fetch_error"

    def __init__(
        self,
        message: str,
        url: str,
        attempts: int,
        status_code: int | None = None,
        service: str = "http",
    ):
        super().__init__(
            message,
            service=service,
            url=url,
            attempts=attempts,
            http_status=status_code,
        )
        self.url = url
        self.attempts = attempts
        self.http_status = status_code


class HolderAggregationError(ExternalServiceError):
    """Holder pagination aborted; holder-derived data is unavailable."""

    error_type = "holder_aggregation_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message, service="helius", **context)
