"""
Unit tests for custom exception hierarchy.

Tests exception mapping, status codes, and error serialization including:
- Base AppError functionality (to_dict, context handling)
- Client errors (400-level): ValidationError, AssetIdentifierError
- External service errors (503): ExternalServiceError, FetchError,
  HolderAggregationError
"""

from asset_snapshot.core.exceptions import (
    AppError,
    AssetIdentifierError,
    ExternalServiceError,
    FetchError,
    HolderAggregationError,
    ValidationError,
)

# ===== Base AppError Tests =====


class TestAppError:
    """Test base AppError functionality"""

    def test_create_app_error(self):
        """Test creating basic AppError"""
        # Act
        error = AppError("Something went wrong")

        # Assert
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.status_code == 500
        assert error.error_type == "internal_error"

    def test_app_error_with_context(self):
        """Test AppError with additional context"""
        error = AppError("Snapshot failed", mint="abc", facet="trade")

        assert error.context == {"mint": "abc", "facet": "trade"}

    def test_app_error_to_dict(self):
        """Test to_dict flattens context for structured logging"""
        error = AppError("Snapshot failed", mint="abc")

        assert error.to_dict() == {
            "error_type": "internal_error",
            "message": "Snapshot failed",
            "status_code": 500,
            "mint": "abc",
        }


# ===== Client Error Tests =====


class TestClientErrors:
    """Test 400-level errors"""

    def test_validation_error(self):
        error = ValidationError("bad input")
        assert error.status_code == 400
        assert error.error_type == "validation_error"

    def test_asset_identifier_error_is_validation_error(self):
        """Unresolvable identifiers are caller errors"""
        error = AssetIdentifierError("No token found", symbol="NOPE")

        assert isinstance(error, ValidationError)
        assert error.status_code == 400
        assert error.error_type == "asset_identifier_error"
        assert error.context["symbol"] == "NOPE"


# ===== External Service Error Tests =====


class TestExternalServiceErrors:
    """Test 503 errors"""

    def test_external_service_error_carries_service(self):
        error = ExternalServiceError("No data", service="codex", mint="abc")

        assert error.status_code == 503
        assert error.service == "codex"
        assert error.to_dict()["service"] == "codex"
        assert error.to_dict()["mint"] == "abc"

    def test_fetch_error_fields(self):
        """FetchError keeps the HTTP status apart from the mapped status"""
        error = FetchError(
            "failed after 3 attempts",
            url="https://api.example.com",
            attempts=3,
            status_code=429,
            service="birdeye",
        )

        assert isinstance(error, ExternalServiceError)
        assert error.status_code == 503
        assert error.http_status == 429
        assert error.attempts == 3
        assert error.url == "https://api.example.com"
        assert error.to_dict()["http_status"] == 429
        assert error.error_type == "fetch_error"

    def test_fetch_error_defaults(self):
        error = FetchError("boom", url="u", attempts=1)
        assert error.service == "http"
        assert error.http_status is None

    def test_holder_aggregation_error(self):
        """Holder errors are tagged with the holder source"""
        error = HolderAggregationError("RPC failed", mint="abc", page=2)

        assert error.service == "helius"
        assert error.context["page"] == 2
        assert error.error_type == "holder_aggregation_error"
