"""
Shared sanitization utilities.

Keeps API keys out of logs and error messages. Helius carries its key in the
query string and Birdeye/Codex in headers, so URLs, response bodies and header
maps all pass through here before they are logged.
"""

import re
from typing import Any

# Pre-compiled regex patterns for performance
_API_KEY_PATTERN = re.compile(
    r"(api[-_ ]?key[=:]\s*)([A-Za-z0-9._-]+)", re.IGNORECASE
)
_BEARER_TOKEN_PATTERN = re.compile(r"(Bearer\s+)([A-Za-z0-9._-]+)", re.IGNORECASE)
_PASSWORD_PATTERN = re.compile(r"(password[=:]\s*)([^\s&]+)", re.IGNORECASE)

# Keywords that indicate sensitive content
_SENSITIVE_KEYWORDS = frozenset(
    {"api key", "apikey", "api_key", "api-key", "bearer", "token", "password", "secret"}
)


def sanitize_text(text: str, mask: str = "****") -> str:
    """
    Remove sensitive information from text strings.

    Args:
        text: Text to sanitize
        mask: Replacement mask for sensitive values

    Returns:
        Sanitized text with sensitive values masked

    Examples:
        >>> sanitize_text("https://mainnet.helius-rpc.com/?api-key=abc-123")
        "https://mainnet.helius-rpc.com/?api-key=****"
        >>> sanitize_text("Bearer eyJhbGciOiJIUzI1NiJ9.xyz")
        "Bearer ****"
    """
    if not text:
        return text

    # Quick check for sensitive keywords
    text_lower = text.lower()
    if not any(keyword in text_lower for keyword in _SENSITIVE_KEYWORDS):
        return text

    result = _API_KEY_PATTERN.sub(rf"\1{mask}", text)
    result = _BEARER_TOKEN_PATTERN.sub(rf"\1{mask}", result)
    result = _PASSWORD_PATTERN.sub(rf"\1{mask}", result)

    return result


def sanitize_exception_message(exc: BaseException, mask: str = "****") -> str:
    """Sanitize an exception message for safe logging/display."""
    return sanitize_text(str(exc), mask)


def is_sensitive_field(field_name: str) -> bool:
    """
    Check if a field name indicates sensitive content.

    Examples:
        >>> is_sensitive_field("X-API-KEY")
        True
        >>> is_sensitive_field("x-chain")
        False
    """
    field_lower = field_name.lower()
    sensitive_indicators = (
        "key",
        "secret",
        "password",
        "token",
        "credential",
        "auth",
        "bearer",
    )
    return any(indicator in field_lower for indicator in sensitive_indicators)


def sanitize_headers(headers: dict[str, Any], mask: str = "****") -> dict[str, Any]:
    """Return a copy of ``headers`` with sensitive values masked."""
    return {
        name: (mask if is_sensitive_field(name) else value)
        for name, value in headers.items()
    }
