"""
Shared utilities module.

Provides number coercion, display formatting and secret masking used across
the source clients, caches and report formatter.
"""

from .formatters import (
    format_large_number,
    format_percentage,
    format_usd,
    safe_float,
    safe_int,
    safe_optional_float,
)
from .sanitizers import (
    sanitize_exception_message,
    sanitize_headers,
    sanitize_text,
)

__all__ = [
    # Formatters
    "safe_float",
    "safe_optional_float",
    "safe_int",
    "format_large_number",
    "format_percentage",
    "format_usd",
    # Sanitizers
    "sanitize_text",
    "sanitize_headers",
    "sanitize_exception_message",
]
