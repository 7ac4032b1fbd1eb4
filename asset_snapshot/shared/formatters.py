"""
Shared formatting utilities.

Provides number coercion for loosely-typed API payloads (Birdeye returns
numbers, DexScreener returns numeric strings, Helius returns string amounts)
and display helpers used by the token report.
"""

from typing import Any


def safe_float(value: Any, default: float = 0.0) -> float:
    """
    Safely convert a value to float.

    Handles string values from API responses, None values, and the literal
    string "None" commonly returned by some APIs.

    Examples:
        >>> safe_float("123.45")
        123.45
        >>> safe_float(None)
        0.0
        >>> safe_float("invalid")
        0.0
    """
    if value is None or value == "None" or value == "":
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def safe_optional_float(value: Any) -> float | None:
    """
    Convert to float, keeping absence as None.

    Used for fields where "no data" is meaningful and must not collapse to 0.

    Examples:
        >>> safe_optional_float(None) is None
        True
        >>> safe_optional_float("12.5")
        12.5
    """
    if value is None or value == "None" or value == "":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def safe_int(value: Any, default: int = 0) -> int:
    """
    Safely convert a value to integer.

    Examples:
        >>> safe_int("123")
        123
        >>> safe_int(45.7)
        45
        >>> safe_int(None)
        0
    """
    if value is None or value == "None" or value == "":
        return default
    try:
        return int(float(value))  # Handle "123.45" -> 123
    except (ValueError, TypeError):
        return default


def format_large_number(
    value: float | int | None,
    currency_prefix: str = "$",
    include_sign: bool = False,
) -> str:
    """
    Format large numbers with K/M/B suffixes.

    Examples:
        >>> format_large_number(1_500_000_000)
        "$1.50B"
        >>> format_large_number(None)
        "N/A"
        >>> format_large_number(1500, currency_prefix="")
        "1.5K"
    """
    if value is None:
        return "N/A"

    abs_value = abs(value)
    sign = ""
    if include_sign:
        sign = "+" if value >= 0 else "-"
        value = abs_value

    if abs_value >= 1e9:
        return f"{sign}{currency_prefix}{value / 1e9:.2f}B"
    elif abs_value >= 1e6:
        return f"{sign}{currency_prefix}{value / 1e6:.1f}M"
    elif abs_value >= 1e3:
        return f"{sign}{currency_prefix}{value / 1e3:.1f}K"
    else:
        return f"{sign}{currency_prefix}{value:.2f}"


def format_percentage(
    value: float | None,
    decimal_places: int = 1,
    include_sign: bool = True,
) -> str:
    """
    Format a value as a percentage string.

    Examples:
        >>> format_percentage(5.234)
        "+5.2%"
        >>> format_percentage(None)
        "N/A"
    """
    if value is None:
        return "N/A"

    sign = ""
    if include_sign and value >= 0:
        sign = "+"

    return f"{sign}{value:.{decimal_places}f}%"


def format_usd(value: Any, decimal_places: int = 2) -> str:
    """
    Format a dollar amount with a fixed number of decimals.

    Examples:
        >>> format_usd(1234.5)
        "$1234.50"
        >>> format_usd("0.000123", decimal_places=6)
        "$0.000123"
    """
    return f"${safe_float(value):.{decimal_places}f}"
