"""
Report formatters.

Usage:
    from asset_snapshot.services.formatters import format_token_report

    snapshot = await aggregator.assemble_snapshot(mint)
    print(format_token_report(snapshot))
"""

from .token_report import UNAVAILABLE_MESSAGE, format_token_report

__all__ = ["UNAVAILABLE_MESSAGE", "format_token_report"]
