#!/usr/bin/env python3
"""
Print a token security and trade report.

Usage:
  # Report by mint address
  python scripts/token_report.py So11111111111111111111111111111111111111112

  # Resolve a symbol first
  python scripts/token_report.py --symbol BONK

  # Include the trade signal and reference prices
  python scripts/token_report.py <mint> --signal --prices

  # Skip Redis (in-process cache only)
  python scripts/token_report.py <mint> --no-redis

  # Verbose logging
  python scripts/token_report.py <mint> --verbose
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path for local execution
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from asset_snapshot.core.config import get_settings
from asset_snapshot.core.exceptions import AppError
from asset_snapshot.core.log_config import configure_logging
from asset_snapshot.services.container import ServiceContainer
from asset_snapshot.services.formatters import UNAVAILABLE_MESSAGE, format_token_report

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print a token security report")
    parser.add_argument("address", nargs="?", help="Token mint address")
    parser.add_argument("--symbol", type=str, help="Resolve this symbol to a mint")
    parser.add_argument(
        "--signal", action="store_true", help="Append the trade signal breakdown"
    )
    parser.add_argument(
        "--prices", action="store_true", help="Print reference prices (SOL/BTC/ETH)"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the snapshot as JSON"
    )
    parser.add_argument(
        "--no-redis", action="store_true", help="Run without the durable cache"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()

    async with await ServiceContainer.create(
        settings, use_redis=not args.no_redis
    ) as services:
        asset = args.address
        if args.symbol:
            asset = await services.aggregator.resolve_symbol(args.symbol)
            logger.info("symbol_resolved", symbol=args.symbol, address=str(asset))

        snapshot = await services.aggregator.assemble_snapshot(asset)

        if args.json:
            print(json.dumps(snapshot.to_dict(), indent=2))
        else:
            breakdown = (
                services.evaluator.breakdown(snapshot) if args.signal else None
            )
            print(format_token_report(snapshot, breakdown, include_signal=args.signal))

        if args.prices:
            for price in await services.get_reference_prices():
                print(f"{price.symbol}: ${price.value:.2f}")

    return 0


def main() -> None:
    """Main execution function."""
    parser = build_parser()
    args = parser.parse_args()
    if not args.address and not args.symbol:
        parser.error("either an address or --symbol is required")

    configure_logging(args.verbose)

    try:
        sys.exit(asyncio.run(run(args)))
    except AppError as e:
        logger.error("token_report_failed", **e.to_dict())
        print(UNAVAILABLE_MESSAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
