"""Resilient multi-source data aggregation for Solana token snapshots."""

__version__ = "0.1.0"
