"""Data sources, caching, aggregation and signal services."""
