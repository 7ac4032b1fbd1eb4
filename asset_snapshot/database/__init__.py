"""Durable store connections."""
