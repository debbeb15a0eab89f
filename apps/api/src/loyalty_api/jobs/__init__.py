"""Recurring job entrypoints for Loyalty Cloud automation."""

__all__ = [
    "loyalty",
]
