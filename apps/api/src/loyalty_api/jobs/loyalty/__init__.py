"""Loyalty job exports."""

from .data_sync import run_loyalty_cloud_sync  # noqa: F401

__all__ = ["run_loyalty_cloud_sync"]
