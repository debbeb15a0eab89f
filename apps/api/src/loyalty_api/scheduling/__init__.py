"""Scheduling utilities for recurring Loyalty Cloud automation."""

from .runner import LoyaltyCloudSyncScheduler

__all__ = ["LoyaltyCloudSyncScheduler"]
