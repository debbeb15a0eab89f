"""Checkout services."""

from .placement import OrderPlacementService, PaymentAuthorizer, PlacementResult  # noqa: F401

__all__ = ["OrderPlacementService", "PaymentAuthorizer", "PlacementResult"]
