"""Basket services."""

from .basket_service import BasketService  # noqa: F401
from .locks import BasketLocks, basket_locks  # noqa: F401

__all__ = ["BasketLocks", "BasketService", "basket_locks"]
