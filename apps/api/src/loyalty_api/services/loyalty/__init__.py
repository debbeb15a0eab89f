"""Loyalty program member services."""

from .member_service import LoyaltyMemberService  # noqa: F401

__all__ = ["LoyaltyMemberService"]
