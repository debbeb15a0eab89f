"""Loyalty Cloud connector service for storefront checkout."""
