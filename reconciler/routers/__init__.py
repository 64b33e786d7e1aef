"""API routers package."""

from reconciler.routers import match_settings, matching, transactions

__all__ = ["match_settings", "matching", "transactions"]
