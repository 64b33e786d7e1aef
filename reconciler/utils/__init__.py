"""Utility functions and helpers."""

from .exceptions import (
    raise_bad_request,
    raise_conflict,
    raise_for_matching_error,
    raise_internal_error,
    raise_service_unavailable,
    raise_too_large,
    raise_unauthorized,
)

__all__ = [
    "raise_bad_request",
    "raise_conflict",
    "raise_for_matching_error",
    "raise_internal_error",
    "raise_service_unavailable",
    "raise_too_large",
    "raise_unauthorized",
]
