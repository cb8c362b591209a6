"""Utility functions and helpers."""

from .concurrency import ItemOutcome, run_bounded
from .exceptions import raise_bad_request, raise_internal_error, raise_not_found

__all__ = [
    "ItemOutcome",
    "raise_bad_request",
    "raise_internal_error",
    "raise_not_found",
    "run_bounded",
]
