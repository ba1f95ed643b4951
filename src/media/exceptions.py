# src/media/exceptions.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Exception types raised while aggregating a capture review.
"""


class MalformedReferenceError(ValueError):
    """
    Raised when no media id can be extracted from a reference.

    This is fatal to the review request that carried the reference: nothing
    can be aggregated without an anchor id.
    """

    def __init__(self, reference):
        super().__init__(f"Can't get ID from {reference!r}")
        self.reference = reference


class StoreQueryFailure(Exception):
    """
    Raised by store adapters when a query could not be answered.

    Callers at the component boundary convert this into a conservative
    default ("not ready", "no sibling group") instead of propagating it.

    Args:
        message: Error message
        original_exception: The driver exception that was raised (optional)
    """

    def __init__(self, message: str, original_exception: Exception | None = None):
        super().__init__(message)
        self.original_exception = original_exception
