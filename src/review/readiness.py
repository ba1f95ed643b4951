# src/review/readiness.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""Point-in-time readiness checks for a single media reference."""

import logging

from media.exceptions import StoreQueryFailure
from media.locators import id_from_locator
from store.base import MediaStore

logger = logging.getLogger(__name__)


class ReadinessProbe:
    """
    Asks the store whether one item's write has completed.

    "Unknown" always reads as "not ready": the worst outcome is a later
    promotion, never a premature one.
    """

    def __init__(self, store: MediaStore):
        self.store = store

    def is_ready(self, reference: str) -> bool:
        try:
            pending = self.store.query_pending(reference)
        except StoreQueryFailure as e:
            logger.warning(f"Readiness query failed for {reference}: {e}")
            return False
        if pending is None:
            logger.debug(f"No row for {reference}, treating as not ready")
            return False
        return not pending

    def id_of(self, reference: str) -> int:
        """
        Raises:
            MalformedReferenceError: if the reference carries no id
        """
        return id_from_locator(reference)
