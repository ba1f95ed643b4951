# src/review/deletion.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""Track media the user deleted during this process's lifetime."""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from media.media_types import Item, Snapshot

logger = logging.getLogger(__name__)


class DeletionTracker:
    """
    Append-only set of deleted media ids.

    Every snapshot on its way to the UI goes through ``filter``, so a snapshot
    that was computed before a deletion still cannot bring the item back.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._deleted: set[int] = set()

    def mark_deleted(self, media_id: int) -> None:
        with self._lock:
            self._deleted.add(media_id)
        logger.info(f"Marked media {media_id} as deleted")

    def is_deleted(self, media_id: int) -> bool:
        with self._lock:
            return media_id in self._deleted

    def filter(self, items: Iterable[Item]) -> Snapshot:
        with self._lock:
            deleted = frozenset(self._deleted)
        return tuple(item for item in items if item.id not in deleted)


# Process-wide tracker, shared by every review session
deletion_tracker = DeletionTracker()
