# media/media_types.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

"""
Items shown in a capture review and the identity/content rules a UI uses to
diff one snapshot against the next.
"""

from dataclasses import dataclass, replace
from typing import Any, Union

CAPTURE_ACTION_ID = -1


@dataclass(frozen=True)
class CaptureAction:
    """The "back to the camera" entry. Always first in a snapshot."""

    token: Any  # opaque, handed back to the capture launcher untouched
    id: int = CAPTURE_ACTION_ID


@dataclass(frozen=True)
class MediaItem:
    id: int  # store-assigned, stable for the item's lifetime
    locator: str
    mime_type: str | None = None
    ready: bool = False

    def as_ready(self) -> "MediaItem":
        """Return a ready copy; the original value is left untouched."""
        if self.ready:
            return self
        return replace(self, ready=True)


Item = Union[CaptureAction, MediaItem]

# One immutable, ordered emission of the aggregation pipeline
Snapshot = tuple[Item, ...]


def same_identity(a: Item, b: Item) -> bool:
    return a.id == b.id


def same_content(a: Item, b: Item) -> bool:
    """
    Return True when a UI can keep its rendering of ``a`` for ``b``.

    Locator and type never change once assigned to an id, so two media items
    only differ in readiness.
    """
    if isinstance(a, MediaItem) and isinstance(b, MediaItem):
        return a.ready == b.ready
    return a.id == b.id


def media_items(snapshot: Snapshot) -> list[MediaItem]:
    """Return the media items of a snapshot in display order."""
    return [item for item in snapshot if isinstance(item, MediaItem)]


def replace_item(snapshot: Snapshot, item: MediaItem) -> Snapshot:
    """Return a new snapshot with the entry sharing ``item``'s id swapped for ``item``."""
    return tuple(item if existing.id == item.id else existing for existing in snapshot)
