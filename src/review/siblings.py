# src/review/siblings.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Sibling resolution: which items belong in the same review as the anchor.

Two modes:

- Explicit: the request carries a trusted id list (the locked-screen entry
  path). Each id is looked up on its own and kept in the given order, even
  when the lookup fails, so the pipeline can still wait for it.
- Discovery: the anchor's bucket is listed, newest first, up to a ceiling.
  Without a bucket, or with an empty listing, the anchor is its own sole
  sibling.
"""

import logging

from config import DISCOVERY_LIMIT
from media.exceptions import StoreQueryFailure
from media.locators import locator_for_id
from media.media_types import MediaItem
from store.base import MediaStore, StoreRecord

from .readiness import ReadinessProbe

logger = logging.getLogger(__name__)


def _item_from_record(record: StoreRecord) -> MediaItem:
    return MediaItem(
        id=record.id,
        locator=locator_for_id(record.id, record.mime_type),
        mime_type=record.mime_type,
        ready=not record.is_pending,
    )


class SiblingResolver:
    def __init__(
        self,
        store: MediaStore,
        probe: ReadinessProbe,
        discovery_limit: int = DISCOVERY_LIMIT,
    ):
        self.store = store
        self.probe = probe
        self.discovery_limit = discovery_limit

    def resolve(
        self,
        anchor_reference: str,
        explicit_ids: list[int] | None = None,
        mime_type_hint: str | None = None,
    ) -> list[MediaItem]:
        """
        Return the ordered siblings of the anchor, anchor included where the
        store lists it.

        Raises:
            MalformedReferenceError: if discovery has to fall back to the
                anchor and the anchor carries no id
        """
        if explicit_ids is not None:
            return self.resolve_explicit(explicit_ids)
        return self.resolve_discovered(anchor_reference, mime_type_hint)

    def resolve_explicit(self, explicit_ids: list[int]) -> list[MediaItem]:
        items = []
        for media_id in explicit_ids:
            try:
                record = self.store.query_record(media_id)
            except StoreQueryFailure as e:
                logger.warning(f"Lookup failed for id {media_id}, keeping it as not ready: {e}")
                record = None
            if record is None:
                items.append(MediaItem(id=media_id, locator=locator_for_id(media_id, None)))
            else:
                items.append(_item_from_record(record))
        return items

    def resolve_discovered(
        self, anchor_reference: str, mime_type_hint: str | None = None
    ) -> list[MediaItem]:
        try:
            group_key = self.store.query_group_key(anchor_reference)
        except StoreQueryFailure as e:
            logger.warning(f"Bucket lookup failed for {anchor_reference}: {e}")
            group_key = None
        if group_key is None:
            return [self.anchor_item(anchor_reference, mime_type_hint)]

        try:
            records = self.store.query_group(group_key, self.discovery_limit)
        except StoreQueryFailure as e:
            logger.warning(f"Bucket listing failed for bucket {group_key}: {e}")
            records = []
        if not records:
            logger.warning(f"Bucket {group_key} listing returned no results")
            return [self.anchor_item(anchor_reference, mime_type_hint)]

        return [_item_from_record(record) for record in records]

    def anchor_item(self, anchor_reference: str, mime_type_hint: str | None = None) -> MediaItem:
        """Build the anchor's item from its own reference and a fresh probe."""
        return MediaItem(
            id=self.probe.id_of(anchor_reference),
            locator=anchor_reference,
            mime_type=mime_type_hint,
            ready=self.probe.is_ready(anchor_reference),
        )


def merge_anchor(anchor: MediaItem, siblings: list[MediaItem]) -> list[MediaItem]:
    """
    Merge the anchor into a resolved sibling list without duplicating it.

    When the store listed the anchor (normally as the first, newest row), its
    listed entry is kept at the listed position and the anchor's own readiness
    observation is folded in. Otherwise the anchor is placed ahead of the first
    older sibling so that it never disappears from the review.
    """
    merged = []
    seen = set()
    anchor_listed = False
    for item in siblings:
        if item.id in seen:
            continue
        seen.add(item.id)
        if item.id == anchor.id:
            anchor_listed = True
            if anchor.ready and not item.ready:
                item = item.as_ready()
        merged.append(item)

    if anchor_listed:
        return merged

    for position, item in enumerate(merged):
        if item.id < anchor.id:
            merged.insert(position, anchor)
            break
    else:
        merged.append(anchor)
    return merged
