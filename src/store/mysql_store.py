# src/store/mysql_store.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
MySQL-backed media store.

Queries go straight to the media_files table. MySQL cannot push row changes,
so change notification is a polling task: every ``poll_interval`` seconds it
loads a (is_pending, date_modified) marker for each subscribed row and calls
the subscribers whose marker moved. The first poll after a subscription
always notifies, so a change that lands between a subscriber's last check and
the poller's first look is never lost.
"""

import asyncio
import logging
import threading

from clock import clock
from config import POLL_INTERVAL
from db import media_files
from media.exceptions import MalformedReferenceError, StoreQueryFailure
from media.locators import id_from_locator

from .base import ChangeCallback, MediaStore, StoreRecord, Subscription

logger = logging.getLogger(__name__)

_UNSEEN = object()
_MISSING = object()


def _record_from_row(row) -> StoreRecord:
    return StoreRecord(
        id=int(row["id"]),
        mime_type=row["mime_type"],
        is_pending=bool(row["is_pending"]),
    )


class MysqlMediaStore(MediaStore):
    def __init__(self, poll_interval: float = POLL_INTERVAL):
        self.poll_interval = poll_interval
        self._lock = threading.Lock()
        # {subscription: (media_id, callback)}
        self._subscriptions: dict[Subscription, tuple[int, ChangeCallback]] = {}
        self._markers: dict[Subscription, object] = {}
        self._poll_task: asyncio.Task | None = None

    @staticmethod
    def _media_id(reference: str) -> int:
        try:
            return id_from_locator(reference)
        except MalformedReferenceError as e:
            raise StoreQueryFailure(str(e), e) from e

    def query_pending(self, reference: str) -> bool | None:
        media_id = self._media_id(reference)
        try:
            return media_files.load_pending_flag(media_id)
        except Exception as e:
            raise StoreQueryFailure(f"pending query failed for {reference}", e) from e

    def query_record(self, media_id: int) -> StoreRecord | None:
        try:
            row = media_files.load_media_file(media_id)
        except Exception as e:
            raise StoreQueryFailure(f"lookup failed for id {media_id}", e) from e
        return _record_from_row(row) if row else None

    def query_group_key(self, reference: str) -> int | None:
        media_id = self._media_id(reference)
        try:
            return media_files.load_bucket_id(media_id)
        except Exception as e:
            raise StoreQueryFailure(f"bucket query failed for {reference}", e) from e

    def query_group(self, group_key: int, limit: int) -> list[StoreRecord]:
        try:
            rows = media_files.load_bucket_members(group_key, limit)
        except Exception as e:
            raise StoreQueryFailure(f"bucket listing failed for bucket {group_key}", e) from e
        return [_record_from_row(row) for row in rows]

    def subscribe(self, reference: str, callback: ChangeCallback) -> Subscription:
        media_id = self._media_id(reference)
        subscription = Subscription(reference, self._release)
        with self._lock:
            self._subscriptions[subscription] = (media_id, callback)
        logger.debug(f"subscribed to {reference} ({self.subscription_count} live)")
        return subscription

    def _release(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(subscription, None)
            self._markers.pop(subscription, None)
        logger.debug(f"unsubscribed from {subscription.reference}")

    @property
    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def start(self) -> None:
        """Start the change poller on the running event loop."""
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "MysqlMediaStore":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                logger.exception(f"Change poll failed: {e}")
            await clock.sleep(self.poll_interval)

    async def poll_once(self) -> int:
        """
        Check every subscribed row once and notify the ones that changed.

        Returns:
            Number of callbacks fired
        """
        with self._lock:
            watched = list(self._subscriptions.items())
        if not watched:
            return 0

        media_ids = sorted({media_id for _, (media_id, _) in watched})
        markers = await asyncio.to_thread(media_files.load_change_markers, media_ids)

        fired = 0
        for subscription, (media_id, callback) in watched:
            marker = markers.get(media_id, _MISSING)
            with self._lock:
                if subscription not in self._subscriptions:
                    continue
                previous = self._markers.get(subscription, _UNSEEN)
                self._markers[subscription] = marker
            if previous is not _UNSEEN and previous == marker:
                continue
            try:
                callback()
                fired += 1
            except Exception as e:
                logger.exception(f"Change callback for {subscription.reference} failed: {e}")
        return fired
