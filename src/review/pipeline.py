# src/review/pipeline.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
The aggregation pipeline: one review request in, a short series of ordered
snapshots out.

Stages:

A. Immediate: the capture action and the anchor, as probed right now.
B. Resolved: the anchor merged into its resolved siblings. If every item is
   already ready the series ends here.
C. Progressive: one readiness wait per pending item, all running
   concurrently. Each completed wait swaps a ready copy of that single item
   into the working snapshot and emits the whole list again.

Snapshots are immutable tuples; each emission is a new value. Store failures
degrade the output (fewer or slower snapshots) and never end the series
early. Closing or cancelling the series cancels every outstanding wait and
thereby releases every store subscription.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator

from clock import clock
from media.media_types import (
    CaptureAction,
    MediaItem,
    Snapshot,
    media_items,
    replace_item,
)
from store.base import MediaStore

from .readiness import ReadinessProbe
from .siblings import SiblingResolver, merge_anchor
from .watcher import ReadinessWatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trigger:
    """One incoming review request."""

    anchor_reference: str
    explicit_ids: tuple[int, ...] | None = None
    mime_type_hint: str | None = None
    capture_token: Any = None
    processing_reference: str | None = None

    @property
    def is_secure(self) -> bool:
        return self.explicit_ids is not None


class AggregationPipeline:
    def __init__(
        self,
        store: MediaStore,
        resolver: SiblingResolver | None = None,
        watcher: ReadinessWatcher | None = None,
    ):
        probe = ReadinessProbe(store)
        self.probe = probe
        self.resolver = resolver or SiblingResolver(store, probe)
        self.watcher = watcher or ReadinessWatcher(store, probe)

    def handle(self, trigger: Trigger) -> AsyncIterator[Snapshot]:
        """
        Start a fresh series of snapshots for ``trigger``.

        The returned async iterator is single-use. The anchor id is checked
        before anything is emitted; a reference without one raises
        ``MalformedReferenceError`` from the first ``__anext__``.
        """
        return self._run(trigger)

    async def _run(self, trigger: Trigger) -> AsyncIterator[Snapshot]:
        started = clock.monotonic()
        capture = CaptureAction(token=trigger.capture_token)
        anchor_id = self.probe.id_of(trigger.anchor_reference)

        # A: the anchor alone, so the first frame never waits on bucket queries
        anchor = MediaItem(
            id=anchor_id,
            locator=trigger.anchor_reference,
            mime_type=trigger.mime_type_hint,
            ready=await asyncio.to_thread(self.probe.is_ready, trigger.anchor_reference),
        )
        snapshot: Snapshot = (capture, anchor)
        yield snapshot

        # B: resolved siblings
        siblings = await self._resolve(trigger, anchor)
        snapshot = (capture, *merge_anchor(anchor, siblings))
        yield snapshot

        pending = [item for item in media_items(snapshot) if not item.ready]
        if not pending:
            logger.debug(
                f"All {len(snapshot) - 1} items ready after "
                f"{clock.monotonic() - started:.3f}s, no waits needed"
            )
            return

        # C: promote pending items as they become ready. Waits start from the
        # end of the list; completion order decides emission order.
        logger.info(f"Waiting for {len(pending)} pending item(s) of {trigger.anchor_reference}")
        waits = [
            asyncio.create_task(self._wait(item), name=f"await-ready-{item.id}")
            for item in reversed(pending)
        ]
        try:
            for next_done in asyncio.as_completed(waits):
                promoted = await next_done
                if promoted is None:
                    continue
                snapshot = replace_item(snapshot, promoted)
                yield snapshot
        finally:
            for wait in waits:
                wait.cancel()
            await asyncio.gather(*waits, return_exceptions=True)

        logger.debug(
            f"Review of {trigger.anchor_reference} converged after "
            f"{clock.monotonic() - started:.3f}s"
        )

    async def _resolve(self, trigger: Trigger, anchor: MediaItem) -> list[MediaItem]:
        explicit_ids = list(trigger.explicit_ids) if trigger.explicit_ids is not None else None
        try:
            return await asyncio.to_thread(
                self.resolver.resolve,
                trigger.anchor_reference,
                explicit_ids,
                trigger.mime_type_hint,
            )
        except Exception as e:
            logger.exception(f"Sibling resolution failed for {trigger.anchor_reference}: {e}")
            return [anchor]

    async def _wait(self, item: MediaItem) -> MediaItem | None:
        """Wait for one item; a failed wait leaves it pending without raising."""
        try:
            await self.watcher.await_ready(item.locator)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Waiting for {item.locator} failed, leaving it pending: {e}")
            return None
        return item.as_ready()
