# src/review/session.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Review session: the boundary between the aggregation pipeline and the UI.

A session runs one pipeline at a time in a background task. Each snapshot is
filtered through the deletion tracker and stored as the latest value; the UI
reads the latest value whenever it likes and is never able to slow the
pipeline down. Snapshots the UI did not get to are simply replaced.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Mapping

from media.exceptions import MalformedReferenceError
from media.media_types import MediaItem, Snapshot

from .deletion import DeletionTracker, deletion_tracker
from .pipeline import AggregationPipeline, Trigger
from .requests import parse_review_request

logger = logging.getLogger(__name__)


class ReviewSession:
    def __init__(
        self,
        pipeline: AggregationPipeline,
        tracker: DeletionTracker | None = None,
        launcher: Callable[[Any], None] | None = None,
    ):
        """
        Args:
            pipeline: Pipeline used for every review request of this session
            tracker: Deletion tracker; defaults to the process-wide one
            launcher: Called with a capture token when the user picks the
                capture action
        """
        self.pipeline = pipeline
        self.tracker = tracker if tracker is not None else deletion_tracker
        self.launcher = launcher
        self.cannot_display = False
        self._latest: Snapshot | None = None
        self._version = 0
        self._run_id = 0
        self._running = False
        self._changed = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def items(self) -> Snapshot | None:
        """The latest snapshot, minus anything deleted since it was stored."""
        if self._latest is None:
            return None
        return self.tracker.filter(self._latest)

    @property
    def is_running(self) -> bool:
        return self._running

    def on_review_request(self, request: Mapping[str, Any]) -> asyncio.Task | None:
        """Start reviewing the item a request points at, replacing any running review."""
        try:
            trigger = parse_review_request(request)
        except MalformedReferenceError as e:
            logger.error(f"Cannot display review request: {e}")
            self._cancel_current()
            self._latest = None
            self.cannot_display = True
            self._notify()
            return None
        return self.start(trigger)

    def start(self, trigger: Trigger) -> asyncio.Task:
        self._cancel_current()
        self._run_id += 1
        self._running = True
        self.cannot_display = False
        self._task = asyncio.create_task(
            self._collect(trigger, self._run_id), name=f"review-{self._run_id}"
        )
        return self._task

    def _cancel_current(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _collect(self, trigger: Trigger, run_id: int) -> None:
        try:
            async with aclosing(self.pipeline.handle(trigger)) as snapshots:
                async for snapshot in snapshots:
                    if run_id != self._run_id:
                        return
                    self._publish(snapshot)
        except MalformedReferenceError as e:
            logger.error(f"Cannot display {trigger.anchor_reference}: {e}")
            if run_id == self._run_id:
                self._latest = None
                self.cannot_display = True
        except asyncio.CancelledError:
            logger.debug(f"Review run {run_id} cancelled")
            raise
        except Exception as e:
            logger.exception(f"Review run {run_id} failed: {e}")
        finally:
            if run_id == self._run_id:
                self._running = False
                self._notify()

    def _publish(self, snapshot: Snapshot) -> None:
        self._latest = self.tracker.filter(snapshot)
        self._notify()

    def _notify(self) -> None:
        self._version += 1
        self._changed.set()

    async def updates(self) -> AsyncIterator[Snapshot]:
        """
        Yield the latest snapshot each time it changes, until the current
        review finishes. Intermediate snapshots may be skipped.
        """
        seen = None
        last = None
        while True:
            self._changed.clear()
            if self._version != seen:
                seen = self._version
                items = self.items
                if items is not None and items != last:
                    last = items
                    yield items
                continue
            if not self._running:
                return
            await self._changed.wait()

    def on_item_deleted(self, item: MediaItem) -> None:
        """Record a confirmed deletion and drop the item from the current view."""
        self.tracker.mark_deleted(item.id)
        if self._latest is not None:
            self._publish(self._latest)

    def resume_capture_action(self, token: Any) -> None:
        """Hand the capture action's token back to the capture tool."""
        if self.launcher is None:
            logger.error("No capture launcher configured, cannot resume capture")
            return
        logger.info("Going back to capture")
        self.launcher(token)

    async def close(self) -> None:
        """Cancel the running review and wait for it to release its resources."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # A task cancelled before its first step never ran its own cleanup
        self._running = False
        self._notify()
