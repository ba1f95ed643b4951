# src/review/watcher.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Waiting for one media item to finish being written.

The store can only say "this row changed", so a wait is: probe, subscribe,
probe again, then re-probe on every notification until the row reads ready.
The second probe closes the gap between the first probe and the
subscription. The subscription is released on every exit path, including
cancellation.
"""

import asyncio
import logging

from store.base import MediaStore

from .readiness import ReadinessProbe

logger = logging.getLogger(__name__)


class ReadinessWatcher:
    def __init__(self, store: MediaStore, probe: ReadinessProbe):
        self.store = store
        self.probe = probe

    async def _probe(self, reference: str) -> bool:
        # Store queries block; keep them off the event loop
        return await asyncio.to_thread(self.probe.is_ready, reference)

    async def await_ready(self, reference: str) -> None:
        """
        Return once the store reports ``reference`` as fully written.

        Cancelling the caller unregisters the subscription. Errors raised
        while subscribing propagate to the caller.
        """
        if await self._probe(reference):
            logger.debug(f"{reference} was ready before waiting")
            return

        loop = asyncio.get_running_loop()
        changed = asyncio.Event()

        def on_change() -> None:
            # Runs on the store's notification context; only signal the waiter
            loop.call_soon_threadsafe(changed.set)

        subscription = self.store.subscribe(reference, on_change)
        try:
            logger.debug(f"Waiting for {reference} to become ready")
            if await self._probe(reference):
                logger.debug(f"{reference} became ready while subscribing")
                return
            while True:
                await changed.wait()
                # Clear before probing so a change during the probe wakes us again
                changed.clear()
                if await self._probe(reference):
                    logger.debug(f"{reference} is ready")
                    return
                logger.debug(f"{reference} changed but is still pending")
        finally:
            subscription.unsubscribe()
