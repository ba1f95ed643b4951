# tests/test_aggregation_pipeline.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

import asyncio
import threading

import pytest
from test_utils import describe, settle, wait_until

from media.exceptions import MalformedReferenceError
from media.media_types import CaptureAction, MediaItem
from review.pipeline import AggregationPipeline, Trigger
from review.readiness import ReadinessProbe
from review.siblings import SiblingResolver


async def next_snapshot(snapshots, timeout=1):
    return await asyncio.wait_for(snapshots.__anext__(), timeout)


async def collect_into(snapshots, received):
    async for snapshot in snapshots:
        received.append(snapshot)


def assert_well_formed(history):
    """Unique ids per snapshot and no id ever going from ready back to pending."""
    seen_ready = set()
    for snapshot in history:
        ids = [item.id for item in snapshot]
        assert len(ids) == len(set(ids)), f"duplicate ids in {describe(snapshot)}"
        assert isinstance(snapshot[0], CaptureAction)
        ready_now = {item.id for item in snapshot if isinstance(item, MediaItem) and item.ready}
        still_listed = {item.id for item in snapshot}
        assert seen_ready & still_listed <= ready_now, f"readiness regressed in {describe(snapshot)}"
        seen_ready |= ready_now


class BlockingResolver:
    """Resolver whose resolve() blocks until released, to model slow bucket queries."""

    def __init__(self, inner):
        self.inner = inner
        self.release = threading.Event()

    def resolve(self, *args, **kwargs):
        self.release.wait(timeout=5)
        return self.inner.resolve(*args, **kwargs)


class FailingResolver:
    def resolve(self, *args, **kwargs):
        raise RuntimeError("bucket index unavailable")


@pytest.mark.asyncio
async def test_first_snapshot_does_not_wait_for_resolution(fake_store):
    anchor = fake_store.add(5, bucket_id=7, pending=True)
    fake_store.add(4, bucket_id=7)
    resolver = BlockingResolver(SiblingResolver(fake_store, ReadinessProbe(fake_store)))
    pipeline = AggregationPipeline(fake_store, resolver=resolver)
    snapshots = pipeline.handle(Trigger(anchor_reference=anchor, capture_token="relaunch"))

    try:
        first = await next_snapshot(snapshots)
        assert describe(first) == ["capture", (5, False)]
        assert first[0].token == "relaunch"
        assert first[1].locator == anchor

        resolved_next = asyncio.create_task(snapshots.__anext__())
        await settle()
        assert not resolved_next.done()

        resolver.release.set()
        resolved = await asyncio.wait_for(resolved_next, 1)
        assert describe(resolved) == ["capture", (5, False), (4, True)]
    finally:
        resolver.release.set()
        await snapshots.aclose()
    assert fake_store.subscription_count == 0


@pytest.mark.asyncio
async def test_explicit_ids_progress_to_all_ready(fake_store):
    fake_store.add(5, pending=False)
    fake_store.add(4, pending=True)
    fake_store.add(3, pending=False)
    trigger = Trigger(anchor_reference=fake_store.locator(5), explicit_ids=(5, 4, 3))
    snapshots = AggregationPipeline(fake_store).handle(trigger)

    assert describe(await next_snapshot(snapshots)) == ["capture", (5, True)]
    resolved = await next_snapshot(snapshots)
    assert describe(resolved) == ["capture", (5, True), (4, False), (3, True)]

    pending_next = asyncio.create_task(snapshots.__anext__())
    await wait_until(lambda: fake_store.subscription_count == 1)
    await settle()
    # Nothing may report 4 as ready before its write completes
    assert not pending_next.done()

    fake_store.set_ready(4)
    final = await asyncio.wait_for(pending_next, 1)
    assert describe(final) == ["capture", (5, True), (4, True), (3, True)]

    with pytest.raises(StopAsyncIteration):
        await next_snapshot(snapshots)
    assert fake_store.subscription_count == 0


@pytest.mark.asyncio
async def test_all_ready_stops_after_resolution(fake_store):
    anchor = fake_store.add(5, bucket_id=7)
    fake_store.add(4, bucket_id=7)
    received = []

    await asyncio.wait_for(
        collect_into(AggregationPipeline(fake_store).handle(Trigger(anchor)), received), 1
    )

    assert [describe(snapshot) for snapshot in received] == [
        ["capture", (5, True)],
        ["capture", (5, True), (4, True)],
    ]
    assert fake_store.subscribe_calls == 0


@pytest.mark.asyncio
async def test_discovered_anchor_listed_first_appears_once(fake_store):
    anchor = fake_store.add(5, bucket_id=7)
    fake_store.add(4, bucket_id=7)
    fake_store.add(3, bucket_id=7)
    received = []

    await asyncio.wait_for(
        collect_into(AggregationPipeline(fake_store).handle(Trigger(anchor)), received), 1
    )

    assert [item.id for item in received[-1]] == [-1, 5, 4, 3]


@pytest.mark.asyncio
async def test_anchor_without_bucket_is_its_own_sibling(fake_store):
    anchor = fake_store.add(5, bucket_id=None)
    received = []

    await asyncio.wait_for(
        collect_into(AggregationPipeline(fake_store).handle(Trigger(anchor)), received), 1
    )

    assert [describe(snapshot) for snapshot in received] == [
        ["capture", (5, True)],
        ["capture", (5, True)],
    ]


@pytest.mark.asyncio
async def test_resolver_failure_degrades_to_anchor(fake_store):
    anchor = fake_store.add(5, bucket_id=7)
    fake_store.add(4, bucket_id=7)
    received = []
    pipeline = AggregationPipeline(fake_store, resolver=FailingResolver())

    await asyncio.wait_for(collect_into(pipeline.handle(Trigger(anchor)), received), 1)

    assert describe(received[-1]) == ["capture", (5, True)]


@pytest.mark.asyncio
async def test_malformed_anchor_ends_before_any_snapshot(fake_store):
    snapshots = AggregationPipeline(fake_store).handle(
        Trigger("content://media/external/images/media/not-a-number")
    )
    with pytest.raises(MalformedReferenceError):
        await next_snapshot(snapshots)


@pytest.mark.asyncio
async def test_pending_siblings_converge_in_completion_order(fake_store):
    anchor = fake_store.add(6, bucket_id=7, pending=True)
    fake_store.add(5, bucket_id=7, pending=True)
    fake_store.add(4, bucket_id=7, pending=True)
    fake_store.add(3, bucket_id=7)
    received = []
    consumer = asyncio.create_task(
        collect_into(AggregationPipeline(fake_store).handle(Trigger(anchor)), received)
    )

    await wait_until(lambda: fake_store.subscription_count == 3)
    assert fake_store.subscribed_ids() == [4, 5, 6]

    fake_store.set_ready(4)
    await wait_until(lambda: len(received) == 3)
    assert describe(received[-1]) == ["capture", (6, False), (5, False), (4, True), (3, True)]

    fake_store.set_ready(6)
    await wait_until(lambda: len(received) == 4)
    fake_store.set_ready(5)
    await asyncio.wait_for(consumer, 1)

    assert len(received) == 5
    assert describe(received[-1]) == ["capture", (6, True), (5, True), (4, True), (3, True)]
    assert_well_formed(received)
    assert fake_store.subscription_count == 0


@pytest.mark.asyncio
async def test_failed_wait_leaves_only_that_item_pending(fake_store):
    anchor = fake_store.add(5, pending=True)
    fake_store.add(4, pending=True)
    fake_store.fail_subscribe.add(4)
    received = []
    consumer = asyncio.create_task(
        collect_into(
            AggregationPipeline(fake_store).handle(Trigger(anchor, explicit_ids=(5, 4))),
            received,
        )
    )

    await wait_until(lambda: fake_store.subscription_count == 1)
    fake_store.set_ready(5)
    await asyncio.wait_for(consumer, 1)

    assert describe(received[-1]) == ["capture", (5, True), (4, False)]
    assert len(received) == 3
    assert fake_store.subscription_count == 0


@pytest.mark.asyncio
async def test_cancelling_consumer_releases_every_subscription(fake_store):
    for media_id in (5, 4, 3):
        fake_store.add(media_id, pending=True)
    before = fake_store.subscription_count
    received = []
    consumer = asyncio.create_task(
        collect_into(
            AggregationPipeline(fake_store).handle(
                Trigger(fake_store.locator(5), explicit_ids=(5, 4, 3))
            ),
            received,
        )
    )

    await wait_until(lambda: fake_store.subscription_count == 3)
    consumer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await consumer

    assert fake_store.subscription_count == before


@pytest.mark.asyncio
async def test_closing_mid_progress_releases_remaining_subscriptions(fake_store):
    for media_id in (5, 4, 3):
        fake_store.add(media_id, pending=True)
    snapshots = AggregationPipeline(fake_store).handle(
        Trigger(fake_store.locator(5), explicit_ids=(5, 4, 3))
    )
    await next_snapshot(snapshots)
    await next_snapshot(snapshots)

    pending_next = asyncio.create_task(snapshots.__anext__())
    await wait_until(lambda: fake_store.subscription_count == 3)
    fake_store.set_ready(4)
    promoted = await asyncio.wait_for(pending_next, 1)
    assert describe(promoted) == ["capture", (5, False), (4, True), (3, False)]
    assert fake_store.subscription_count == 2

    await snapshots.aclose()
    assert fake_store.subscription_count == 0
