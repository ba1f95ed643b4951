# tests/test_sibling_resolver.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

from media.locators import locator_for_id
from media.media_types import MediaItem
from review.readiness import ReadinessProbe
from review.siblings import SiblingResolver, merge_anchor


def make_resolver(store, limit=42):
    return SiblingResolver(store, ReadinessProbe(store), discovery_limit=limit)


def summary(items):
    return [(item.id, item.mime_type, item.ready) for item in items]


class TestExplicitMode:
    def test_keeps_given_order_and_state(self, fake_store):
        fake_store.add(5, pending=False)
        fake_store.add(4, pending=True, mime_type="video/mp4")
        fake_store.add(3, pending=False)

        items = make_resolver(fake_store).resolve(fake_store.locator(5), [5, 4, 3])

        assert summary(items) == [
            (5, "image/jpeg", True),
            (4, "video/mp4", False),
            (3, "image/jpeg", True),
        ]
        assert items[1].locator == "content://media/external/video/media/4"

    def test_failed_lookup_keeps_id_as_not_ready(self, fake_store):
        fake_store.add(5)
        fake_store.add(4)
        fake_store.failing_records.add(4)

        items = make_resolver(fake_store).resolve(fake_store.locator(5), [5, 4, 9])

        assert summary(items) == [
            (5, "image/jpeg", True),
            (4, None, False),
            (9, None, False),
        ]
        assert items[2].locator == "content://media/external/file/9"

    def test_does_not_query_bucket(self, fake_store):
        fake_store.add(5, bucket_id=1)
        make_resolver(fake_store).resolve(fake_store.locator(5), [5])
        assert fake_store.group_queries == []

    def test_empty_list_resolves_to_nothing(self, fake_store):
        fake_store.add(5, bucket_id=1)
        assert make_resolver(fake_store).resolve(fake_store.locator(5), []) == []


class TestDiscoveryMode:
    def test_lists_bucket_newest_first(self, fake_store):
        fake_store.add(3, bucket_id=7)
        fake_store.add(5, bucket_id=7, pending=True)
        fake_store.add(4, bucket_id=7, mime_type="video/mp4")
        fake_store.add(6, bucket_id=8)

        items = make_resolver(fake_store).resolve(fake_store.locator(5))

        assert [item.id for item in items] == [5, 4, 3]
        assert [item.ready for item in items] == [False, True, True]

    def test_passes_configured_limit(self, fake_store):
        for media_id in range(1, 11):
            fake_store.add(media_id, bucket_id=7)

        items = make_resolver(fake_store, limit=3).resolve(fake_store.locator(10))

        assert fake_store.group_queries == [(7, 3)]
        assert [item.id for item in items] == [10, 9, 8]

    def test_without_bucket_anchor_is_alone(self, fake_store):
        anchor = fake_store.add(5, bucket_id=None, pending=True)

        items = make_resolver(fake_store).resolve(anchor, mime_type_hint="image/png")

        assert items == [MediaItem(id=5, locator=anchor, mime_type="image/png", ready=False)]
        assert fake_store.group_queries == []

    def test_empty_listing_falls_back_to_anchor(self, fake_store, monkeypatch):
        anchor = fake_store.add(5, bucket_id=7)
        monkeypatch.setattr(fake_store, "query_group", lambda group_key, limit: [])

        items = make_resolver(fake_store).resolve(anchor)

        assert [item.id for item in items] == [5]
        assert items[0].locator == anchor

    def test_listing_failure_falls_back_to_anchor(self, fake_store):
        anchor = fake_store.add(5, bucket_id=7)
        fake_store.add(4, bucket_id=7)
        fake_store.fail_group = True

        items = make_resolver(fake_store).resolve(anchor)

        assert [item.id for item in items] == [5]

    def test_unknown_anchor_row_falls_back_to_anchor(self, fake_store):
        anchor = "content://media/external/images/media/31"

        items = make_resolver(fake_store).resolve(anchor)

        assert summary(items) == [(31, None, False)]

    def test_bucket_lookup_failure_falls_back_to_anchor(self, fake_store):
        anchor = fake_store.add(5, bucket_id=7)
        fake_store.add(4, bucket_id=7)
        fake_store.fail_group_key = True

        items = make_resolver(fake_store).resolve(anchor)

        assert [item.id for item in items] == [5]


class TestMergeAnchor:
    def anchor(self, media_id=5, ready=False):
        return MediaItem(
            id=media_id,
            locator=locator_for_id(media_id, "image/jpeg"),
            mime_type="image/jpeg",
            ready=ready,
        )

    def test_listed_anchor_appears_once(self):
        siblings = [self.anchor(5), self.anchor(4), self.anchor(3)]
        merged = merge_anchor(self.anchor(5), siblings)
        assert [item.id for item in merged] == [5, 4, 3]

    def test_anchor_alone(self):
        anchor = self.anchor(5)
        assert merge_anchor(anchor, [anchor]) == [anchor]

    def test_listed_anchor_keeps_listed_position(self):
        siblings = [self.anchor(8), self.anchor(5), self.anchor(2)]
        merged = merge_anchor(self.anchor(5), siblings)
        assert [item.id for item in merged] == [8, 5, 2]

    def test_ready_anchor_never_goes_back_to_pending(self):
        merged = merge_anchor(self.anchor(5, ready=True), [self.anchor(5, ready=False)])
        assert merged[0].ready is True

    def test_unlisted_anchor_is_inserted_by_id(self):
        siblings = [self.anchor(9), self.anchor(7), self.anchor(3)]
        merged = merge_anchor(self.anchor(5), siblings)
        assert [item.id for item in merged] == [9, 7, 5, 3]

    def test_unlisted_oldest_anchor_goes_last(self):
        merged = merge_anchor(self.anchor(1), [self.anchor(9), self.anchor(7)])
        assert [item.id for item in merged] == [9, 7, 1]

    def test_duplicate_siblings_are_collapsed(self):
        merged = merge_anchor(self.anchor(5), [self.anchor(5), self.anchor(4), self.anchor(4)])
        assert [item.id for item in merged] == [5, 4]
