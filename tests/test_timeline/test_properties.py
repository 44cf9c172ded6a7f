"""End-to-end timeline behavior over in-memory storage.

Covers follow backfill, unfollow retraction, self-visibility, ordering,
waterline polling, and owner-only deletion across the pin, follow, and
timeline services.
"""

import pytest

from src.api.models import epoch_seconds
from src.errors import FanoutError, PermissionDenied, SelfFollowError


async def _feed(services, viewer_id, since=0, limit=None):
    return await services.timeline.get_timeline(viewer_id, since=since, limit=limit)


def _pin_ids(page):
    return [item.pin.id for item in page.items]


class TestScenarios:
    @pytest.mark.asyncio
    async def test_follow_publish_unfollow_walkthrough(self, services):
        p1 = await services.pins.create_pin("u1", {"img": "p1"}, caption="hello")

        page = await _feed(services, "u1")
        assert _pin_ids(page) == [p1.id]
        assert page.items[0].pin.caption == "hello"

        await services.follows.follow("u2", "u1")
        assert _pin_ids(await _feed(services, "u2")) == [p1.id]

        p2 = await services.pins.create_pin("u1", {"img": "p2"})
        page = await _feed(services, "u2", since=epoch_seconds(p1.created_at))
        assert _pin_ids(page) == [p2.id]

        await services.follows.unfollow("u2", "u1")
        assert _pin_ids(await _feed(services, "u2")) == []

    @pytest.mark.asyncio
    async def test_self_follow_rejected(self, services):
        with pytest.raises(SelfFollowError) as exc_info:
            await services.follows.follow("u3", "u3")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, services):
        await services.pins.create_pin("u1", "p1")
        p2 = await services.pins.create_pin("u1", "p2")

        with pytest.raises(PermissionDenied):
            await services.pins.delete_pin(p2.id, "u4")

        assert (await services.pins.get_pin(p2.id)).id == p2.id


class TestVisibility:
    @pytest.mark.asyncio
    async def test_backfill_includes_prior_pins_up_to_cap(self, services):
        pins = [await services.pins.create_pin("u1", f"p{i}") for i in range(5)]

        await services.follows.follow("u2", "u1")
        await services.fanout.backfill("u3", "u1", limit=3)

        newest_first = [p.id for p in reversed(pins)]
        assert _pin_ids(await _feed(services, "u2")) == newest_first
        assert _pin_ids(await _feed(services, "u3")) == newest_first[:3]

    @pytest.mark.asyncio
    async def test_unfollow_removes_every_entry_by_author(self, services):
        await services.pins.create_pin("u3", "other")
        await services.follows.follow("u2", "u1")
        await services.follows.follow("u2", "u3")
        for i in range(4):
            await services.pins.create_pin("u1", f"p{i}")

        await services.follows.unfollow("u2", "u1")

        page = await _feed(services, "u2")
        assert page.items
        assert all(item.pin.account_id != "u1" for item in page.items)

    @pytest.mark.asyncio
    async def test_author_sees_own_pin_without_follows(self, services):
        pin = await services.pins.create_pin("u4", "solo")
        assert _pin_ids(await _feed(services, "u4")) == [pin.id]

    @pytest.mark.asyncio
    async def test_publish_reaches_all_followers_across_batches(self, services):
        for follower in ("u2", "u3", "u4"):
            await services.follows.follow(follower, "u1")

        pin = await services.pins.create_pin("u1", "wide")

        for viewer in ("u1", "u2", "u3", "u4"):
            assert _pin_ids(await _feed(services, viewer)) == [pin.id]

    @pytest.mark.asyncio
    async def test_deleting_pin_removes_it_from_feeds(self, services):
        await services.follows.follow("u2", "u1")
        pin = await services.pins.create_pin("u1", "gone")

        await services.pins.delete_pin(pin.id, "u1")

        assert _pin_ids(await _feed(services, "u1")) == []
        assert _pin_ids(await _feed(services, "u2")) == []


class TestOrderingAndPolling:
    @pytest.mark.asyncio
    async def test_feed_is_newest_first(self, services):
        await services.follows.follow("u2", "u1")
        await services.follows.follow("u2", "u3")
        for author in ("u1", "u3", "u1", "u3", "u1"):
            await services.pins.create_pin(author, "x")

        page = await _feed(services, "u2")

        stamps = [item.timeline_created_at for item in page.items]
        assert len(stamps) == 5
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.asyncio
    async def test_polling_with_waterline_never_repeats(self, services):
        await services.follows.follow("u2", "u1")
        await services.pins.create_pin("u1", "a")
        await services.pins.create_pin("u1", "b")

        first = await _feed(services, "u2")
        assert len(first.items) == 2

        again = await _feed(services, "u2", since=first.waterline)
        assert again.items == []
        assert again.waterline == first.waterline

        newer = await services.pins.create_pin("u1", "c")
        second = await _feed(services, "u2", since=first.waterline)

        assert _pin_ids(second) == [newer.id]
        assert not set(_pin_ids(second)) & set(_pin_ids(first))
        assert second.waterline > first.waterline

    @pytest.mark.asyncio
    async def test_waterline_matches_pin_created_at_seconds(self, services):
        pin = await services.pins.create_pin("u1", "a")

        page = await _feed(services, "u1")

        assert page.waterline == epoch_seconds(pin.created_at)
        assert page.items[0].waterline == epoch_seconds(pin.created_at)

    @pytest.mark.asyncio
    async def test_same_second_entry_skipped_by_next_poll(self, services, store):
        await services.follows.follow("u2", "u1")
        store.frozen = True
        first_pin = await services.pins.create_pin("u1", "a")

        first = await _feed(services, "u2")
        assert _pin_ids(first) == [first_pin.id]

        late = await services.pins.create_pin("u1", "b")
        assert late.created_at == first_pin.created_at

        assert _pin_ids(await _feed(services, "u2", since=first.waterline)) == []
        assert late.id in _pin_ids(await _feed(services, "u2"))

    @pytest.mark.asyncio
    async def test_limit_caps_page(self, services):
        for i in range(4):
            await services.pins.create_pin("u1", f"p{i}")

        page = await _feed(services, "u1", limit=2)

        assert len(page.items) == 2
        assert page.waterline == page.items[0].waterline


class TestRecovery:
    @pytest.mark.asyncio
    async def test_retried_backfill_does_not_duplicate(self, services):
        await services.pins.create_pin("u1", "p")
        await services.follows.follow("u2", "u1")

        assert await services.fanout.backfill("u2", "u1") == 0
        assert len((await _feed(services, "u2")).items) == 1

    @pytest.mark.asyncio
    async def test_partial_publish_is_repaired_by_rebuild(self, services):
        for follower in ("u2", "u3", "u4"):
            await services.follows.follow(follower, "u1")
        # batches of two viewers: [u1, fX], [fY, fZ]; fail the second
        services.timeline_repo.fail_calls = {services.timeline_repo.insert_calls + 2}

        with pytest.raises(FanoutError) as exc_info:
            await services.pins.create_pin("u1", "partial")

        assert exc_info.value.written == 2
        assert exc_info.value.failed_batches == 1
        pin_id = next(iter(services.store.pins))
        visible = [v for (p, v) in services.store.timeline if p == pin_id]
        assert len(visible) == 2

        written = await services.fanout.rebuild_account("u1")

        assert written == 4
        assert services.database.transactions == 1
        for viewer in ("u1", "u2", "u3", "u4"):
            assert _pin_ids(await _feed(services, viewer)) == [pin_id]
