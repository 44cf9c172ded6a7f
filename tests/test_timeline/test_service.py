"""Tests for TimelineService paging and waterline computation."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from src.errors import ValidationError
from src.timeline.config import TimelineConfig
from src.timeline.repository import TimelineRepository
from src.timeline.schemas import (
    EPOCH,
    MAX_WATERLINE,
    TimelineItem,
    first_instant_after,
    to_waterline,
)
from src.timeline.service import TimelineService

NEWEST = datetime(2026, 2, 1, 12, 0, 0, 500, tzinfo=timezone.utc)


@pytest.fixture
def timeline_repo():
    repo = AsyncMock(spec=TimelineRepository)
    repo.fetch_page.return_value = []
    return repo


@pytest.fixture
def service(timeline_repo):
    return TimelineService(timeline_repo)


class TestGetTimeline:
    @pytest.mark.asyncio
    async def test_defaults(self, service, timeline_repo):
        page = await service.get_timeline("acct_bob")

        timeline_repo.fetch_page.assert_awaited_once_with(
            "acct_bob", first_instant_after(0), 50
        )
        assert first_instant_after(0) > EPOCH
        assert page.items == []
        assert page.waterline == 0

    @pytest.mark.asyncio
    async def test_empty_page_echoes_since(self, service, timeline_repo):
        since = to_waterline(NEWEST)

        page = await service.get_timeline("acct_bob", since=since)

        assert timeline_repo.fetch_page.call_args[0][1] == first_instant_after(since)
        assert page.waterline == since

    @pytest.mark.asyncio
    async def test_waterline_is_newest_entry(self, service, timeline_repo, sample_pin):
        older = datetime(2026, 1, 1, tzinfo=timezone.utc)
        timeline_repo.fetch_page.return_value = [
            TimelineItem(pin=sample_pin, timeline_created_at=NEWEST),
            TimelineItem(pin=sample_pin, timeline_created_at=older),
        ]

        page = await service.get_timeline("acct_bob")

        assert page.waterline == to_waterline(NEWEST)
        assert len(page.items) == 2

    @pytest.mark.asyncio
    async def test_limit_clamped(self, timeline_repo):
        service = TimelineService(timeline_repo, TimelineConfig(max_page_size=10))

        await service.get_timeline("acct_bob", limit=500)

        assert timeline_repo.fetch_page.call_args[0][2] == 10

    @pytest.mark.asyncio
    async def test_rejects_negative_since(self, service, timeline_repo):
        with pytest.raises(ValidationError) as exc_info:
            await service.get_timeline("acct_bob", since=-1)
        assert exc_info.value.error == "Invalid since"
        timeline_repo.fetch_page.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_zero_limit(self, service):
        with pytest.raises(ValidationError):
            await service.get_timeline("acct_bob", limit=0)

    @pytest.mark.asyncio
    async def test_accepts_max_waterline(self, service, timeline_repo):
        page = await service.get_timeline("acct_bob", since=MAX_WATERLINE)
        assert page.waterline == MAX_WATERLINE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("since", [MAX_WATERLINE + 1, 10**18])
    async def test_rejects_out_of_range_since(self, service, timeline_repo, since):
        with pytest.raises(ValidationError) as exc_info:
            await service.get_timeline("acct_bob", since=since)
        assert exc_info.value.error == "Invalid since"
        assert exc_info.value.status_code == 400
        timeline_repo.fetch_page.assert_not_called()
