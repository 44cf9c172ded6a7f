"""In-memory repositories for exercising the real timeline services end to end.

The fakes mirror the SQL semantics the services rely on: unique
``(pin_id, visible_to_account_id)`` entries, newest-first ordering,
second-resolution ``since`` filtering, and pin deletion cascading to
timeline rows.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import asyncpg
import pytest

from src.accounts.schemas import Account
from src.follows.schemas import FollowEdge, FollowedAccount
from src.follows.service import FollowService
from src.pins.schemas import Pin
from src.pins.service import PinService
from src.timeline.config import TimelineConfig
from src.timeline.fanout import FanoutService
from src.timeline.schemas import TimelineEntry, TimelineItem
from src.timeline.service import TimelineService

# Sub-second part makes waterline truncation observable.
START = datetime(2026, 3, 1, 8, 0, 0, 250_000, tzinfo=timezone.utc)


@dataclass
class Store:
    """Shared state behind the fake repositories."""

    accounts: dict[str, Account] = field(default_factory=dict)
    follows: dict[tuple[str, str], FollowEdge] = field(default_factory=dict)
    pins: dict[str, Pin] = field(default_factory=dict)
    timeline: dict[tuple[str, str], TimelineEntry] = field(default_factory=dict)
    ticks: int = 0
    frozen: bool = False

    def now(self) -> datetime:
        if not self.frozen:
            self.ticks += 1
        return START + timedelta(seconds=self.ticks)

    def add_account(self, account_id: str) -> Account:
        account = Account(
            id=account_id,
            username=account_id,
            email=f"{account_id}@example.com",
            display_name=account_id.upper(),
        )
        self.accounts[account_id] = account
        return account


class FakeDatabase:
    def __init__(self) -> None:
        self.transactions = 0

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield None


class FakeAccountRepository:
    def __init__(self, store: Store) -> None:
        self._store = store

    async def exists(self, account_id: str) -> bool:
        return account_id in self._store.accounts


class FakeFollowRepository:
    def __init__(self, store: Store) -> None:
        self._store = store

    async def create(self, edge: FollowEdge) -> FollowEdge:
        key = (edge.follower_id, edge.following_id)
        if key in self._store.follows:
            raise asyncpg.UniqueViolationError("duplicate follow")
        edge.created_at = self._store.now()
        edge.username = self._store.accounts[edge.following_id].username
        self._store.follows[key] = edge
        return edge

    async def exists(self, follower_id: str, following_id: str) -> bool:
        return (follower_id, following_id) in self._store.follows

    async def delete(self, follower_id: str, following_id: str) -> bool:
        return self._store.follows.pop((follower_id, following_id), None) is not None

    async def list_follower_ids(self, account_id: str, *, conn=None) -> list[str]:
        return [f for f, t in self._store.follows if t == account_id]

    async def list_followers(self, account_id, *, limit=50, offset=0):
        edges = [e for (_, t), e in self._store.follows.items() if t == account_id]
        edges.sort(key=lambda e: e.created_at, reverse=True)
        return [
            FollowedAccount(
                id=e.follower_id,
                username=self._store.accounts[e.follower_id].username,
                display_name=None,
                created_at=e.created_at,
            )
            for e in edges[offset : offset + limit]
        ]


class FakePinRepository:
    def __init__(self, store: Store) -> None:
        self._store = store

    async def create(self, pin: Pin) -> Pin:
        pin.created_at = pin.updated_at = self._store.now()
        pin.username = self._store.accounts[pin.account_id].username
        self._store.pins[pin.id] = pin
        return pin

    async def get_by_id(self, pin_id: str) -> Pin | None:
        return self._store.pins.get(pin_id)

    async def get_owner_id(self, pin_id: str) -> str | None:
        pin = self._store.pins.get(pin_id)
        return pin.account_id if pin else None

    async def list_recent_refs(self, account_id, limit=None, *, conn=None):
        pins = sorted(
            (p for p in self._store.pins.values() if p.account_id == account_id),
            key=lambda p: p.created_at,
            reverse=True,
        )
        if limit is not None:
            pins = pins[:limit]
        return [(p.id, p.created_at) for p in pins]

    async def delete(self, pin_id: str) -> bool:
        if self._store.pins.pop(pin_id, None) is None:
            return False
        for key in [k for k in self._store.timeline if k[0] == pin_id]:
            del self._store.timeline[key]
        return True


class FakeTimelineRepository:
    def __init__(self, store: Store) -> None:
        self._store = store
        self.insert_calls = 0
        self.fail_calls: set[int] = set()

    async def insert_entries(self, entries, *, conn=None) -> int:
        self.insert_calls += 1
        if self.insert_calls in self.fail_calls:
            raise ConnectionError("connection lost")
        written = 0
        for entry in entries:
            key = (entry.pin_id, entry.visible_to_account_id)
            if key not in self._store.timeline:
                self._store.timeline[key] = entry
                written += 1
        return written

    async def delete_for_follow(self, viewer_id: str, author_id: str) -> int:
        keys = [
            k
            for k, e in self._store.timeline.items()
            if e.visible_to_account_id == viewer_id and e.account_id == author_id
        ]
        for key in keys:
            del self._store.timeline[key]
        return len(keys)

    async def delete_by_author(self, author_id: str, *, conn=None) -> int:
        keys = [k for k, e in self._store.timeline.items() if e.account_id == author_id]
        for key in keys:
            del self._store.timeline[key]
        return len(keys)

    async def fetch_page(self, viewer_id: str, not_before: datetime, limit: int):
        entries = sorted(
            (
                e
                for e in self._store.timeline.values()
                if e.visible_to_account_id == viewer_id and e.created_at >= not_before
            ),
            key=lambda e: e.created_at,
            reverse=True,
        )
        return [
            TimelineItem(pin=self._store.pins[e.pin_id], timeline_created_at=e.created_at)
            for e in entries[:limit]
        ]


@dataclass
class Services:
    store: Store
    database: FakeDatabase
    timeline_repo: FakeTimelineRepository
    fanout: FanoutService
    follows: FollowService
    pins: PinService
    timeline: TimelineService


@pytest.fixture
def store() -> Store:
    store = Store()
    for account_id in ("u1", "u2", "u3", "u4"):
        store.add_account(account_id)
    return store


@pytest.fixture
def services(store) -> Services:
    """Real services wired to the in-memory store, with tiny fan-out batches."""
    config = TimelineConfig(fanout_batch_size=2, fanout_concurrency=2)
    database = FakeDatabase()
    timeline_repo = FakeTimelineRepository(store)
    follow_repo = FakeFollowRepository(store)
    pin_repo = FakePinRepository(store)
    fanout = FanoutService(database, timeline_repo, follow_repo, pin_repo, config)
    return Services(
        store=store,
        database=database,
        timeline_repo=timeline_repo,
        fanout=fanout,
        follows=FollowService(follow_repo, FakeAccountRepository(store), fanout),
        pins=PinService(pin_repo, fanout),
        timeline=TimelineService(timeline_repo, config),
    )
