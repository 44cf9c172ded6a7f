"""Timeline fan-out: keeps the denormalized ``timeline`` table in step with
pins and follows.

Operations:
- publish: one entry per current follower of the author, plus the author
- backfill: a new follower gets the followed account's recent pins
- retract: an unfollow removes the followed account's entries from the feed
- rebuild_account: drop and regenerate every entry for one author

Publish and backfill run on the request path and are not atomic as a
unit. Batches are written concurrently; if any batch fails the operation
raises FanoutError after the others finish, and the triggering pin or
follow stays committed. Rows are idempotent under retry, so a rebuild or
repeated call repairs a partial fan-out.
"""

import asyncio
import logging
import time
from datetime import datetime

from src.errors import FanoutError
from src.follows.repository import FollowRepository
from src.observability.metrics import get_metrics
from src.pins.repository import PinRepository
from src.storage.database import Database
from src.timeline.config import TimelineConfig
from src.timeline.repository import TimelineRepository
from src.timeline.schemas import TimelineEntry

logger = logging.getLogger(__name__)


def _chunks(entries: list[TimelineEntry], size: int) -> list[list[TimelineEntry]]:
    return [entries[i : i + size] for i in range(0, len(entries), size)]


class FanoutService:
    """Sole writer of timeline entries."""

    def __init__(
        self,
        database: Database,
        timeline_repo: TimelineRepository,
        follow_repo: FollowRepository,
        pin_repo: PinRepository,
        config: TimelineConfig | None = None,
    ) -> None:
        self._db = database
        self._timeline = timeline_repo
        self._follows = follow_repo
        self._pins = pin_repo
        self._config = config or TimelineConfig()

    async def publish(self, pin_id: str, owner_id: str, created_at: datetime) -> int:
        """Make a new pin visible to its author and every current follower.

        Every entry carries the pin's ``created_at`` rather than the write
        time.

        Returns:
            Number of timeline entries written.

        Raises:
            FanoutError: At least one batch failed to write.
        """
        start = time.perf_counter()
        follower_ids = await self._follows.list_follower_ids(owner_id)

        viewers = [owner_id] + [f for f in follower_ids if f != owner_id]
        entries = [
            TimelineEntry(
                pin_id=pin_id,
                account_id=owner_id,
                visible_to_account_id=viewer_id,
                created_at=created_at,
            )
            for viewer_id in viewers
        ]

        written = await self._write("publish", entries)
        get_metrics().record_fanout("publish", written, time.perf_counter() - start)
        logger.debug(
            f"Published pin {pin_id} to {len(viewers)} timelines ({written} new)"
        )
        return written

    async def backfill(
        self,
        follower_id: str,
        followed_id: str,
        limit: int | None = None,
    ) -> int:
        """Copy the followed account's most recent pins into a new follower's feed.

        Each entry keeps its pin's original ``created_at``. Entries the
        follower already has are skipped.
        """
        start = time.perf_counter()
        if limit is None:
            limit = self._config.backfill_limit
        refs = await self._pins.list_recent_refs(followed_id, limit)

        entries = [
            TimelineEntry(
                pin_id=pin_id,
                account_id=followed_id,
                visible_to_account_id=follower_id,
                created_at=pin_created_at,
            )
            for pin_id, pin_created_at in refs
        ]

        written = await self._write("backfill", entries)
        get_metrics().record_fanout("backfill", written, time.perf_counter() - start)
        logger.debug(
            f"Backfilled {written} of {len(refs)} pins from {followed_id} "
            f"into {follower_id}"
        )
        return written

    async def retract(self, follower_id: str, followed_id: str) -> int:
        """Remove the followed account's pins from the former follower's feed."""
        deleted = await self._timeline.delete_for_follow(follower_id, followed_id)
        get_metrics().record_timeline_deleted("unfollow", deleted)
        logger.debug(f"Retracted {deleted} entries of {followed_id} from {follower_id}")
        return deleted

    async def rebuild_account(self, account_id: str) -> int:
        """Regenerate every timeline entry for pins authored by ``account_id``.

        Deletes the author's entries from all feeds, then republishes all
        of the author's pins to the current followers and the author, in
        one transaction.

        Returns:
            Number of timeline entries written.
        """
        start = time.perf_counter()
        async with self._db.transaction() as conn:
            deleted = await self._timeline.delete_by_author(account_id, conn=conn)
            follower_ids = await self._follows.list_follower_ids(account_id, conn=conn)
            refs = await self._pins.list_recent_refs(account_id, None, conn=conn)

            viewers = [account_id] + [f for f in follower_ids if f != account_id]
            entries = [
                TimelineEntry(
                    pin_id=pin_id,
                    account_id=account_id,
                    visible_to_account_id=viewer_id,
                    created_at=pin_created_at,
                )
                for pin_id, pin_created_at in refs
                for viewer_id in viewers
            ]

            written = 0
            for chunk in _chunks(entries, self._config.fanout_batch_size):
                written += await self._timeline.insert_entries(chunk, conn=conn)

        metrics = get_metrics()
        metrics.record_timeline_deleted("rebuild", deleted)
        metrics.record_fanout("rebuild", written, time.perf_counter() - start)
        logger.info(
            f"Rebuilt timeline for {account_id}: {len(refs)} pins, "
            f"{len(viewers)} viewers, {deleted} removed, {written} written"
        )
        return written

    async def _write(self, operation: str, entries: list[TimelineEntry]) -> int:
        """Write entries in concurrent batches, raising if any batch failed."""
        batches = _chunks(entries, self._config.fanout_batch_size)
        if not batches:
            return 0

        semaphore = asyncio.Semaphore(self._config.fanout_concurrency)

        async def write_batch(batch: list[TimelineEntry]) -> int:
            async with semaphore:
                return await self._timeline.insert_entries(batch)

        results = await asyncio.gather(
            *(write_batch(batch) for batch in batches),
            return_exceptions=True,
        )

        written = 0
        failures: list[BaseException] = []
        for result in results:
            if isinstance(result, BaseException):
                failures.append(result)
            else:
                written += result

        if failures:
            get_metrics().record_fanout_error(operation, len(failures))
            logger.error(
                f"Fan-out {operation} failed for {len(failures)} of "
                f"{len(batches)} batches ({written} entries written): {failures[0]}"
            )
            raise FanoutError(
                f"Timeline {operation} incomplete: {len(failures)} of "
                f"{len(batches)} batches failed",
                written=written,
                failed_batches=len(failures),
            ) from failures[0]

        return written
