"""Timeline repository: bulk writes and per-viewer reads of the ``timeline`` table.

Writes are single ``INSERT ... SELECT FROM unnest(...)`` statements with
``ON CONFLICT DO NOTHING`` on ``(pin_id, visible_to_account_id)``, so a
retried publish or backfill never duplicates a row. Methods that take
``conn`` run on that connection, which lets a caller group them in one
transaction.
"""

import logging
from datetime import datetime

import asyncpg

from src.pins.repository import row_to_pin
from src.storage.database import Database, affected_rows
from src.timeline.schemas import TimelineEntry, TimelineItem

logger = logging.getLogger(__name__)

_INSERT_ENTRIES_SQL = """
INSERT INTO timeline (id, pin_id, account_id, visible_to_account_id, created_at)
SELECT * FROM unnest(
    $1::text[], $2::text[], $3::text[], $4::text[], $5::timestamptz[]
)
ON CONFLICT (pin_id, visible_to_account_id) DO NOTHING
"""


class TimelineRepository:
    """Repository owned by the fan-out service; nothing else writes here."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def insert_entries(
        self,
        entries: list[TimelineEntry],
        *,
        conn: asyncpg.Connection | None = None,
    ) -> int:
        """Insert entries, skipping any that already exist.

        Returns:
            Number of rows actually inserted.
        """
        if not entries:
            return 0

        executor = conn or self._db
        status = await executor.execute(
            _INSERT_ENTRIES_SQL,
            [e.id for e in entries],
            [e.pin_id for e in entries],
            [e.account_id for e in entries],
            [e.visible_to_account_id for e in entries],
            [e.created_at for e in entries],
        )
        return affected_rows(status)

    async def delete_for_follow(self, viewer_id: str, author_id: str) -> int:
        """Remove every entry by ``author_id`` from ``viewer_id``'s feed."""
        sql = """
            DELETE FROM timeline
            WHERE visible_to_account_id = $1 AND account_id = $2
        """
        status = await self._db.execute(sql, viewer_id, author_id)
        return affected_rows(status)

    async def delete_by_author(
        self,
        author_id: str,
        *,
        conn: asyncpg.Connection | None = None,
    ) -> int:
        """Remove every entry for pins authored by ``author_id``, in all feeds."""
        executor = conn or self._db
        status = await executor.execute(
            "DELETE FROM timeline WHERE account_id = $1", author_id
        )
        return affected_rows(status)

    async def fetch_page(
        self,
        viewer_id: str,
        not_before: datetime,
        limit: int,
    ) -> list[TimelineItem]:
        """Get entries created at or after ``not_before`` for a viewer, newest first."""
        sql = """
            SELECT p.*, a.username, a.display_name,
                   t.created_at AS timeline_created_at
            FROM timeline t
            JOIN pins p ON t.pin_id = p.id
            JOIN accounts a ON p.account_id = a.id
            WHERE t.visible_to_account_id = $1 AND t.created_at >= $2
            ORDER BY t.created_at DESC
            LIMIT $3
        """
        rows = await self._db.fetch(sql, viewer_id, not_before, limit)
        return [
            TimelineItem(
                pin=row_to_pin(row),
                timeline_created_at=row["timeline_created_at"],
            )
            for row in rows
        ]
