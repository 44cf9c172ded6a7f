"""Follow repository for the ``follows`` table and account search.

Deletion is physical. The unique ``(follower_id, following_id)``
constraint backs the already-following check under concurrent requests.
"""

import logging
from typing import Any

import asyncpg

from src.follows.schemas import AccountSearchResult, FollowEdge, FollowedAccount
from src.storage.database import Database

logger = logging.getLogger(__name__)


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class FollowRepository:
    """Repository for follow edges."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create(self, edge: FollowEdge) -> FollowEdge:
        """Insert an edge and return it with the followed account's names.

        Raises:
            asyncpg.UniqueViolationError: The edge already exists.
        """
        sql = """
            WITH inserted AS (
                INSERT INTO follows (id, follower_id, following_id, created_at)
                VALUES ($1, $2, $3, $4)
                RETURNING *
            )
            SELECT i.*, a.username, a.display_name
            FROM inserted i
            JOIN accounts a ON i.following_id = a.id
        """
        row = await self._db.fetchrow(
            sql, edge.id, edge.follower_id, edge.following_id, edge.created_at
        )
        return _row_to_edge(row)

    async def exists(self, follower_id: str, following_id: str) -> bool:
        sql = """
            SELECT EXISTS(
                SELECT 1 FROM follows
                WHERE follower_id = $1 AND following_id = $2
            )
        """
        return bool(await self._db.fetchval(sql, follower_id, following_id))

    async def delete(self, follower_id: str, following_id: str) -> bool:
        """Delete an edge. Returns False when there was none."""
        sql = """
            DELETE FROM follows
            WHERE follower_id = $1 AND following_id = $2
            RETURNING id
        """
        deleted_id = await self._db.fetchval(sql, follower_id, following_id)
        return deleted_id is not None

    async def list_followers(
        self,
        account_id: str,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[FollowedAccount]:
        """Accounts following ``account_id``, newest edge first."""
        sql = """
            SELECT a.id, a.username, a.display_name, f.created_at
            FROM follows f
            JOIN accounts a ON f.follower_id = a.id
            WHERE f.following_id = $1
            ORDER BY f.created_at DESC
            LIMIT $2 OFFSET $3
        """
        rows = await self._db.fetch(sql, account_id, limit, offset)
        return [_row_to_followed(row) for row in rows]

    async def list_following(
        self,
        account_id: str,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[FollowedAccount]:
        """Accounts ``account_id`` follows, newest edge first."""
        sql = """
            SELECT a.id, a.username, a.display_name, f.created_at
            FROM follows f
            JOIN accounts a ON f.following_id = a.id
            WHERE f.follower_id = $1
            ORDER BY f.created_at DESC
            LIMIT $2 OFFSET $3
        """
        rows = await self._db.fetch(sql, account_id, limit, offset)
        return [_row_to_followed(row) for row in rows]

    async def list_follower_ids(
        self,
        account_id: str,
        *,
        conn: asyncpg.Connection | None = None,
    ) -> list[str]:
        """Every follower of ``account_id``, unpaginated. Used by fan-out."""
        executor = conn or self._db
        rows = await executor.fetch(
            "SELECT follower_id FROM follows WHERE following_id = $1", account_id
        )
        return [row["follower_id"] for row in rows]

    async def search(
        self,
        query: str,
        requester_id: str,
        *,
        limit: int = 20,
    ) -> list[AccountSearchResult]:
        """Case-insensitive substring match on username or display name.

        Excludes the requester. Accounts the requester follows sort first,
        then by username.
        """
        sql = """
            SELECT a.id, a.username, a.display_name, a.bio,
                   (f.id IS NOT NULL) AS is_following
            FROM accounts a
            LEFT JOIN follows f
                ON f.following_id = a.id AND f.follower_id = $2
            WHERE a.id <> $2
              AND (a.username ILIKE $1 OR a.display_name ILIKE $1)
            ORDER BY is_following DESC, a.username ASC
            LIMIT $3
        """
        pattern = f"%{_escape_like(query)}%"
        rows = await self._db.fetch(sql, pattern, requester_id, limit)
        return [
            AccountSearchResult(
                id=row["id"],
                username=row["username"],
                display_name=row.get("display_name"),
                bio=row.get("bio") or "",
                is_following=bool(row["is_following"]),
            )
            for row in rows
        ]


def _row_to_edge(row: Any) -> FollowEdge:
    return FollowEdge(
        id=row["id"],
        follower_id=row["follower_id"],
        following_id=row["following_id"],
        created_at=row["created_at"],
        username=row.get("username"),
        display_name=row.get("display_name"),
    )


def _row_to_followed(row: Any) -> FollowedAccount:
    return FollowedAccount(
        id=row["id"],
        username=row["username"],
        display_name=row.get("display_name"),
        created_at=row["created_at"],
    )
