"""Session repository: issue, validate, touch, and revoke bearer sessions."""

import logging
from datetime import datetime
from typing import Any

from src.auth.schemas import AuthenticatedAccount, Session
from src.storage.database import Database, affected_rows

logger = logging.getLogger(__name__)


class SessionRepository:
    """Repository for the ``sessions`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create(self, session: Session) -> Session:
        sql = """
            INSERT INTO sessions (
                id, account_id, session_token, expires_at, created_at,
                last_used_at, user_agent, ip_address
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            session.id,
            session.account_id,
            session.session_token,
            session.expires_at,
            session.created_at,
            session.last_used_at,
            session.user_agent,
            session.ip_address,
        )
        return _row_to_session(row)

    async def find_valid(
        self, session_token: str, now: datetime
    ) -> AuthenticatedAccount | None:
        """Look up a non-expired session joined to its account."""
        sql = """
            SELECT s.id AS session_id, a.id AS account_id, a.username,
                   a.email, a.display_name, a.handle
            FROM sessions s
            JOIN accounts a ON s.account_id = a.id
            WHERE s.session_token = $1 AND s.expires_at > $2
        """
        row = await self._db.fetchrow(sql, session_token, now)
        if row is None:
            return None
        return AuthenticatedAccount(
            id=row["account_id"],
            username=row["username"],
            email=row["email"],
            display_name=row.get("display_name"),
            handle=row.get("handle"),
            session_id=row["session_id"],
        )

    async def touch(self, session_id: str, now: datetime) -> None:
        await self._db.execute(
            "UPDATE sessions SET last_used_at = $2 WHERE id = $1",
            session_id,
            now,
        )

    async def delete_by_token(self, session_token: str) -> int:
        status = await self._db.execute(
            "DELETE FROM sessions WHERE session_token = $1", session_token
        )
        return affected_rows(status)

    async def count_expired(self, now: datetime) -> int:
        return await self._db.fetchval(
            "SELECT COUNT(*) FROM sessions WHERE expires_at <= $1", now
        )

    async def delete_expired(self, now: datetime) -> int:
        status = await self._db.execute(
            "DELETE FROM sessions WHERE expires_at <= $1", now
        )
        count = affected_rows(status)
        logger.info(f"Deleted {count} expired sessions")
        return count


def _row_to_session(row: Any) -> Session:
    """Convert an asyncpg Record to a Session."""
    return Session(
        id=row["id"],
        account_id=row["account_id"],
        session_token=row["session_token"],
        expires_at=row["expires_at"],
        created_at=row["created_at"],
        last_used_at=row.get("last_used_at") or row["created_at"],
        user_agent=row.get("user_agent"),
        ip_address=row.get("ip_address"),
    )
