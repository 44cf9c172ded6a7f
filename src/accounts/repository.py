"""Account repository for identity lookups and profile mutations.

Follows the FeedbackRepository pattern with asyncpg. Accounts are never
hard-deleted here.
"""

import logging
from typing import Any

from src.accounts.schemas import Account, OAuthToken
from src.storage.database import Database

logger = logging.getLogger(__name__)


class AccountRepository:
    """Repository for the ``accounts`` and ``oauth_tokens`` tables."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create(self, account: Account) -> Account:
        """Insert a new account.

        Raises:
            asyncpg.UniqueViolationError: username, email, or handle taken.
        """
        sql = """
            INSERT INTO accounts (
                id, username, email, handle, display_name, bio, avatar_url,
                oauth_provider, oauth_id, is_verified, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            account.id,
            account.username,
            account.email,
            account.handle,
            account.display_name,
            account.bio,
            account.avatar_url,
            account.oauth_provider,
            account.oauth_id,
            account.is_verified,
            account.created_at,
            account.updated_at,
        )
        logger.info(f"Created account {account.id} ({account.username})")
        return _row_to_account(row)

    async def get_by_id(self, account_id: str) -> Account | None:
        row = await self._db.fetchrow(
            "SELECT * FROM accounts WHERE id = $1", account_id
        )
        return _row_to_account(row) if row else None

    async def get_by_oauth(self, provider: str, oauth_id: str) -> Account | None:
        sql = """
            SELECT * FROM accounts
            WHERE oauth_provider = $1 AND oauth_id = $2
        """
        row = await self._db.fetchrow(sql, provider, oauth_id)
        return _row_to_account(row) if row else None

    async def exists(self, account_id: str) -> bool:
        return bool(
            await self._db.fetchval(
                "SELECT EXISTS(SELECT 1 FROM accounts WHERE id = $1)", account_id
            )
        )

    async def username_exists(self, username: str) -> bool:
        return bool(
            await self._db.fetchval(
                "SELECT EXISTS(SELECT 1 FROM accounts WHERE username = $1)",
                username,
            )
        )

    async def handle_owner(self, handle: str) -> str | None:
        """Return the id of the account holding ``handle``, if any."""
        return await self._db.fetchval(
            "SELECT id FROM accounts WHERE handle = $1", handle
        )

    async def link_oauth(
        self,
        email: str,
        provider: str,
        oauth_id: str,
        avatar_url: str | None,
    ) -> Account | None:
        """Attach an OAuth identity to the account owning ``email``."""
        sql = """
            UPDATE accounts
            SET oauth_provider = $2, oauth_id = $3, avatar_url = $4,
                updated_at = NOW()
            WHERE email = $1
            RETURNING *
        """
        row = await self._db.fetchrow(sql, email, provider, oauth_id, avatar_url)
        return _row_to_account(row) if row else None

    async def update_oauth_profile(
        self,
        account_id: str,
        email: str,
        display_name: str | None,
        avatar_url: str | None,
    ) -> Account | None:
        """Refresh provider-sourced profile fields on a returning login.

        A ``None`` display name keeps the stored one.
        """
        sql = """
            UPDATE accounts
            SET email = $2,
                display_name = COALESCE($3, display_name),
                avatar_url = $4,
                updated_at = NOW()
            WHERE id = $1
            RETURNING *
        """
        row = await self._db.fetchrow(sql, account_id, email, display_name, avatar_url)
        return _row_to_account(row) if row else None

    async def update_profile(
        self,
        account_id: str,
        *,
        display_name: str | None = None,
        bio: str | None = None,
    ) -> Account | None:
        """Update editable profile fields. ``None`` leaves a field unchanged."""
        sql = """
            UPDATE accounts
            SET display_name = COALESCE($2, display_name),
                bio = COALESCE($3, bio),
                updated_at = NOW()
            WHERE id = $1
            RETURNING *
        """
        row = await self._db.fetchrow(sql, account_id, display_name, bio)
        return _row_to_account(row) if row else None

    async def claim_handle(self, account_id: str, handle: str) -> Account | None:
        """Set the account's handle.

        Raises:
            asyncpg.UniqueViolationError: another account claimed it first.
        """
        sql = """
            UPDATE accounts
            SET handle = $2, updated_at = NOW()
            WHERE id = $1
            RETURNING *
        """
        row = await self._db.fetchrow(sql, account_id, handle)
        return _row_to_account(row) if row else None

    async def upsert_oauth_token(self, token: OAuthToken) -> None:
        """Store provider tokens, replacing any previous row for the provider."""
        sql = """
            INSERT INTO oauth_tokens (
                id, account_id, provider, access_token, refresh_token,
                expires_at, scope, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            ON CONFLICT (account_id, provider) DO UPDATE SET
                access_token = EXCLUDED.access_token,
                refresh_token = EXCLUDED.refresh_token,
                expires_at = EXCLUDED.expires_at,
                scope = EXCLUDED.scope,
                updated_at = EXCLUDED.updated_at
        """
        await self._db.execute(
            sql,
            token.id,
            token.account_id,
            token.provider,
            token.access_token,
            token.refresh_token,
            token.expires_at,
            token.scope,
            token.created_at,
            token.updated_at,
        )

    async def get_by_refresh_token(self, refresh_token: str) -> Account | None:
        """Find the account owning a stored OAuth refresh token."""
        sql = """
            SELECT a.* FROM oauth_tokens t
            JOIN accounts a ON t.account_id = a.id
            WHERE t.refresh_token = $1
            LIMIT 1
        """
        row = await self._db.fetchrow(sql, refresh_token)
        return _row_to_account(row) if row else None


def _row_to_account(row: Any) -> Account:
    """Convert an asyncpg Record to an Account."""
    return Account(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        handle=row.get("handle"),
        display_name=row.get("display_name"),
        bio=row.get("bio") or "",
        avatar_url=row.get("avatar_url"),
        oauth_provider=row.get("oauth_provider"),
        oauth_id=row.get("oauth_id"),
        is_verified=bool(row.get("is_verified", False)),
        created_at=row["created_at"],
        updated_at=row.get("updated_at", row["created_at"]),
    )
