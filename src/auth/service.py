"""Session store service: OAuth login, bearer validation, and handle setup.

``authenticate`` is a stateless lookup-then-refresh. Everything else
issues or revokes sessions, or resolves the account behind an OAuth login.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

import asyncpg

from src.accounts.repository import AccountRepository
from src.accounts.schemas import Account, OAuthToken, is_valid_handle
from src.auth.config import AuthConfig
from src.auth.repository import SessionRepository
from src.auth.schemas import AuthenticatedAccount, OAuthLogin, Session
from src.errors import (
    AccountNotFound,
    HandleTaken,
    InvalidHandle,
    InvalidOrExpiredSession,
    InvalidRefreshToken,
    MissingField,
    MissingOAuthData,
    MissingToken,
    StorageError,
)
from src.observability.metrics import get_metrics

logger = logging.getLogger(__name__)


class AuthService:
    """Issues and validates bearer sessions.

    Composes AccountRepository (identity) with SessionRepository (tokens).
    """

    def __init__(
        self,
        config: AuthConfig,
        account_repo: AccountRepository,
        session_repo: SessionRepository,
    ) -> None:
        self._config = config
        self._accounts = account_repo
        self._sessions = session_repo

    async def authenticate(self, bearer_token: str | None) -> AuthenticatedAccount:
        """Resolve a bearer token to the account it belongs to.

        Refreshes ``last_used_at`` on success. That refresh is best-effort
        and never fails the request.

        Raises:
            MissingToken: No token was presented.
            InvalidOrExpiredSession: No session row, or it has expired.
            StorageError: The lookup itself failed.
        """
        metrics = get_metrics()
        if not bearer_token:
            metrics.record_auth("missing")
            raise MissingToken(
                "Authorization header with session token is required"
            )

        now = datetime.now(timezone.utc)
        try:
            account = await self._sessions.find_valid(bearer_token, now)
        except Exception as e:
            metrics.record_auth("error")
            logger.error(f"Session lookup failed: {e}")
            raise StorageError(
                "Database error during authentication",
                error="Authentication failed",
            ) from e

        if account is None:
            metrics.record_auth("invalid")
            raise InvalidOrExpiredSession("Session token is invalid or expired")

        if self._config.touch_sessions and account.session_id:
            try:
                await self._sessions.touch(account.session_id, now)
            except Exception as e:
                logger.warning(f"Failed to refresh last_used_at: {e}")

        metrics.record_auth("success")
        return account

    async def issue_session(
        self,
        account_id: str,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> Session:
        """Create a session expiring ``session_ttl_days`` from now."""
        now = datetime.now(timezone.utc)
        session = Session(
            account_id=account_id,
            session_token=secrets.token_hex(self._config.session_token_bytes),
            expires_at=now + timedelta(days=self._config.session_ttl_days),
            created_at=now,
            last_used_at=now,
            user_agent=user_agent or "",
            ip_address=ip_address or "",
        )
        return await self._sessions.create(session)

    async def oauth_callback(
        self,
        login: OAuthLogin,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[Account, Session]:
        """Resolve (or create) the account for an OAuth login and open a session.

        Resolution order: existing OAuth link, then an account with the
        same email (which gets linked), then a brand-new account.
        """
        if not (login.provider and login.oauth_id and login.email):
            raise MissingOAuthData("provider, oauth_id, and email are required")

        account = await self._accounts.get_by_oauth(login.provider, login.oauth_id)
        if account is not None:
            account = await self._accounts.update_oauth_profile(
                account.id, login.email, login.name, login.avatar_url
            ) or account
        else:
            account = await self._accounts.link_oauth(
                login.email, login.provider, login.oauth_id, login.avatar_url
            )
            if account is None:
                account = await self._create_oauth_account(login)

        if login.access_token:
            now = datetime.now(timezone.utc)
            expires_at = (
                now + timedelta(seconds=login.expires_in)
                if login.expires_in
                else None
            )
            await self._accounts.upsert_oauth_token(
                OAuthToken(
                    account_id=account.id,
                    provider=login.provider,
                    access_token=login.access_token,
                    refresh_token=login.refresh_token,
                    expires_at=expires_at,
                    created_at=now,
                    updated_at=now,
                )
            )

        session = await self.issue_session(
            account.id, user_agent=user_agent, ip_address=ip_address
        )
        logger.info(
            f"OAuth login for account {account.id} via {login.provider}"
        )
        return account, session

    async def _create_oauth_account(self, login: OAuthLogin) -> Account:
        username = login.email.split("@")[0]
        if await self._accounts.username_exists(username):
            username = f"{username}_{secrets.token_hex(self._config.username_suffix_bytes)}"

        return await self._accounts.create(
            Account(
                username=username,
                email=login.email,
                display_name=login.name or username,
                avatar_url=login.avatar_url,
                oauth_provider=login.provider,
                oauth_id=login.oauth_id,
            )
        )

    async def logout(self, bearer_token: str | None) -> None:
        """Revoke the presented session. Unknown or missing tokens are ignored."""
        if not bearer_token:
            return
        deleted = await self._sessions.delete_by_token(bearer_token)
        logger.debug(f"Logout removed {deleted} session(s)")

    async def refresh_session(
        self,
        refresh_token: str | None,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[Account, Session]:
        """Open a new session for the owner of a stored OAuth refresh token."""
        if not refresh_token:
            raise MissingField(
                "refresh_token is required", error="Refresh token required"
            )

        account = await self._accounts.get_by_refresh_token(refresh_token)
        if account is None:
            raise InvalidRefreshToken()

        session = await self.issue_session(
            account.id, user_agent=user_agent, ip_address=ip_address
        )
        return account, session

    async def complete_setup(self, account_id: str, handle: str | None) -> Account:
        """Claim a public handle for the account."""
        if not handle:
            raise MissingField("handle is required", error="Handle required")
        if not is_valid_handle(handle):
            raise InvalidHandle(
                "Handle must be 3-20 characters, alphanumeric and underscore only"
            )

        owner = await self._accounts.handle_owner(handle)
        if owner is not None and owner != account_id:
            raise HandleTaken("This handle is already taken")

        try:
            account = await self._accounts.claim_handle(account_id, handle)
        except asyncpg.UniqueViolationError as e:
            raise HandleTaken("This handle is already taken") from e

        if account is None:
            raise AccountNotFound()
        return account

    async def check_handle(self, handle: str) -> tuple[bool, str]:
        """Report whether a handle is well-formed and unclaimed."""
        if not is_valid_handle(handle):
            return False, "Invalid handle format"
        owner = await self._accounts.handle_owner(handle)
        if owner is not None:
            return False, "Handle is taken"
        return True, "Handle is available"

    async def purge_expired(self, *, dry_run: bool = False) -> int:
        """Delete (or, with ``dry_run``, count) expired sessions."""
        now = datetime.now(timezone.utc)
        if dry_run:
            return await self._sessions.count_expired(now)
        return await self._sessions.delete_expired(now)
