"""Account service: registration and owner-only profile edits."""

import logging

import asyncpg

from src.accounts.repository import AccountRepository
from src.accounts.schemas import Account, is_valid_email, is_valid_username
from src.errors import (
    AccountExists,
    AccountNotFound,
    MissingField,
    PermissionDenied,
    ValidationError,
)

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, account_repo: AccountRepository) -> None:
        self._accounts = account_repo

    async def register(
        self,
        username: str | None,
        email: str | None,
        *,
        display_name: str | None = None,
        bio: str | None = None,
    ) -> Account:
        """Create an account outside the OAuth flow.

        Raises:
            MissingField: username or email absent.
            ValidationError: username or email malformed.
            AccountExists: username or email already registered.
        """
        if not username or not email:
            raise MissingField(
                "Username and email are required", error="Missing required fields"
            )
        if not is_valid_username(username):
            raise ValidationError(
                "Username must be 3-20 characters: letters, digits, underscore, dash",
                error="Invalid username",
            )
        if not is_valid_email(email):
            raise ValidationError("Email address is malformed", error="Invalid email")

        try:
            return await self._accounts.create(
                Account(
                    username=username,
                    email=email,
                    display_name=display_name or username,
                    bio=bio or "",
                )
            )
        except asyncpg.UniqueViolationError as e:
            raise AccountExists("Username or email is already registered") from e

    async def get(self, account_id: str) -> Account:
        account = await self._accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFound()
        return account

    async def update_profile(
        self,
        requester_id: str,
        account_id: str,
        *,
        display_name: str | None = None,
        bio: str | None = None,
    ) -> Account:
        """Edit display name and bio. Only the account owner may do this."""
        if requester_id != account_id:
            raise PermissionDenied("You can only update your own account")

        account = await self._accounts.update_profile(
            account_id, display_name=display_name, bio=bio
        )
        if account is None:
            raise AccountNotFound()
        logger.info(f"Updated profile for account {account_id}")
        return account
