"""Account store: user identity, profile fields, and linked OAuth tokens.

Components:
- Account / OAuthToken: Dataclasses mapping to the accounts and oauth_tokens tables
- AccountRepository: Lookups and profile mutations
- AccountService: Registration and owner-only profile edits
- is_valid_handle / is_valid_username / is_valid_email: Format checks
"""

from src.accounts.repository import AccountRepository
from src.accounts.service import AccountService
from src.accounts.schemas import (
    Account,
    OAuthToken,
    is_valid_email,
    is_valid_handle,
    is_valid_username,
)

__all__ = [
    "Account",
    "AccountRepository",
    "AccountService",
    "OAuthToken",
    "is_valid_email",
    "is_valid_handle",
    "is_valid_username",
]
