"""Session store: OAuth login, bearer sessions, and handle setup.

Components:
- Session / AuthenticatedAccount / OAuthLogin: Dataclasses for sessions and identities
- AuthConfig: Pydantic settings for session lifetime and admin keys
- SessionRepository: Persistence for the sessions table
- AuthService: authenticate, issue/refresh/revoke sessions, claim handles
"""

from src.auth.config import AuthConfig
from src.auth.repository import SessionRepository
from src.auth.schemas import AuthenticatedAccount, OAuthLogin, Session
from src.auth.service import AuthService

__all__ = [
    "AuthConfig",
    "AuthService",
    "AuthenticatedAccount",
    "OAuthLogin",
    "Session",
    "SessionRepository",
]
