"""
API authentication.

Client endpoints use ``Authorization: Bearer <session_token>``. Admin
endpoints use the ``X-API-KEY`` header checked against
``AUTH_ADMIN_API_KEYS``.
"""

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from src.api.dependencies import get_auth_service
from src.auth.config import AuthConfig
from src.auth.schemas import AuthenticatedAccount
from src.auth.service import AuthService
from src.errors import InvalidAPIKey

# Both schemes report a missing header as None so the domain errors decide
bearer_scheme = HTTPBearer(auto_error=False)
api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


def bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> str | None:
    """Extract the raw session token, if one was presented."""
    if credentials is None:
        return None
    return credentials.credentials


async def get_current_account(
    token: str | None = Depends(bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthenticatedAccount:
    """
    Resolve the bearer session to an account.

    Raises:
        MissingToken: No bearer token.
        InvalidOrExpiredSession: Unknown or expired token.
        StorageError: Session lookup failed.
    """
    return await auth_service.authenticate(token)


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """
    Verify API key from X-API-KEY header.

    Returns:
        The validated API key

    Raises:
        InvalidAPIKey: If API key is missing or invalid
    """
    valid_keys = AuthConfig().admin_keys

    # If no API keys configured, allow all requests (dev mode)
    if not valid_keys:
        return "dev-mode"

    if api_key is None:
        raise InvalidAPIKey("Missing API key. Provide X-API-KEY header.")

    if api_key not in valid_keys:
        raise InvalidAPIKey()

    return api_key
