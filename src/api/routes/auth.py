"""Auth endpoints: OAuth callback, logout, refresh, and handle setup."""

import time

import structlog
from fastapi import APIRouter, Depends, Request

from src.accounts.schemas import Account
from src.api.auth import bearer_token, get_current_account
from src.api.dependencies import get_auth_service
from src.api.models import (
    AccountItem,
    AuthResponse,
    CompleteSetupRequest,
    CompleteSetupResponse,
    ErrorResponse,
    HandleCheckResponse,
    OAuthCallbackRequest,
    RefreshRequest,
    SessionItem,
    SuccessResponse,
    epoch_seconds,
)
from src.auth.schemas import AuthenticatedAccount, OAuthLogin, Session
from src.auth.service import AuthService
from src.errors import ServiceError, StorageError

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/auth")


def _account_item(account: Account) -> AccountItem:
    return AccountItem(
        id=account.id,
        username=account.username,
        email=account.email,
        display_name=account.display_name,
        handle=account.handle,
        avatar_url=account.avatar_url,
        needs_handle=account.needs_handle,
    )


def _auth_response(account: Account, session: Session) -> AuthResponse:
    return AuthResponse(
        account=_account_item(account),
        session=SessionItem(
            token=session.session_token,
            expires_at=epoch_seconds(session.expires_at),
        ),
    )


def _client_info(request: Request) -> dict[str, str | None]:
    return {
        "user_agent": request.headers.get("User-Agent"),
        "ip_address": request.client.host if request.client else None,
    }


@router.post(
    "/oauth/callback",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing provider, oauth_id, or email"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Complete an OAuth login",
    description=(
        "Resolve the provider identity to an account (existing link, then "
        "matching email, then a new account) and open a 30-day session."
    ),
)
async def oauth_callback(
    body: OAuthCallbackRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    start_time = time.perf_counter()

    try:
        account, session = await auth_service.oauth_callback(
            OAuthLogin(**body.model_dump()),
            **_client_info(request),
        )

        logger.info(
            "OAuth login",
            account_id=account.id,
            provider=body.provider,
            needs_handle=account.needs_handle,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return _auth_response(account, session)

    except ServiceError:
        raise
    except Exception as e:
        logger.error("oauth_callback_failed", error=str(e), exc_info=True)
        raise StorageError(error="Authentication failed") from e


@router.post(
    "/logout",
    response_model=SuccessResponse,
    summary="Revoke the current session",
)
async def logout(
    token: str | None = Depends(bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    try:
        await auth_service.logout(token)
        return SuccessResponse()
    except ServiceError:
        raise
    except Exception as e:
        logger.error("logout_failed", error=str(e), exc_info=True)
        raise StorageError(error="Logout failed") from e


@router.post(
    "/refresh",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing refresh token"},
        401: {"model": ErrorResponse, "description": "Unknown refresh token"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Open a new session from an OAuth refresh token",
)
async def refresh(
    body: RefreshRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        account, session = await auth_service.refresh_session(
            body.refresh_token, **_client_info(request)
        )
        logger.info("Session refreshed", account_id=account.id)
        return _auth_response(account, session)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("refresh_failed", error=str(e), exc_info=True)
        raise StorageError(error="Token refresh failed") from e


@router.post(
    "/complete-setup",
    response_model=CompleteSetupResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed handle"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
        409: {"model": ErrorResponse, "description": "Handle taken"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Claim a handle",
)
async def complete_setup(
    body: CompleteSetupRequest,
    account: AuthenticatedAccount = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service),
) -> CompleteSetupResponse:
    try:
        updated = await auth_service.complete_setup(account.id, body.handle)
        logger.info("Handle claimed", account_id=account.id, handle=updated.handle)
        return CompleteSetupResponse(account=_account_item(updated))
    except ServiceError:
        raise
    except Exception as e:
        logger.error("complete_setup_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to complete setup") from e


@router.get(
    "/check-handle/{handle}",
    response_model=HandleCheckResponse,
    summary="Check handle availability",
)
async def check_handle(
    handle: str,
    auth_service: AuthService = Depends(get_auth_service),
) -> HandleCheckResponse:
    try:
        available, message = await auth_service.check_handle(handle)
        return HandleCheckResponse(available=available, message=message)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("check_handle_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to check handle") from e
