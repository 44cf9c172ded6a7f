"""Account endpoints: registration and profiles."""

import structlog
from fastapi import APIRouter, Depends, status

from src.accounts.schemas import Account
from src.accounts.service import AccountService
from src.api.auth import get_current_account
from src.api.dependencies import get_account_service
from src.api.models import (
    AccountCreateRequest,
    AccountProfile,
    AccountUpdateRequest,
    ErrorResponse,
    epoch_seconds,
)
from src.auth.schemas import AuthenticatedAccount
from src.errors import ServiceError, StorageError

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/accounts")


def _profile(account: Account) -> AccountProfile:
    return AccountProfile(
        id=account.id,
        username=account.username,
        display_name=account.display_name,
        handle=account.handle,
        bio=account.bio,
        avatar_url=account.avatar_url,
        created_at=epoch_seconds(account.created_at),
    )


@router.post(
    "",
    response_model=AccountProfile,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed fields"},
        409: {"model": ErrorResponse, "description": "Username or email taken"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Register an account",
)
async def create_account(
    body: AccountCreateRequest,
    account_service: AccountService = Depends(get_account_service),
) -> AccountProfile:
    try:
        account = await account_service.register(
            body.username,
            body.email,
            display_name=body.display_name,
            bio=body.bio,
        )
        logger.info("Account registered", account_id=account.id)
        return _profile(account)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("create_account_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to create account") from e


@router.get(
    "/{account_id}",
    response_model=AccountProfile,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        404: {"model": ErrorResponse, "description": "Account not found"},
    },
    summary="Get a public profile",
)
async def get_account(
    account_id: str,
    account: AuthenticatedAccount = Depends(get_current_account),
    account_service: AccountService = Depends(get_account_service),
) -> AccountProfile:
    try:
        return _profile(await account_service.get(account_id))
    except ServiceError:
        raise
    except Exception as e:
        logger.error("get_account_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to get account") from e


@router.put(
    "/{account_id}",
    response_model=AccountProfile,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        403: {"model": ErrorResponse, "description": "Not the account owner"},
        404: {"model": ErrorResponse, "description": "Account not found"},
    },
    summary="Update your profile",
)
async def update_account(
    account_id: str,
    body: AccountUpdateRequest,
    account: AuthenticatedAccount = Depends(get_current_account),
    account_service: AccountService = Depends(get_account_service),
) -> AccountProfile:
    try:
        updated = await account_service.update_profile(
            account.id,
            account_id,
            display_name=body.display_name,
            bio=body.bio,
        )
        return _profile(updated)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("update_account_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to update account") from e
