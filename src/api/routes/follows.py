"""Follow endpoints: follow, unfollow, listings, and account search."""

import time

import structlog
from fastapi import APIRouter, Depends, Query, status

from src.api.auth import get_current_account
from src.api.dependencies import get_follow_service
from src.api.models import (
    AccountSearchItem,
    ErrorResponse,
    FollowedAccountItem,
    FollowEdgeItem,
    FollowRequest,
    SuccessResponse,
    epoch_seconds,
)
from src.auth.schemas import AuthenticatedAccount
from src.errors import ServiceError, StorageError
from src.follows.schemas import FollowedAccount
from src.follows.service import FollowService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/follows")


def _followed_item(followed: FollowedAccount) -> FollowedAccountItem:
    return FollowedAccountItem(
        id=followed.id,
        username=followed.username,
        display_name=followed.display_name,
        created_at=epoch_seconds(followed.created_at),
    )


@router.post(
    "",
    response_model=FollowEdgeItem,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Self-follow or missing following_id"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
        404: {"model": ErrorResponse, "description": "Target account not found"},
        409: {"model": ErrorResponse, "description": "Already following"},
        500: {"model": ErrorResponse, "description": "Server error or incomplete backfill"},
    },
    summary="Follow an account",
    description=(
        "Create a follow edge and backfill the caller's timeline with the "
        "followed account's most recent pins."
    ),
)
async def follow(
    body: FollowRequest,
    account: AuthenticatedAccount = Depends(get_current_account),
    follow_service: FollowService = Depends(get_follow_service),
) -> FollowEdgeItem:
    start_time = time.perf_counter()

    try:
        edge = await follow_service.follow(account.id, body.following_id)

        logger.info(
            "Follow created",
            follower_id=edge.follower_id,
            following_id=edge.following_id,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return FollowEdgeItem(
            id=edge.id,
            follower_id=edge.follower_id,
            following_id=edge.following_id,
            username=edge.username,
            display_name=edge.display_name,
            created_at=epoch_seconds(edge.created_at),
        )

    except ServiceError:
        raise
    except Exception as e:
        logger.error("follow_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to follow user") from e


@router.get(
    "/followers",
    response_model=list[FollowedAccountItem],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid paging parameters"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
    },
    summary="List followers",
)
async def list_followers(
    account_id: str | None = Query(
        default=None,
        description="Account to list (default: the caller)",
    ),
    limit: int | None = Query(default=None, ge=1, description="Clamped to 100"),
    offset: int = Query(default=0, ge=0),
    account: AuthenticatedAccount = Depends(get_current_account),
    follow_service: FollowService = Depends(get_follow_service),
) -> list[FollowedAccountItem]:
    try:
        followers = await follow_service.list_followers(
            account_id or account.id, limit=limit, offset=offset
        )
        return [_followed_item(f) for f in followers]
    except ServiceError:
        raise
    except Exception as e:
        logger.error("list_followers_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to get followers") from e


@router.get(
    "/following",
    response_model=list[FollowedAccountItem],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid paging parameters"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
    },
    summary="List followed accounts",
)
async def list_following(
    account_id: str | None = Query(
        default=None,
        description="Account to list (default: the caller)",
    ),
    limit: int | None = Query(default=None, ge=1, description="Clamped to 100"),
    offset: int = Query(default=0, ge=0),
    account: AuthenticatedAccount = Depends(get_current_account),
    follow_service: FollowService = Depends(get_follow_service),
) -> list[FollowedAccountItem]:
    try:
        following = await follow_service.list_following(
            account_id or account.id, limit=limit, offset=offset
        )
        return [_followed_item(f) for f in following]
    except ServiceError:
        raise
    except Exception as e:
        logger.error("list_following_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to get following") from e


@router.get(
    "/search",
    response_model=list[AccountSearchItem],
    responses={
        400: {"model": ErrorResponse, "description": "Query shorter than 2 characters"},
        401: {"model": ErrorResponse, "description": "Invalid session"},
    },
    summary="Search accounts",
    description=(
        "Case-insensitive substring match on username or display name. "
        "Accounts the caller already follows are listed first."
    ),
)
async def search_accounts(
    q: str | None = Query(default=None, description="Search text (min 2 characters)"),
    limit: int | None = Query(default=None, ge=1, description="Clamped to 50"),
    account: AuthenticatedAccount = Depends(get_current_account),
    follow_service: FollowService = Depends(get_follow_service),
) -> list[AccountSearchItem]:
    try:
        results = await follow_service.search_accounts(q, account.id, limit=limit)
        return [
            AccountSearchItem(
                id=r.id,
                username=r.username,
                display_name=r.display_name,
                bio=r.bio,
                is_following=r.is_following,
            )
            for r in results
        ]
    except ServiceError:
        raise
    except Exception as e:
        logger.error("search_accounts_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to search users") from e


@router.delete(
    "/{following_id}",
    response_model=SuccessResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        404: {"model": ErrorResponse, "description": "Not following"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Unfollow an account",
    description="Delete the edge and remove the account's pins from the caller's timeline.",
)
async def unfollow(
    following_id: str,
    account: AuthenticatedAccount = Depends(get_current_account),
    follow_service: FollowService = Depends(get_follow_service),
) -> SuccessResponse:
    try:
        await follow_service.unfollow(account.id, following_id)
        logger.info("Follow removed", follower_id=account.id, following_id=following_id)
        return SuccessResponse()
    except ServiceError:
        raise
    except Exception as e:
        logger.error("unfollow_failed", error=str(e), exc_info=True)
        raise StorageError(error="Failed to unfollow user") from e
