"""Follow graph service.

Precondition checks run before any mutation: self-follow, then target
existence, then an existing edge. A successful follow backfills the new
follower's timeline; an unfollow retracts it.
"""

import logging

import asyncpg

from src.accounts.repository import AccountRepository
from src.errors import (
    AlreadyFollowing,
    MissingField,
    NotFollowing,
    QueryTooShort,
    SelfFollowError,
    TargetNotFound,
    ValidationError,
)
from src.follows.config import FollowConfig
from src.follows.repository import FollowRepository
from src.follows.schemas import AccountSearchResult, FollowEdge, FollowedAccount
from src.observability.metrics import get_metrics
from src.timeline.fanout import FanoutService

logger = logging.getLogger(__name__)


class FollowService:
    """Mutations and reads over the follow graph."""

    def __init__(
        self,
        follow_repo: FollowRepository,
        account_repo: AccountRepository,
        fanout: FanoutService,
        config: FollowConfig | None = None,
    ) -> None:
        self._follows = follow_repo
        self._accounts = account_repo
        self._fanout = fanout
        self._config = config or FollowConfig()

    async def follow(self, follower_id: str, following_id: str | None) -> FollowEdge:
        """Create a follow edge and backfill the follower's timeline.

        Raises:
            MissingField: ``following_id`` absent.
            SelfFollowError: follower and target are the same account.
            TargetNotFound: target account does not exist.
            AlreadyFollowing: the edge already exists.
            FanoutError: the edge was created but backfill partially failed.
        """
        if not following_id:
            raise MissingField(
                "following_id is required", error="Missing following_id"
            )
        if follower_id == following_id:
            raise SelfFollowError("An account cannot follow itself")
        if not await self._accounts.exists(following_id):
            raise TargetNotFound(f"Account {following_id} does not exist")
        if await self._follows.exists(follower_id, following_id):
            raise AlreadyFollowing()

        try:
            edge = await self._follows.create(
                FollowEdge(follower_id=follower_id, following_id=following_id)
            )
        except asyncpg.UniqueViolationError as e:
            raise AlreadyFollowing() from e

        get_metrics().record_follow("follow")
        logger.info(f"{follower_id} followed {following_id}")

        await self._fanout.backfill(follower_id, following_id)
        return edge

    async def unfollow(self, follower_id: str, following_id: str) -> None:
        """Delete a follow edge and drop the target's pins from the follower's feed."""
        if not await self._follows.delete(follower_id, following_id):
            raise NotFollowing()

        get_metrics().record_follow("unfollow")
        logger.info(f"{follower_id} unfollowed {following_id}")

        await self._fanout.retract(follower_id, following_id)

    async def list_followers(
        self,
        account_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[FollowedAccount]:
        limit = self._resolve_limit(limit, offset)
        return await self._follows.list_followers(
            account_id, limit=limit, offset=offset
        )

    async def list_following(
        self,
        account_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[FollowedAccount]:
        limit = self._resolve_limit(limit, offset)
        return await self._follows.list_following(
            account_id, limit=limit, offset=offset
        )

    async def search_accounts(
        self,
        query: str | None,
        requester_id: str,
        *,
        limit: int | None = None,
    ) -> list[AccountSearchResult]:
        """Find accounts by username or display name substring.

        Raises:
            QueryTooShort: fewer than ``min_search_length`` characters.
        """
        query = query or ""
        if len(query) < self._config.min_search_length:
            raise QueryTooShort(
                f"Search query must be at least "
                f"{self._config.min_search_length} characters"
            )

        if limit is None:
            limit = self._config.default_search_limit
        if limit < 1:
            raise ValidationError("limit must be positive", error="Invalid limit")
        limit = min(limit, self._config.max_search_limit)

        return await self._follows.search(query, requester_id, limit=limit)

    def _resolve_limit(self, limit: int | None, offset: int) -> int:
        if limit is None:
            limit = self._config.default_list_limit
        if limit < 1:
            raise ValidationError("limit must be positive", error="Invalid limit")
        if offset < 0:
            raise ValidationError("offset must be non-negative", error="Invalid offset")
        return min(limit, self._config.max_list_limit)
