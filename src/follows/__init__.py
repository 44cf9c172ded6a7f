"""Follow graph: directed follower -> following edges and account search.

Components:
- FollowEdge / FollowedAccount / AccountSearchResult: Dataclasses
- FollowConfig: Pydantic settings for paging and search limits
- FollowRepository: Edge mutations, listings, and search queries

FollowService (``src.follows.service``) enforces preconditions and keeps
timelines in step with the graph.
"""

from src.follows.config import FollowConfig
from src.follows.repository import FollowRepository
from src.follows.schemas import AccountSearchResult, FollowEdge, FollowedAccount

__all__ = [
    "AccountSearchResult",
    "FollowConfig",
    "FollowEdge",
    "FollowRepository",
    "FollowedAccount",
]
