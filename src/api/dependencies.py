"""
Dependency injection for FastAPI endpoints.

Services are process-wide singletons built on first use around one
shared Database pool. Tests swap them out via ``app.dependency_overrides``.
"""

from src.accounts.repository import AccountRepository
from src.accounts.service import AccountService
from src.auth.config import AuthConfig
from src.auth.repository import SessionRepository
from src.auth.service import AuthService
from src.follows.config import FollowConfig
from src.follows.repository import FollowRepository
from src.follows.service import FollowService
from src.pins.config import PinConfig
from src.pins.repository import PinRepository
from src.pins.service import PinService
from src.storage.database import Database
from src.timeline.config import TimelineConfig
from src.timeline.fanout import FanoutService
from src.timeline.repository import TimelineRepository
from src.timeline.service import TimelineService

# Global service instances (initialized on first request)
_database: Database | None = None
_auth_service: AuthService | None = None
_account_service: AccountService | None = None
_fanout_service: FanoutService | None = None
_follow_service: FollowService | None = None
_pin_service: PinService | None = None
_timeline_service: TimelineService | None = None


async def get_database() -> Database:
    """Get the shared database, connecting on first use."""
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def get_auth_service() -> AuthService:
    global _auth_service

    if _auth_service is None:
        db = await get_database()
        _auth_service = AuthService(
            config=AuthConfig(),
            account_repo=AccountRepository(db),
            session_repo=SessionRepository(db),
        )

    return _auth_service


async def get_account_service() -> AccountService:
    global _account_service

    if _account_service is None:
        db = await get_database()
        _account_service = AccountService(AccountRepository(db))

    return _account_service


async def get_fanout_service() -> FanoutService:
    """
    Get the timeline fan-out service.

    Shared by the pin and follow services so there is one writer of
    timeline entries per process.
    """
    global _fanout_service

    if _fanout_service is None:
        db = await get_database()
        _fanout_service = FanoutService(
            database=db,
            timeline_repo=TimelineRepository(db),
            follow_repo=FollowRepository(db),
            pin_repo=PinRepository(db),
            config=TimelineConfig(),
        )

    return _fanout_service


async def get_follow_service() -> FollowService:
    global _follow_service

    if _follow_service is None:
        db = await get_database()
        _follow_service = FollowService(
            follow_repo=FollowRepository(db),
            account_repo=AccountRepository(db),
            fanout=await get_fanout_service(),
            config=FollowConfig(),
        )

    return _follow_service


async def get_pin_service() -> PinService:
    global _pin_service

    if _pin_service is None:
        db = await get_database()
        _pin_service = PinService(
            pin_repo=PinRepository(db),
            fanout=await get_fanout_service(),
            config=PinConfig(),
        )

    return _pin_service


async def get_timeline_service() -> TimelineService:
    global _timeline_service

    if _timeline_service is None:
        db = await get_database()
        _timeline_service = TimelineService(
            timeline_repo=TimelineRepository(db),
            config=TimelineConfig(),
        )

    return _timeline_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _auth_service, _account_service, _fanout_service
    global _follow_service, _pin_service, _timeline_service

    _auth_service = None
    _account_service = None
    _fanout_service = None
    _follow_service = None
    _pin_service = None
    _timeline_service = None

    if _database is not None:
        await _database.close()
        _database = None
