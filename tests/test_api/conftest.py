"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from src.accounts.service import AccountService
from src.api.app import create_app
from src.api.dependencies import (
    get_account_service,
    get_auth_service,
    get_database,
    get_fanout_service,
    get_follow_service,
    get_pin_service,
    get_timeline_service,
)
from src.auth.schemas import AuthenticatedAccount
from src.auth.service import AuthService
from src.errors import InvalidOrExpiredSession, MissingToken
from src.follows.service import FollowService
from src.pins.service import PinService
from src.timeline.fanout import FanoutService
from src.timeline.service import TimelineService

ALICE = AuthenticatedAccount(
    id="acct_alice",
    username="alice",
    email="alice@example.com",
    display_name="Alice",
    handle="alice_h",
    session_id="sess_alice",
)
BOB = AuthenticatedAccount(
    id="acct_bob",
    username="bob",
    email="bob@example.com",
    display_name="Bob",
    session_id="sess_bob",
)
_SESSIONS = {"alice-token": ALICE, "bob-token": BOB}


async def _authenticate(token):
    if not token:
        raise MissingToken("Authorization header with session token is required")
    account = _SESSIONS.get(token)
    if account is None:
        raise InvalidOrExpiredSession("Session token is invalid or expired")
    return account


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob_headers() -> dict[str, str]:
    return {"Authorization": "Bearer bob-token"}


@pytest.fixture
def mock_auth_service():
    """AuthService that knows two sessions: alice-token and bob-token."""
    service = AsyncMock(spec=AuthService)
    service.authenticate.side_effect = _authenticate
    return service


@pytest.fixture
def mock_account_service():
    return AsyncMock(spec=AccountService)


@pytest.fixture
def mock_follow_service():
    return AsyncMock(spec=FollowService)


@pytest.fixture
def mock_pin_service():
    return AsyncMock(spec=PinService)


@pytest.fixture
def mock_timeline_service():
    return AsyncMock(spec=TimelineService)


@pytest.fixture
def mock_fanout_service():
    return AsyncMock(spec=FanoutService)


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def app(
    mock_auth_service,
    mock_account_service,
    mock_follow_service,
    mock_pin_service,
    mock_timeline_service,
    mock_fanout_service,
    mock_db,
):
    """App with every service dependency swapped for a mock."""
    app = create_app()
    app.dependency_overrides[get_auth_service] = lambda: mock_auth_service
    app.dependency_overrides[get_account_service] = lambda: mock_account_service
    app.dependency_overrides[get_follow_service] = lambda: mock_follow_service
    app.dependency_overrides[get_pin_service] = lambda: mock_pin_service
    app.dependency_overrides[get_timeline_service] = lambda: mock_timeline_service
    app.dependency_overrides[get_fanout_service] = lambda: mock_fanout_service
    app.dependency_overrides[get_database] = lambda: mock_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
