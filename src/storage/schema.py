"""
Database schema for accounts, sessions, follows, pins, and the timeline.

The timeline table is a denormalized, per-viewer projection of pins and
follows. Every row can be rebuilt from ``pins`` + ``follows``.
"""

import logging

from src.storage.database import Database

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
-- Trigram matching for account search
CREATE EXTENSION IF NOT EXISTS pg_trgm;

CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    username TEXT UNIQUE NOT NULL,
    email TEXT UNIQUE NOT NULL,
    handle TEXT UNIQUE,
    display_name TEXT,
    bio TEXT NOT NULL DEFAULT '',
    avatar_url TEXT,
    oauth_provider TEXT,
    oauth_id TEXT,
    is_verified BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_accounts_oauth
    ON accounts(oauth_provider, oauth_id);
CREATE INDEX IF NOT EXISTS idx_accounts_username_trgm
    ON accounts USING GIN(username gin_trgm_ops);
CREATE INDEX IF NOT EXISTS idx_accounts_display_name_trgm
    ON accounts USING GIN(display_name gin_trgm_ops);

CREATE TABLE IF NOT EXISTS oauth_tokens (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    provider TEXT NOT NULL,
    access_token TEXT,
    refresh_token TEXT,
    expires_at TIMESTAMPTZ,
    scope TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE(account_id, provider)
);

CREATE INDEX IF NOT EXISTS idx_oauth_tokens_refresh
    ON oauth_tokens(refresh_token);

CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    session_token TEXT UNIQUE NOT NULL,
    expires_at TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    last_used_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    user_agent TEXT,
    ip_address TEXT
);

CREATE INDEX IF NOT EXISTS idx_sessions_account
    ON sessions(account_id);
CREATE INDEX IF NOT EXISTS idx_sessions_expires
    ON sessions(expires_at);

CREATE TABLE IF NOT EXISTS follows (
    id TEXT PRIMARY KEY,
    follower_id TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    following_id TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE(follower_id, following_id),
    CHECK (follower_id <> following_id)
);

CREATE INDEX IF NOT EXISTS idx_follows_follower
    ON follows(follower_id, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_follows_following
    ON follows(following_id, created_at DESC);

CREATE TABLE IF NOT EXISTS pins (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    payload JSONB NOT NULL,
    latitude DOUBLE PRECISION,
    longitude DOUBLE PRECISION,
    location_name TEXT,
    caption TEXT,
    locations JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_pins_account_created
    ON pins(account_id, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_pins_location
    ON pins(latitude, longitude);

CREATE TABLE IF NOT EXISTS timeline (
    id TEXT PRIMARY KEY,
    pin_id TEXT NOT NULL REFERENCES pins(id) ON DELETE CASCADE,
    account_id TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    visible_to_account_id TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    created_at TIMESTAMPTZ NOT NULL,
    UNIQUE(pin_id, visible_to_account_id)
);

CREATE INDEX IF NOT EXISTS idx_timeline_visible_to
    ON timeline(visible_to_account_id, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_timeline_account
    ON timeline(account_id, created_at DESC);
"""

TABLES = ("accounts", "oauth_tokens", "sessions", "follows", "pins", "timeline")


async def create_tables(database: Database) -> None:
    """
    Create database tables if they don't exist.

    Safe to run repeatedly; every statement is ``IF NOT EXISTS``.

    Args:
        database: Connected Database instance
    """
    await database.execute(SCHEMA_SQL)
    logger.info(f"Database schema ensured ({len(TABLES)} tables)")
