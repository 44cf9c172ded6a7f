"""
Command-line interface for pin-timeline.

Provides commands to run the API server, initialize the database,
and perform maintenance on sessions and timelines.

Usage:
    pin-timeline serve                       # Run the API server
    pin-timeline init-db                     # Initialize database
    pin-timeline health                      # Check database health
    pin-timeline cleanup-sessions --dry-run  # Count expired sessions
    pin-timeline rebuild-timeline ACCOUNT_ID # Repair an account's fan-out
"""

import asyncio
import os
import sys

import click

from src.config.settings import get_settings
from src.observability.logging import setup_logging
from src.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Pin Timeline - geotagged photo pins with follower timelines."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    # Start metrics server on separate port
    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from src.storage.database import Database
    from src.storage.schema import create_tables

    async def run():
        db = Database()
        await db.connect()

        try:
            await create_tables(db)
            click.echo("Database initialized successfully")
        finally:
            await db.close()

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check database health."""
    import structlog
    logger = structlog.get_logger()

    async def check() -> bool:
        try:
            from src.storage.database import Database
            db = Database()
            await db.connect()
            healthy = await db.health_check()
            await db.close()
            return healthy
        except Exception as e:
            logger.error("Postgres health check failed", error=str(e))
            return False

    healthy = asyncio.run(check())

    click.echo("\nHealth Check Results:")
    click.echo("-" * 40)
    icon = "✓" if healthy else "✗"
    color = "green" if healthy else "red"
    click.echo(click.style(f"  {icon} postgres: {healthy}", fg=color))
    click.echo("-" * 40)

    if healthy:
        click.echo(click.style("All core services healthy!", fg="green"))
        sys.exit(0)
    else:
        click.echo(click.style("Some services unhealthy!", fg="red"))
        sys.exit(1)


@main.command("cleanup-sessions")
@click.option("--dry-run", is_flag=True, help="Show count without deleting")
def cleanup_sessions(dry_run: bool) -> None:
    """Remove expired sessions.

    Expired sessions are already rejected at authentication time; this
    only reclaims their rows.

    Example:
        pin-timeline cleanup-sessions --dry-run   # Preview without deleting
    """
    from src.accounts.repository import AccountRepository
    from src.auth.config import AuthConfig
    from src.auth.repository import SessionRepository
    from src.auth.service import AuthService
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            service = AuthService(
                config=AuthConfig(),
                account_repo=AccountRepository(db),
                session_repo=SessionRepository(db),
            )
            count = await service.purge_expired(dry_run=dry_run)

            if dry_run:
                click.echo(f"\nDry run - would delete {count} expired sessions")
                click.echo("\nRun without --dry-run to actually delete.")
            else:
                click.echo(f"\nDeleted {count} expired sessions")
        finally:
            await db.close()

    asyncio.run(run())


@main.command("rebuild-timeline")
@click.argument("account_id")
def rebuild_timeline(account_id: str) -> None:
    """Regenerate every timeline entry for ACCOUNT_ID's pins.

    Republishes all of the account's pins to its current followers and
    to itself, replacing existing entries in one transaction.
    """
    from src.accounts.repository import AccountRepository
    from src.follows.repository import FollowRepository
    from src.pins.repository import PinRepository
    from src.storage.database import Database
    from src.timeline.config import TimelineConfig
    from src.timeline.fanout import FanoutService
    from src.timeline.repository import TimelineRepository

    async def run() -> int | None:
        db = Database()
        await db.connect()

        try:
            if not await AccountRepository(db).exists(account_id):
                return None

            fanout = FanoutService(
                database=db,
                timeline_repo=TimelineRepository(db),
                follow_repo=FollowRepository(db),
                pin_repo=PinRepository(db),
                config=TimelineConfig(),
            )
            return await fanout.rebuild_account(account_id)
        finally:
            await db.close()

    written = asyncio.run(run())

    if written is None:
        click.echo(click.style(f"Account not found: {account_id}", fg="red"))
        sys.exit(1)

    click.echo(f"Rebuilt timeline for {account_id}: {written} entries written")
