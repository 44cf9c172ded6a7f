"""Pin repository for CRUD on the ``pins`` table.

Reads join the owner's username and display name. Deleting a pin
cascades to its timeline entries through the foreign key, so the pin
and its visibility rows disappear in one statement.
"""

import json
import logging
from datetime import datetime
from typing import Any

import asyncpg

from src.pins.schemas import Pin
from src.storage.database import Database, affected_rows

logger = logging.getLogger(__name__)

_SELECT_WITH_OWNER = """
    SELECT p.*, a.username, a.display_name
    FROM pins p
    JOIN accounts a ON p.account_id = a.id
"""


class PinRepository:
    """Repository for pin persistence and querying."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create(self, pin: Pin) -> Pin:
        """Insert a pin and return it joined with its owner."""
        sql = """
            WITH inserted AS (
                INSERT INTO pins (
                    id, account_id, payload, latitude, longitude,
                    location_name, caption, locations, created_at, updated_at
                ) VALUES ($1, $2, $3::jsonb, $4, $5, $6, $7, $8::jsonb, $9, $10)
                RETURNING *
            )
            SELECT i.*, a.username, a.display_name
            FROM inserted i
            JOIN accounts a ON i.account_id = a.id
        """
        row = await self._db.fetchrow(
            sql,
            pin.id,
            pin.account_id,
            json.dumps(pin.payload),
            pin.latitude,
            pin.longitude,
            pin.location_name,
            pin.caption,
            json.dumps(pin.locations) if pin.locations is not None else None,
            pin.created_at,
            pin.updated_at,
        )
        logger.info(f"Created pin {pin.id} for account {pin.account_id}")
        return row_to_pin(row)

    async def get_by_id(self, pin_id: str) -> Pin | None:
        row = await self._db.fetchrow(f"{_SELECT_WITH_OWNER} WHERE p.id = $1", pin_id)
        return row_to_pin(row) if row else None

    async def get_owner_id(self, pin_id: str) -> str | None:
        return await self._db.fetchval(
            "SELECT account_id FROM pins WHERE id = $1", pin_id
        )

    async def list_by_account(
        self,
        account_id: str,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Pin]:
        """Get an account's pins, newest first."""
        sql = f"""
            {_SELECT_WITH_OWNER}
            WHERE p.account_id = $1
            ORDER BY p.created_at DESC
            LIMIT $2 OFFSET $3
        """
        rows = await self._db.fetch(sql, account_id, limit, offset)
        return [row_to_pin(row) for row in rows]

    async def list_recent_refs(
        self,
        account_id: str,
        limit: int | None = None,
        *,
        conn: asyncpg.Connection | None = None,
    ) -> list[tuple[str, datetime]]:
        """Get ``(pin_id, created_at)`` for an account's pins, newest first.

        ``limit=None`` returns every pin. Pass ``conn`` to read inside an
        open transaction.
        """
        sql = """
            SELECT id, created_at FROM pins
            WHERE account_id = $1
            ORDER BY created_at DESC
            LIMIT $2
        """
        executor = conn or self._db
        rows = await executor.fetch(sql, account_id, limit)
        return [(row["id"], row["created_at"]) for row in rows]

    async def delete(self, pin_id: str) -> bool:
        status = await self._db.execute("DELETE FROM pins WHERE id = $1", pin_id)
        return affected_rows(status) > 0


def _load_json(value: Any) -> Any:
    if isinstance(value, str):
        return json.loads(value)
    return value


def row_to_pin(row: Any) -> Pin:
    """Convert an asyncpg Record to a Pin, decoding JSONB columns."""
    return Pin(
        id=row["id"],
        account_id=row["account_id"],
        payload=_load_json(row["payload"]),
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        location_name=row.get("location_name"),
        caption=row.get("caption"),
        locations=_load_json(row.get("locations")),
        created_at=row["created_at"],
        updated_at=row.get("updated_at") or row["created_at"],
        username=row.get("username"),
        display_name=row.get("display_name"),
    )
