"""Append-only activity log using Turso/libSQL."""

import json
import logging

from src.db.turso import TursoClient
from src.events.base import Event

logger = logging.getLogger(__name__)


class EventStore:
    """Append-only activity log.

    Events are never updated or deleted.
    """

    def __init__(self, client: TursoClient):
        """Initialize event store.

        Args:
            client: Database client for persistence
        """
        self.client = client

    async def init_schema(self) -> None:
        """Create the activity table if it doesn't exist."""
        await self.client.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS activity_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                event_id TEXT UNIQUE NOT NULL,
                event_type TEXT NOT NULL,
                aggregate_id TEXT,
                aggregate_type TEXT,
                event_data TEXT NOT NULL,
                timestamp TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_activity_type
            ON activity_events(event_type)
            """,
            ]
        )
        logger.info("Activity log schema initialized")

    async def append(self, event: Event) -> None:
        """Append an event to the log.

        Args:
            event: The event to store
        """
        await self.client.execute(
            """INSERT INTO activity_events
               (event_id, event_type, aggregate_id, aggregate_type,
                event_data, timestamp)
               VALUES (?, ?, ?, ?, ?, ?)""",
            [
                str(event.event_id),
                event.event_type,
                str(event.aggregate_id) if event.aggregate_id else None,
                event.aggregate_type,
                json.dumps(event.payload()),
                event.timestamp.isoformat(),
            ],
        )
        logger.debug(f"Stored event {event.event_type} ({event.event_id})")

    async def get_events_by_type(
        self,
        event_type: str,
        limit: int = 100,
    ) -> list[dict]:
        """Retrieve the most recent events of a type.

        Args:
            event_type: Event type name (class name)
            limit: Maximum events to return

        Returns:
            Event dictionaries, newest first
        """
        result = await self.client.execute(
            """SELECT event_id, event_type, aggregate_id, event_data, timestamp
               FROM activity_events
               WHERE event_type = ?
               ORDER BY id DESC
               LIMIT ?""",
            [event_type, limit],
        )
        return [
            {
                "event_id": row[0],
                "event_type": row[1],
                "aggregate_id": row[2],
                "data": json.loads(row[3]),
                "timestamp": row[4],
            }
            for row in result.rows
        ]

    async def count_events(self, event_type: str | None = None) -> int:
        """Count events, optionally by type."""
        if event_type:
            return await self.client.fetch_value(
                "SELECT COUNT(*) FROM activity_events WHERE event_type = ?",
                [event_type],
            )
        return await self.client.fetch_value("SELECT COUNT(*) FROM activity_events")
