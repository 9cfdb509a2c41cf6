"""libSQL connection for the roster database.

The same client serves the team_members table and the activity log. It
talks to a local SQLite file in development and tests, and to a hosted
libSQL database when a ``libsql://`` URL and token are configured.
"""

import logging
from collections.abc import Sequence
from typing import Any, Self

from libsql_client import Client, ResultSet, Row, create_client

from src.config import settings

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "file:roster.db"


class TursoClient:
    """Async libSQL client for roster storage.

    Can be used as an async context manager:

        async with TursoClient(url="file:roster.db") as db:
            await db.execute("SELECT 1")
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
    ):
        """Initialize client with connection parameters.

        Args:
            url: Database URL. Defaults to TURSO_DATABASE_URL, then a local file.
            auth_token: Token for hosted databases. Defaults to TURSO_AUTH_TOKEN.
        """
        self.url = url or settings.turso_database_url or DEFAULT_DATABASE_URL
        self.auth_token = auth_token or settings.turso_auth_token
        self._client: Client | None = None

    @property
    def is_remote(self) -> bool:
        """True for hosted libSQL URLs."""
        return self.url.startswith("libsql://")

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Open the connection. Calling it twice is a no-op."""
        if self.connected:
            return
        # Tokens only apply to hosted databases
        token = self.auth_token if self.is_remote else None
        self._client = create_client(url=self.url, auth_token=token)
        logger.info(
            f"Roster database connected: {self.url} "
            f"({'remote' if self.is_remote else 'local'})"
        )

    async def close(self) -> None:
        """Close the connection if open."""
        if not self.connected:
            return
        await self._client.close()
        self._client = None
        logger.info("Roster database connection closed")

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def _conn(self) -> Client:
        if self._client is None:
            raise RuntimeError("Roster database is not connected; call connect() first")
        return self._client

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> ResultSet:
        """Run one statement with ? placeholders."""
        return await self._conn.execute(sql, list(params or []))

    async def execute_batch(self, statements: list[str]) -> None:
        """Run schema statements together in one batch."""
        await self._conn.batch(statements)

    async def fetch_one(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> Row | None:
        """First row of a query, or None when it returns nothing."""
        result = await self.execute(sql, params)
        return result.rows[0] if result.rows else None

    async def fetch_value(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> Any:
        """First column of the first row, or None when there are no rows."""
        row = await self.fetch_one(sql, params)
        return row[0] if row is not None else None

    async def table_exists(self, name: str) -> bool:
        """Whether a table has been created."""
        found = await self.fetch_value(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            [name],
        )
        return found is not None

    async def is_healthy(self, required_tables: Sequence[str] = ()) -> bool:
        """Check the connection answers and the given tables exist.

        Args:
            required_tables: Tables that must have been created

        Returns:
            False when not connected, on a query error, or if a table is missing
        """
        if not self.connected:
            return False
        try:
            if await self.fetch_value("SELECT 1") != 1:
                return False
            missing = [t for t in required_tables if not await self.table_exists(t)]
        except Exception as e:
            logger.warning(f"Roster database health check failed: {e}")
            return False
        if missing:
            logger.warning(f"Roster database missing tables: {', '.join(missing)}")
            return False
        return True
