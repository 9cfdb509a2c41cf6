"""Repository for the local team roster.

Reads active team members for matching and writes single-record
external links when matches are committed. Uses SQLite (via TursoClient)
for persistence.
"""

import json
from datetime import datetime

from src.db.turso import TursoClient
from src.reconciliation.errors import MemberNotFoundError
from src.reconciliation.schemas import LocalIdentity

_COLUMNS = """id, first_name, last_name, punch_id, email, phone, is_active,
              external_id, external_source, last_synced_at"""


def _row_to_member(row) -> LocalIdentity:
    return LocalIdentity(
        id=row[0],
        first_name=row[1] or "",
        last_name=row[2] or "",
        punch_id=row[3],
        email=row[4],
        phone=row[5],
        is_active=bool(row[6]),
        external_id=row[7],
        external_source=row[8],
        last_synced_at=datetime.fromisoformat(row[9]) if row[9] else None,
    )


class TeamMemberRepository:
    """Repository for team members and their external links.

    Implements the local identity source used by reconciliation.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create team_members table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS team_members (
                id TEXT PRIMARY KEY,
                organization_id TEXT NOT NULL,
                first_name TEXT NOT NULL DEFAULT '',
                last_name TEXT NOT NULL DEFAULT '',
                punch_id TEXT,
                email TEXT,
                phone TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                external_id TEXT,
                external_source TEXT,
                external_data TEXT,
                last_synced_at TEXT
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_team_members_org
            ON team_members(organization_id, is_active, last_name)
            """,
            ]
        )

    async def add_member(self, organization_id: str, member: LocalIdentity) -> None:
        """Insert or replace a team member.

        Args:
            organization_id: Organization the member belongs to
            member: Team member to store
        """
        await self._db.execute(
            """
            INSERT INTO team_members
                (id, organization_id, first_name, last_name, punch_id, email,
                 phone, is_active, external_id, external_source, last_synced_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                organization_id = excluded.organization_id,
                first_name = excluded.first_name,
                last_name = excluded.last_name,
                punch_id = excluded.punch_id,
                email = excluded.email,
                phone = excluded.phone,
                is_active = excluded.is_active,
                external_id = excluded.external_id,
                external_source = excluded.external_source,
                last_synced_at = excluded.last_synced_at
            """,
            [
                member.id,
                organization_id,
                member.first_name,
                member.last_name,
                member.punch_id,
                member.email,
                member.phone,
                1 if member.is_active else 0,
                member.external_id,
                member.external_source,
                member.last_synced_at.isoformat() if member.last_synced_at else None,
            ],
        )

    async def get_member(self, member_id: str) -> LocalIdentity | None:
        """Get a team member by ID.

        Returns:
            LocalIdentity or None if not found
        """
        row = await self._db.fetch_one(
            f"SELECT {_COLUMNS} FROM team_members WHERE id = ?",
            [member_id],
        )
        return _row_to_member(row) if row is not None else None

    async def get_active_members(self, organization_id: str) -> list[LocalIdentity]:
        """Get active team members of an organization.

        Ordered by last name, then first name. The resolver is greedy in
        input order, so this order decides contested fuzzy matches.

        Args:
            organization_id: Organization identifier

        Returns:
            List of active LocalIdentity records
        """
        result = await self._db.execute(
            f"""
            SELECT {_COLUMNS}
            FROM team_members
            WHERE organization_id = ? AND is_active = 1
            ORDER BY last_name, first_name, id
            """,
            [organization_id],
        )
        return [_row_to_member(row) for row in result.rows]

    async def get_external_data(self, member_id: str) -> dict | None:
        """Get the stored snapshot of the linked scheduling user."""
        raw = await self._db.fetch_value(
            "SELECT external_data FROM team_members WHERE id = ?",
            [member_id],
        )
        return json.loads(raw) if raw else None

    async def update_external_link(
        self,
        member_id: str,
        *,
        external_id: str,
        external_source: str,
        external_data: dict | None,
        synced_at: datetime,
    ) -> None:
        """Write the external link for one team member.

        Args:
            member_id: Team member to update
            external_id: Scheduling-system user ID
            external_source: Name of the scheduling system
            external_data: Snapshot of the scheduling user record
            synced_at: Sync timestamp

        Raises:
            MemberNotFoundError: If no team member has this ID
        """
        result = await self._db.execute(
            """
            UPDATE team_members
            SET external_id = ?,
                external_source = ?,
                external_data = ?,
                last_synced_at = ?
            WHERE id = ?
            """,
            [
                external_id,
                external_source,
                json.dumps(external_data) if external_data is not None else None,
                synced_at.isoformat(),
                member_id,
            ],
        )
        if result.rows_affected == 0:
            raise MemberNotFoundError(f"Team member {member_id} not found")
