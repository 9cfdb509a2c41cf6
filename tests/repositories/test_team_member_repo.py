"""Tests for TeamMemberRepository."""

from datetime import UTC, datetime

import pytest

from src.db.turso import TursoClient
from src.reconciliation.commit import CommitService
from src.reconciliation.errors import MemberNotFoundError
from src.reconciliation.resolver import MatchResolver
from src.reconciliation.schemas import LocalIdentity, MatchType
from src.repositories.team_member_repo import TeamMemberRepository

SYNCED_AT = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


@pytest.fixture
async def repo(db_client: TursoClient, team_roster: list[LocalIdentity]):
    """Create TeamMemberRepository seeded with the sample roster."""
    repo = TeamMemberRepository(db_client)
    await repo.initialize()
    for member in team_roster:
        await repo.add_member("org-1", member)
    return repo


async def test_initialize_creates_table(db_client: TursoClient):
    """Initialize should create team_members table."""
    repo = TeamMemberRepository(db_client)
    await repo.initialize()

    result = await db_client.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='team_members'"
    )
    assert len(result.rows) == 1


async def test_initialize_is_idempotent(db_client: TursoClient):
    """Initialize can run on every startup."""
    repo = TeamMemberRepository(db_client)
    await repo.initialize()
    await repo.initialize()


async def test_get_member(repo: TeamMemberRepository):
    """Should round-trip stored fields."""
    member = await repo.get_member("m-2")

    assert member is not None
    assert member.first_name == "Bob"
    assert member.external_id == "200"
    assert member.external_source == "7shifts"
    assert member.is_active is True


async def test_get_member_not_found(repo: TeamMemberRepository):
    """Should return None for unknown ID."""
    assert await repo.get_member("nope") is None


async def test_get_active_members_ordering_and_filtering(repo: TeamMemberRepository):
    """Active members of the organization, ordered by last then first name."""
    await repo.add_member(
        "org-1",
        LocalIdentity(id="m-6", first_name="Amy", last_name="Chen", is_active=False),
    )
    await repo.add_member(
        "org-2", LocalIdentity(id="m-7", first_name="Al", last_name="Abbott")
    )
    await repo.add_member(
        "org-1", LocalIdentity(id="m-8", first_name="Ann", last_name="Chen")
    )

    members = await repo.get_active_members("org-1")

    assert [m.id for m in members] == ["m-8", "m-1", "m-2", "m-3", "m-4", "m-5"]


async def test_add_member_upserts(repo: TeamMemberRepository):
    """Adding an existing ID replaces its fields."""
    await repo.add_member(
        "org-1", LocalIdentity(id="m-4", first_name="Marco", last_name="Rossi-Bianchi")
    )

    member = await repo.get_member("m-4")
    assert member.last_name == "Rossi-Bianchi"


async def test_update_external_link(repo: TeamMemberRepository):
    """Link fields and the user snapshot are written."""
    await repo.update_external_link(
        "m-1",
        external_id="100",
        external_source="7shifts",
        external_data={"id": 100, "first_name": "Steve", "last_name": "Chen"},
        synced_at=SYNCED_AT,
    )

    member = await repo.get_member("m-1")
    assert member.external_id == "100"
    assert member.external_source == "7shifts"
    assert member.last_synced_at == SYNCED_AT
    assert await repo.get_external_data("m-1") == {
        "id": 100,
        "first_name": "Steve",
        "last_name": "Chen",
    }


async def test_update_external_link_unknown_member(repo: TeamMemberRepository):
    """Writing to a missing member raises MemberNotFoundError."""
    with pytest.raises(MemberNotFoundError):
        await repo.update_external_link(
            "ghost",
            external_id="1",
            external_source="7shifts",
            external_data=None,
            synced_at=SYNCED_AT,
        )


async def test_get_external_data_empty(repo: TeamMemberRepository):
    """Members without a snapshot return None."""
    assert await repo.get_external_data("m-5") is None


async def test_commit_round_trip(repo: TeamMemberRepository, scheduling_users):
    """Committed matches come back as linked on the next preview."""
    resolver = MatchResolver()
    members = await repo.get_active_members("org-1")
    candidates, _ = resolver.resolve(members, scheduling_users)
    candidates = [
        c.model_copy(update={"confirmed": True}) if c.remote else c
        for c in candidates
    ]

    result = await CommitService(repo, clock=lambda: SYNCED_AT).commit(candidates)

    assert result.succeeded == 3
    assert result.failed == 0

    candidates, leftover = resolver.resolve(
        await repo.get_active_members("org-1"), scheduling_users
    )
    by_member = {c.local.id: c for c in candidates}
    for member_id in ("m-1", "m-2", "m-3", "m-4"):
        assert by_member[member_id].match_type == MatchType.LINKED
    assert by_member["m-4"].local.external_id == "400"
    assert [r.id for r in leftover] == [500]
