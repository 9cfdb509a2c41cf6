"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from src.adapters.scheduling_adapter import SchedulingAdapter
from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.store import EventStore
from src.main import app, build_reconciliation_service
from src.reconciliation.schemas import LocalIdentity, RemoteIdentity
from src.repositories.team_member_repo import TeamMemberRepository


@pytest.fixture
async def db_client(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_roster.db"
    async with TursoClient(url=f"file:{db_path}") as client:
        yield client


@pytest.fixture
def team_roster() -> list[LocalIdentity]:
    """Active team members, ordered by last name."""
    return [
        LocalIdentity(
            id="m-1",
            first_name="Steve",
            last_name="Chen",
            email="steve@kitchen.example",
        ),
        LocalIdentity(
            id="m-2",
            first_name="Bob",
            last_name="Lee",
            external_id="200",
            external_source="7shifts",
        ),
        LocalIdentity(
            id="m-3",
            first_name="Katherine",
            last_name="Moreau",
            email="K.Moreau@Kitchen.example",
        ),
        LocalIdentity(id="m-4", first_name="Marco", last_name="Rossi"),
        LocalIdentity(id="m-5", first_name="Priya", last_name="Zhou"),
    ]


@pytest.fixture
def scheduling_users() -> list[RemoteIdentity]:
    """Users fetched from the scheduling system."""
    return [
        RemoteIdentity(id=100, first_name="Steve", last_name="Chen"),
        RemoteIdentity(id=200, first_name="Robert", last_name="Lee"),
        RemoteIdentity(
            id=300,
            first_name="Kate",
            last_name="Moreau-Blanc",
            email="k.moreau@kitchen.example",
        ),
        RemoteIdentity(id=400, first_name="Marc", last_name="Rossi"),
        RemoteIdentity(id=500, first_name="Dana", last_name="Whitfield"),
    ]


@pytest.fixture
def scheduling_transport(scheduling_users: list[RemoteIdentity]) -> httpx.MockTransport:
    """Scheduling proxy stub that serves the sample users."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"data": [u.model_dump(mode="json") for u in scheduling_users]},
        )

    return httpx.MockTransport(handler)


@pytest.fixture
async def client(
    db_client: TursoClient,
    team_roster: list[LocalIdentity],
    scheduling_transport: httpx.MockTransport,
) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app with database."""
    # Seed the roster for org-1
    member_repo = TeamMemberRepository(db_client)
    await member_repo.initialize()
    for member in team_roster:
        await member_repo.add_member("org-1", member)

    # Initialize activity log
    event_store = EventStore(db_client)
    await event_store.init_schema()
    event_bus = EventBus(store=event_store)

    # Set up app state
    app.state.db = db_client
    app.state.event_store = event_store
    app.state.event_bus = event_bus
    app.state.reconciliation_service = build_reconciliation_service(
        member_repo,
        SchedulingAdapter(
            base_url="http://scheduling.test", transport=scheduling_transport
        ),
        event_bus,
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up app state
    del app.state.db
    del app.state.event_store
    del app.state.event_bus
    del app.state.reconciliation_service
