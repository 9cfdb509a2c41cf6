"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.adapters.scheduling_adapter import SchedulingAdapter
from src.api.router import api_router
from src.config import Settings, settings
from src.db.turso import TursoClient
from src.events.bus import EventBus
from src.events.store import EventStore
from src.reconciliation.commit import CommitService
from src.reconciliation.resolver import MatchResolver
from src.reconciliation.service import ReconciliationService
from src.reconciliation.similarity import NameScorer
from src.repositories.team_member_repo import TeamMemberRepository

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_reconciliation_service(
    member_repo: TeamMemberRepository,
    scheduling_adapter: SchedulingAdapter,
    event_bus: EventBus | None = None,
    config: Settings = settings,
) -> ReconciliationService:
    """Wire the reconciliation engine from settings.

    Args:
        member_repo: Local roster repository (source and commit target)
        scheduling_adapter: Scheduling-system user source
        event_bus: Optional bus for activity events
        config: Settings to read matching options from

    Returns:
        Configured ReconciliationService
    """
    scorer = NameScorer(
        algorithm=config.similarity_algorithm,
        first_name_weight=config.first_name_weight,
        last_name_weight=config.last_name_weight,
    )
    return ReconciliationService(
        local_source=member_repo,
        remote_source=scheduling_adapter,
        resolver=MatchResolver(scorer, fuzzy_threshold=config.fuzzy_match_threshold),
        commit_service=CommitService(
            member_repo, external_source=config.external_source
        ),
        event_bus=event_bus,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Initialize roster and activity log schemas
    - Wire the reconciliation service

    Shutdown:
    - Close database connection
    """
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info(f"Database connected: {db.url}")

    member_repo = TeamMemberRepository(db)
    await member_repo.initialize()

    event_store = EventStore(db)
    await event_store.init_schema()
    event_bus = EventBus(store=event_store)
    app.state.event_store = event_store
    app.state.event_bus = event_bus
    logger.info("Activity log initialized")

    app.state.reconciliation_service = build_reconciliation_service(
        member_repo, SchedulingAdapter(), event_bus
    )
    logger.info(
        f"Reconciliation service initialized "
        f"(algorithm={settings.similarity_algorithm}, "
        f"threshold={settings.fuzzy_match_threshold})"
    )

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await db.close()


app = FastAPI(
    title=settings.app_name,
    description="Matches the team roster to scheduling-system users",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
