"""Health check endpoints for monitoring and orchestration."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.config import settings

router = APIRouter(prefix="/health", tags=["health"])

REQUIRED_TABLES = ("team_members", "activity_events")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    timestamp: datetime
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: str
    checks: dict[str, str]


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - app is running."""
    return {"status": "alive"}


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe - app can serve previews.

    Checks:
    - Roster database is connected and its tables exist
    - Scheduling proxy URL is configured
    """
    checks: dict[str, str] = {"api": "ok"}

    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["database"] = "not_configured"
    else:
        healthy = await db.is_healthy(REQUIRED_TABLES)
        checks["database"] = "ok" if healthy else "failed"

    checks["scheduling"] = "ok" if settings.scheduling_api_url else "not_configured"

    status = "ready" if all(v == "ok" for v in checks.values()) else "not_ready"
    return ReadinessResponse(status=status, checks=checks)
