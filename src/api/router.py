"""API router aggregation."""

from fastapi import APIRouter

from src.api.health import router as health_router
from src.api.reconciliation import router as reconciliation_router

api_router = APIRouter()
api_router.include_router(health_router)
# Roster reconciliation (preview, review, commit)
api_router.include_router(reconciliation_router)
