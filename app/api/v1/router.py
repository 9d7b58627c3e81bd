"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from app.api.v1.dependencies (no manual repo/service construction).
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    events,
    flows,
    health,
    providers,
    runs,
    webhooks,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
# Before flows so /flows/emit and /flows/events are not read as flow ids.
api_router.include_router(events.router, prefix="/flows", tags=["events"])
api_router.include_router(flows.router, prefix="/flows", tags=["flows"])
api_router.include_router(runs.router, prefix="/runs", tags=["runs"])
api_router.include_router(providers.router, prefix="/providers", tags=["providers"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
