"""Health check endpoint. No auth; used for liveness and readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.shared.telemetry.logging import get_logger
from app.schemas.health import HealthResponse

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check() -> HealthResponse | JSONResponse:
    """Return ok; pings the database unless HEALTH_SKIP_DB is set (503 on failure)."""
    if get_settings().health_skip_db:
        return HealthResponse()

    from app.infrastructure.persistence.database import ping_db

    try:
        await ping_db()
    except Exception as e:
        logger.warning("Health check database ping failed: %s", e.__class__.__name__)
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                ok=False, status="degraded", database="error"
            ).model_dump(),
        )
    return HealthResponse(database="ok")
