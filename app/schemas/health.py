"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health."""

    ok: bool = True
    status: str = Field(default="ok", description="Service status")
    database: str = Field(
        default="skipped", description="Database ping result: ok, skipped or error"
    )
