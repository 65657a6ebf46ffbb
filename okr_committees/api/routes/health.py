# okr_committees/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel, Field
from sqlalchemy.engine import make_url

from okr_committees.core.config import get_settings


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(..., example="ok")
    app_name: str = Field(..., example="OKR Committees")
    environment: str = Field(
        ...,
        description="Current deployment environment (local/test/dev/stage/prod).",
        example="local",
    )
    database_backend: str = Field(
        ...,
        description="Configured database dialect and driver. No connection is attempted.",
        example="postgresql+asyncpg",
    )
    timestamp_utc: datetime = Field(..., example="2025-01-01T10:30:00Z")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe for the OKR Committees service",
    description=(
        "Reports that the process is up, which environment it runs in and which "
        "database backend it is configured for. The database itself is not queried, "
        "so the probe stays green while the hosted store is degraded."
    ),
)
async def health_check() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        database_backend=make_url(settings.DB_URL).drivername,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
