"""Health, readiness and liveness endpoints for the billing API."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from placement_billing.api.dependencies import DbSession
from placement_billing.config import get_settings
from placement_billing.database import STORE_ERRORS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status with the database check and engine version."""

    status: str
    timestamp: datetime
    database: str
    version: str


async def database_reachable(db: AsyncSession) -> bool:
    """Round-trip a trivial query; billing cannot run without the database."""
    try:
        await db.execute(text("SELECT 1"))
    except STORE_ERRORS:
        logger.warning("Database check failed", exc_info=True)
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """Report overall status; a database outage degrades rather than fails."""
    reachable = await database_reachable(db)
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        timestamp=datetime.now(timezone.utc),
        database="healthy" if reachable else "unhealthy",
        version=get_settings().engine_version,
    )


@router.get("/ready", responses={503: {"description": "Database unreachable"}})
async def readiness_check(db: DbSession) -> JSONResponse:
    """Ready only when billing runs could reach the database."""
    if await database_reachable(db):
        return JSONResponse({"status": "ready"})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unavailable", "error": "database unreachable"},
    )


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
