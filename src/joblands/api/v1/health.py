import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from joblands.api.deps import get_db
from joblands.core.config import get_settings
from joblands.schemas.health import HealthResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    settings = get_settings()
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        db_status = "disconnected"

    healthy = db_status == "connected"
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        database=db_status,
        model=settings.gemini_model,
        version=settings.app_version,
    )


@router.get("/status", response_model=StatusResponse)
async def liveness() -> StatusResponse:
    return StatusResponse()
