"""Health check endpoints.

``/health`` verifies the service and its local response store.
``/api/platform/health`` reports whether the platform API can be used, so
clients can decide whether to attempt a remote fetch at all.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey_insights.models.database import get_db
from survey_insights.logging_config import get_logger
from survey_insights.routes.dependencies import get_bearer_token, get_response_source
from survey_insights.services.response_source import ResponseSource

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    """Health check endpoint.

    Verifies that:
    1. The application is running
    2. The local response store is reachable

    Returns:
        dict: Health check status with store connection info

    Raises:
        HTTPException: If the store connection fails (503 Service Unavailable)

    Example response:
        {
            "status": "healthy",
            "database": "connected"
        }
    """
    try:
        db.execute(text("SELECT 1"))

        logger.debug("Health check passed")

        return {
            "status": "healthy",
            "database": "connected"
        }

    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail="Service unavailable - database connection failed"
        )


@router.get("/api/platform/health")
async def platform_health(
    force: bool = False,
    source: ResponseSource = Depends(get_response_source),
    token: Optional[str] = Depends(get_bearer_token),
) -> dict:
    """Report platform API availability (cached for one minute).

    Example response:
        {
            "available": true,
            "needsAuth": true
        }
    """
    health = await source.check_health(force=force, token=token)
    return {"available": health.available, "needsAuth": health.needs_auth}


@router.delete("/api/platform/health/cache", status_code=204)
async def clear_platform_health_cache(
    source: ResponseSource = Depends(get_response_source),
) -> None:
    """Forget the cached platform health result."""
    source.clear_health_cache()
