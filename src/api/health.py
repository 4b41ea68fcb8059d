"""Liveness of the metrics store."""

from typing import Annotated, Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from src.config import Settings, get_settings
from src.infrastructure.database import get_database

logger = structlog.get_logger()
router = APIRouter()


class HealthResponse(BaseModel):
    status: Literal["healthy"]
    version: str
    database: Literal["ok"]


async def check_database() -> None:
    """Run a trivial query against the metrics database.

    Raises:
        RuntimeError: If the database was never connected.
        Exception: Whatever the driver raises for a broken connection.
    """
    await get_database().execute("SELECT 1")


@router.get("", response_model=HealthResponse)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Report whether the metrics database answers queries.

    GitHub and Datadog are not checked: collectors tolerate their outages and
    retry on the next scheduled run.
    """
    try:
        await check_database()
    except Exception as e:
        logger.error(
            "health_database_check_failed", error=str(e), error_type=type(e).__name__
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Metrics database unavailable: {type(e).__name__}",
        ) from e

    return HealthResponse(status="healthy", version=settings.app_version, database="ok")
