"""Liveness and database readiness checks."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.config import get_settings
from infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])
settings = get_settings()

DB_CHECK_TIMEOUT = 5.0


def _status_body(status: str, **extra) -> dict:
    return {
        "status": status,
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
        **extra,
    }


@router.get("")
async def liveness():
    """The process is up and serving requests."""
    return _status_body("healthy")


@router.get("/db")
async def database_readiness(db: AsyncSession = Depends(get_db)):
    """
    Run ``SELECT 1`` against the database.

    Responds 503 with ``status: degraded`` when the query fails or times out.
    """
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=DB_CHECK_TIMEOUT)
    except TimeoutError:
        logger.error("Database check timed out after %.0fs", DB_CHECK_TIMEOUT)
        return JSONResponse(status_code=503, content=_status_body("degraded", database="timeout"))
    except Exception as e:
        logger.error("Database check failed: %s", type(e).__name__)
        return JSONResponse(status_code=503, content=_status_body("degraded", database="unreachable"))

    return _status_body("healthy", database="connected")
