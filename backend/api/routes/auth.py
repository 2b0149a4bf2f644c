"""
Authentication API routes.

Sign-in itself happens at the identity provider; the backend only records
that it happened.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import CurrentCaller
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.profile import LoginRecordedResponse
from api.utils import client_ip
from infrastructure.database.connection import get_db
from infrastructure.database.models import LoginHistory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/log-login", response_model=LoginRecordedResponse)
@limiter.limit(get_rate_limit("log_login"))
async def log_login(
    request: Request,
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
) -> LoginRecordedResponse:
    """
    Append a login history entry for the caller.
    """
    entry = LoginHistory(
        user_id=caller.user_id,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent") or "unknown",
    )
    db.add(entry)
    await db.commit()

    logger.debug("Recorded login for %s from %s", caller.user_id, entry.ip_address)
    return LoginRecordedResponse(success=True)
