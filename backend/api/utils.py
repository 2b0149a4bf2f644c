"""
Shared API utility functions.
"""

from typing import Any, Sequence, Tuple

from fastapi import Request
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


def escape_like(value: str) -> str:
    """Escape LIKE wildcards for safe use in SQL LIKE/ILIKE patterns."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def paginate(
    db: AsyncSession, query: Select, page: int, limit: int
) -> Tuple[Sequence[Any], int]:
    """Run ``query`` for one page and count the full result set.

    Returns:
        Tuple of (rows on the page, total rows)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return result.scalars().all(), total


def client_ip(request: Request) -> str:
    """Best-effort client address as reported by the proxy chain."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
