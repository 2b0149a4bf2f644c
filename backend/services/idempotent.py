"""
Insert-or-reuse helper for rows guarded by a uniqueness constraint.
"""

import logging
from typing import Tuple, TypeVar

from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def create_or_fetch(db: AsyncSession, instance: T, lookup: Select) -> Tuple[T, bool]:
    """
    Insert ``instance``; if a concurrent writer won the race, return theirs.

    The database's unique constraint decides the winner.  On an
    IntegrityError the transaction is rolled back and ``lookup`` is used to
    re-read the row that now exists.

    Args:
        db: Database session
        instance: New ORM object to insert
        lookup: SELECT returning the existing row for the same unique key

    Returns:
        Tuple of (row, created)

    Raises:
        IntegrityError: If the insert failed and no existing row matches
            ``lookup`` (some other constraint was violated)
    """
    db.add(instance)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(lookup)
        existing = result.scalar_one_or_none()
        if existing is None:
            raise
        logger.info("Lost insert race for %s, reusing existing row", type(instance).__name__)
        return existing, False

    await db.refresh(instance)
    return instance, True
