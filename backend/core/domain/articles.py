"""Article editorial status rules."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from core.errors import ValidationFailedError

from .access import Caller


class ArticleStatus(str, Enum):
    """Editorial status, in lifecycle order."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PUBLISHED = "published"


# Accepted spellings for incoming status values.
_STATUS_ALIASES = {
    "draft": ArticleStatus.DRAFT,
    "submitted": ArticleStatus.SUBMITTED,
    "review": ArticleStatus.SUBMITTED,
    "published": ArticleStatus.PUBLISHED,
}


def parse_status(value: Optional[str]) -> ArticleStatus:
    if value is None:
        return ArticleStatus.DRAFT
    try:
        return _STATUS_ALIASES[value.strip().lower()]
    except KeyError:
        raise ValidationFailedError(f"Invalid status: {value}") from None


def resolve_status(requested: Optional[str], caller: Caller) -> ArticleStatus:
    """Status actually stored for a write by ``caller``.

    Only admins publish; a non-admin asking for ``published`` gets ``draft``.
    """
    status = parse_status(requested)
    if status is ArticleStatus.PUBLISHED and not caller.is_admin:
        return ArticleStatus.DRAFT
    return status


def stamp_published_at(
    current: Optional[datetime],
    new_status: ArticleStatus,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """Set published_at when entering ``published``; never clear it."""
    if current is not None:
        return current
    if new_status is ArticleStatus.PUBLISHED:
        return now or datetime.now(timezone.utc)
    return None
