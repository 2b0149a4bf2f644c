"""
Category and tag maintenance that has to touch articles.

Articles reference categories by name and carry tag names in a JSON list, so
renames, merges and deletions are propagated here.
"""

import logging
from typing import Callable, List

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import Article

logger = logging.getLogger(__name__)


async def count_articles_in_category(db: AsyncSession, name: str) -> int:
    result = await db.execute(select(func.count()).where(Article.category == name))
    return result.scalar() or 0


async def rename_category_in_articles(db: AsyncSession, old_name: str, new_name: str) -> int:
    """Point articles filed under ``old_name`` at ``new_name``. Does not commit."""
    result = await db.execute(
        update(Article).where(Article.category == old_name).values(category=new_name)
    )
    return result.rowcount or 0


async def _rewrite_tags(
    db: AsyncSession,
    tag_name: str,
    rewrite: Callable[[List[str]], List[str]],
) -> int:
    """Apply ``rewrite`` to every article tagged ``tag_name``. Does not commit.

    Returns:
        Number of articles changed
    """
    result = await db.execute(select(Article))
    changed = 0
    for article in result.scalars().all():
        tags = list(article.tags or [])
        if tag_name not in tags:
            continue
        # Assign a new list so the JSON column is flagged dirty
        article.tags = rewrite(tags)
        changed += 1
    if changed:
        logger.info("Rewrote tags on %d articles for tag %r", changed, tag_name)
    return changed


async def rename_tag_in_articles(db: AsyncSession, old_name: str, new_name: str) -> int:
    def rewrite(tags: List[str]) -> List[str]:
        renamed: List[str] = []
        for t in tags:
            value = new_name if t == old_name else t
            if value not in renamed:
                renamed.append(value)
        return renamed

    return await _rewrite_tags(db, old_name, rewrite)


async def remove_tag_from_articles(db: AsyncSession, name: str) -> int:
    return await _rewrite_tags(db, name, lambda tags: [t for t in tags if t != name])


async def merge_tag_in_articles(db: AsyncSession, source_name: str, target_name: str) -> int:
    """Replace ``source_name`` with ``target_name``, keeping one copy of the target."""

    def rewrite(tags: List[str]) -> List[str]:
        merged = [t for t in tags if t != source_name]
        if target_name not in merged:
            merged.append(target_name)
        return merged

    return await _rewrite_tags(db, source_name, rewrite)


def plural(count: int, word: str, suffix: str = "s") -> str:
    return f"{count} {word}{'' if count == 1 else suffix}"
