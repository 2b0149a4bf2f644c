"""
Tag API routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AdminCaller, CurrentCaller
from api.schemas.taxonomy import (
    TagCreateRequest,
    TagMergeRequest,
    TagMergeResponse,
    TagResponse,
    TagUpdateRequest,
)
from api.utils import escape_like
from core.domain import slugify
from core.errors import ConflictError, NotFoundError, ValidationFailedError
from infrastructure.database.connection import get_db
from infrastructure.database.models import Tag
from services.idempotent import create_or_fetch
from services.taxonomy import merge_tag_in_articles, remove_tag_from_articles, rename_tag_in_articles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tags", tags=["tags"])


def normalize_tag_name(name: Optional[str]) -> str:
    """Tags are stored lower-cased and trimmed; blank names are rejected."""
    normalized = (name or "").strip().lower()
    if not normalized:
        raise ValidationFailedError("Name is required")
    return normalized


async def _find_tag(db: AsyncSession, name: str) -> Optional[Tag]:
    result = await db.execute(select(Tag).where(Tag.name == name))
    return result.scalar_one_or_none()


async def _get_tag_or_404(db: AsyncSession, tag_id: str, label: str = "Tag") -> Tag:
    result = await db.execute(select(Tag).where(Tag.id == tag_id))
    tag = result.scalar_one_or_none()
    if not tag:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found",
        )
    return tag


@router.get("", response_model=list[TagResponse])
async def list_tags(
    q: Optional[str] = Query(None, max_length=100, description="Substring filter"),
    db: AsyncSession = Depends(get_db),
):
    """
    List tags alphabetically. Public.
    """
    query = select(Tag).order_by(Tag.name.asc())
    if q and q.strip():
        query = query.where(Tag.name.ilike(f"%{escape_like(q.strip().lower())}%", escape="\\"))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagCreateRequest,
    response: Response,
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a tag, or return the existing one with the same name.

    Responds 201 when a row was inserted and 200 when it already existed,
    including when a concurrent request inserted it first.
    """
    name = normalize_tag_name(request.name)
    existing = await _find_tag(db, name)
    if existing:
        response.status_code = status.HTTP_200_OK
        return existing

    tag, created = await create_or_fetch(
        db, Tag(name=name, slug=slugify(name)), select(Tag).where(Tag.name == name)
    )
    if created:
        logger.info("Tag %r created by %s", name, caller.user_id)
    else:
        response.status_code = status.HTTP_200_OK
    return tag


@router.put("/{tag_id}", response_model=TagResponse)
async def rename_tag(
    tag_id: str,
    request: TagUpdateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Rename a tag and update every article carrying the old name. Admin only.
    """
    tag = await _get_tag_or_404(db, tag_id)
    new_name = normalize_tag_name(request.name)
    if new_name == tag.name:
        return tag

    clash = await db.execute(select(Tag.id).where(Tag.name == new_name))
    if clash.first():
        raise ConflictError("A tag with that name already exists")

    old_name = tag.name
    await rename_tag_in_articles(db, old_name, new_name)
    tag.name = new_name
    tag.slug = slugify(new_name)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A tag with that name already exists")
    await db.refresh(tag)

    logger.info("Tag %r renamed to %r by %s", old_name, new_name, caller.user_id)
    return tag


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: str,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a tag and remove it from every article. Admin only.
    """
    tag = await _get_tag_or_404(db, tag_id)
    name = tag.name
    await remove_tag_from_articles(db, name)
    await db.delete(tag)
    await db.commit()
    logger.info("Tag %r deleted by %s", name, caller.user_id)


@router.post("/{tag_id}/merge", response_model=TagMergeResponse)
async def merge_tag(
    tag_id: str,
    request: TagMergeRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Merge this tag into ``target_id``. Admin only.

    Articles carrying the source tag get the target instead (once), and the
    source tag is deleted.
    """
    if request.target_id == tag_id:
        raise ValidationFailedError("Cannot merge a tag into itself")

    source = await _get_tag_or_404(db, tag_id, label="Source tag")
    result = await db.execute(select(Tag).where(Tag.id == request.target_id))
    target = result.scalar_one_or_none()
    if not target:
        raise NotFoundError("Target tag not found")

    source_name = source.name
    merged = await merge_tag_in_articles(db, source_name, target.name)
    await db.delete(source)
    await db.commit()
    await db.refresh(target)

    logger.info("Tag %r merged into %r by %s (%d articles)", source_name, target.name, caller.user_id, merged)
    return TagMergeResponse(target=TagResponse.model_validate(target), merged_count=merged)
