"""
Admin issue import: register an issue, bulk-load its articles as drafts and
list the drafts still awaiting review.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AdminCaller
from api.schemas.issue import (
    BatchImportRequest,
    BatchImportResponse,
    DraftListResponse,
    ImportedArticle,
    IssueFindOrCreateRequest,
    IssueFindOrCreateResponse,
)
from core.domain import ArticleStatus, Tier, slugify
from core.errors import ConflictError, NotFoundError, ValidationFailedError
from infrastructure.database.connection import get_db
from infrastructure.database.models import Article, Issue, issue_date, issue_slug
from services.idempotent import create_or_fetch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/import", tags=["Admin - Import"])


async def _find_issue(db: AsyncSession, slug: str) -> Optional[Issue]:
    result = await db.execute(select(Issue).where(Issue.slug == slug))
    return result.scalar_one_or_none()


@router.post("/issue", response_model=IssueFindOrCreateResponse, status_code=status.HTTP_201_CREATED)
async def find_or_create_issue(
    request: IssueFindOrCreateRequest,
    response: Response,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Return the issue with ``slug``, creating it if needed.

    Responds 201 with ``created: true`` for a new issue and 200 with
    ``created: false`` when it already existed. The other fields are ignored
    for an existing issue.
    """
    title = request.title.strip()
    slug = slugify(request.slug)
    if not title or not slug:
        raise ValidationFailedError("Missing required fields: title, slug, month, year")

    existing = await _find_issue(db, slug)
    if existing:
        response.status_code = status.HTTP_200_OK
        return IssueFindOrCreateResponse(id=existing.id, created=False)

    issue = Issue(
        title=title,
        slug=slug,
        month=request.month,
        year=request.year,
        volume=request.volume or None,
        number=request.number or None,
        published_at=issue_date(request.year, request.month),
    )
    issue, created = await create_or_fetch(db, issue, select(Issue).where(Issue.slug == slug))
    if created:
        logger.info("Issue %s (%s) created by %s", issue.slug, issue.id, caller.user_id)
    else:
        response.status_code = status.HTTP_200_OK
    return IssueFindOrCreateResponse(id=issue.id, created=created)


@router.post("/batch", response_model=BatchImportResponse, status_code=status.HTTP_201_CREATED)
async def import_articles(
    request: BatchImportRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Insert every row as a paid-tier draft of the issue, or none of them.

    Rows never arrive published; an admin reviews and publishes each one
    through the article editor.
    """
    if not request.articles or not request.issue_id:
        raise ValidationFailedError("Missing required fields: articles (non-empty array), issue_id")

    issue = (await db.execute(select(Issue).where(Issue.id == request.issue_id))).scalar_one_or_none()
    if issue is None:
        raise NotFoundError("Issue not found")

    slugs = []
    for row in request.articles:
        slug = slugify(row.slug if row.slug and row.slug.strip() else row.title)
        if not slug:
            raise ValidationFailedError(f"A URL slug could not be derived from {row.title!r}")
        if slug in slugs:
            raise ConflictError(f"Slug {slug!r} appears more than once in the batch")
        slugs.append(slug)

    taken = (await db.execute(select(Article.slug).where(Article.slug.in_(slugs)))).scalars().all()
    if taken:
        raise ConflictError(f"Slugs already in use: {', '.join(sorted(taken))}")

    articles = [
        Article(
            title=row.title.strip(),
            slug=slug,
            author_name=row.author_name or None,
            category=row.category or None,
            tags=row.tags,
            level=row.level or None,
            month=row.month or issue.month,
            year=row.year or issue.year,
            source_page=row.source_page,
            excerpt=row.excerpt or None,
            content_blocks=row.content_blocks,
            issue_id=issue.id,
            status=ArticleStatus.DRAFT.value,
            access_tier=Tier.PAID.value,
        )
        for row, slug in zip(request.articles, slugs)
    ]
    db.add_all(articles)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("An article with that slug already exists")

    logger.info("Admin %s imported %d drafts into issue %s", caller.user_id, len(articles), issue.slug)
    return BatchImportResponse(
        created=len(articles),
        articles=[ImportedArticle(id=a.id, title=a.title) for a in articles],
    )


@router.get("/drafts", response_model=DraftListResponse)
async def list_issue_drafts(
    caller: AdminCaller,
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    """Drafts of the ``YYYY-MM`` issue in page order; empty when there is no such issue."""
    if not year or not month:
        raise ValidationFailedError("year and month required")

    issue_id = (
        await db.execute(select(Issue.id).where(Issue.slug == issue_slug(year, month)))
    ).scalar_one_or_none()
    if issue_id is None:
        return DraftListResponse(articles=[])

    result = await db.execute(
        select(Article)
        .where(Article.issue_id == issue_id, Article.status == ArticleStatus.DRAFT.value)
        .order_by(Article.source_page.is_(None), Article.source_page.asc(), Article.title.asc())
    )
    return DraftListResponse(articles=result.scalars().all())
