"""
Article API routes.
"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AdminCaller, OptionalCaller, require_capability
from api.schemas.content import (
    ArticleCreatedResponse,
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdateRequest,
    PublicArticleResponse,
)
from api.utils import escape_like, paginate
from core.domain import (
    ArticleStatus,
    Caller,
    Capability,
    check_read_access,
    parse_status,
    require_owner_or_admin,
    resolve_status,
    slugify,
    stamp_published_at,
)
from core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from infrastructure.database.connection import get_db
from infrastructure.database.models import Article, Issue
from services.profiles import get_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])

DEFAULT_PAGE_SIZE = 15

# Editor listing sort columns
SORTABLE_COLUMNS = {
    "created_at": Article.created_at,
    "updated_at": Article.updated_at,
    "published_at": Article.published_at,
    "title": Article.title,
    "author_name": Article.author_name,
    "status": Article.status,
}

# Public listing sort keys
PUBLIC_SORTS = {
    "date": Article.published_at,
    "name": Article.title,
    "author": Article.author_name,
}

EditorCaller = Depends(require_capability(Capability.CONTRIBUTOR))
AuthorCaller = Depends(require_capability(Capability.AUTHOR))


async def _get_article_or_404(db: AsyncSession, article_id: str) -> Article:
    result = await db.execute(select(Article).where(Article.id == article_id))
    article = result.scalar_one_or_none()
    if not article:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Article not found",
        )
    return article


async def _ensure_slug_available(
    db: AsyncSession, slug: str, exclude_id: Optional[str] = None
) -> None:
    query = select(Article.id).where(Article.slug == slug)
    if exclude_id:
        query = query.where(Article.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError("An article with that slug already exists")


async def _ensure_issue_exists(db: AsyncSession, issue_id: Optional[str]) -> None:
    if issue_id and (await db.execute(select(Issue.id).where(Issue.id == issue_id))).first() is None:
        raise NotFoundError("Issue not found")


def _clean_slug(raw: Optional[str], title: str) -> str:
    slug = slugify(raw if raw and raw.strip() else title)
    if not slug:
        raise ValidationFailedError("A URL slug could not be derived from the title")
    return slug


async def _commit_article(db: AsyncSession, article: Article) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        # Only the slug is unique; anything else is a dangling reference
        if "slug" in str(e.orig).lower():
            raise ConflictError("An article with that slug already exists")
        logger.warning("Article %s rejected by the database: %s", article.id, e.orig)
        raise ConflictError("Article references a record that no longer exists")
    await db.refresh(article)


@router.post("", response_model=ArticleCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    request: ArticleCreateRequest,
    caller: Caller = EditorCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an article owned by the caller.

    Only admins may publish directly; anyone else asking for ``published``
    gets a draft.
    """
    slug = _clean_slug(request.slug, request.title)
    await _ensure_slug_available(db, slug)
    await _ensure_issue_exists(db, request.issue_id)

    article_status = resolve_status(request.status, caller)
    article = Article(
        title=request.title.strip(),
        slug=slug,
        author_name=request.author_name,
        author_id=caller.user_id,
        category=request.category,
        tags=request.tags,
        access_tier=request.access_tier.value,
        excerpt=request.excerpt,
        status=article_status.value,
        content_blocks=request.content_blocks,
        featured_image_url=request.featured_image_url,
        published_at=stamp_published_at(None, article_status),
        issue_id=request.issue_id,
        month=request.month,
        year=request.year,
        level=request.level,
        source_page=request.source_page,
    )
    db.add(article)
    await _commit_article(db, article)

    logger.info("Article %s created by %s with status %s", article.id, caller.user_id, article.status)
    return ArticleCreatedResponse(
        id=article.id,
        slug=article.slug,
        status=article.status,
        published_at=article.published_at,
    )


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=200),
    sort_by: str = Query(
        "created_at",
        pattern="^(created_at|updated_at|published_at|title|author_name|status)$",
    ),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    caller: Caller = EditorCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    List articles for the editor dashboard.

    Admins see every article; contributors see only their own.
    """
    query = select(Article)
    if not caller.is_admin:
        query = query.where(Article.author_id == caller.user_id)

    if status_filter:
        query = query.where(Article.status == parse_status(status_filter).value)
    if search:
        pattern = f"%{escape_like(search)}%"
        query = query.where(
            or_(
                Article.title.ilike(pattern, escape="\\"),
                Article.author_name.ilike(pattern, escape="\\"),
            )
        )

    column = SORTABLE_COLUMNS[sort_by]
    order = column.asc() if sort_order == "asc" else column.desc()
    query = query.order_by(order, Article.id)

    items, total = await paginate(db, query, page, limit)
    return ArticleListResponse(
        items=items,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.get("/public", response_model=ArticleListResponse)
async def list_published_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    category: Optional[str] = None,
    tag: Optional[str] = None,
    q: Optional[str] = Query(None, max_length=200),
    sort: str = Query("date", pattern="^(date|name|author)$"),
    db: AsyncSession = Depends(get_db),
):
    """
    List published articles for readers.

    Listing is not gated by tier; the paywall applies when an article body
    is requested.
    """
    query = select(Article).where(Article.status == ArticleStatus.PUBLISHED.value)
    if category:
        query = query.where(Article.category == category)
    if q:
        pattern = f"%{escape_like(q)}%"
        query = query.where(
            or_(
                Article.title.ilike(pattern, escape="\\"),
                Article.excerpt.ilike(pattern, escape="\\"),
                Article.author_name.ilike(pattern, escape="\\"),
            )
        )

    column = PUBLIC_SORTS[sort]
    order = column.desc() if sort == "date" else column.asc()
    query = query.order_by(order, Article.id)

    if tag:
        # Tags are a JSON list; filter in Python so the query stays portable
        wanted = tag.strip().lower()
        rows = [a for a in (await db.execute(query)).scalars().all() if wanted in (a.tags or [])]
        total = len(rows)
        items = rows[(page - 1) * limit:page * limit]
    else:
        items, total = await paginate(db, query, page, limit)

    return ArticleListResponse(
        items=items,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.get("/slug/{slug}", response_model=PublicArticleResponse)
async def read_article(
    slug: str,
    caller: OptionalCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Read an article by slug, applying the paywall.

    Unpublished articles are only visible to admins and their author.  A
    reader below the required tier gets the article without its body and a
    ``paywall`` hint (sign in / upgrade).
    """
    result = await db.execute(select(Article).where(Article.slug == slug))
    article = result.scalar_one_or_none()
    if not article:
        raise NotFoundError("Article not found")

    if not article.is_published:
        if caller is None or not (caller.is_admin or caller.owns(article.author_id)):
            raise NotFoundError("Article not found")

    decision = check_read_access(caller, article.access_tier, article.author_id)
    response = PublicArticleResponse(
        id=article.id,
        title=article.title,
        slug=article.slug,
        author_name=article.author_name,
        author_id=article.author_id,
        category=article.category,
        tags=article.tags or [],
        access_tier=article.access_tier,
        excerpt=article.excerpt,
        featured_image_url=article.featured_image_url,
        published_at=article.published_at,
    )
    if decision.allowed:
        response.content_blocks = article.content_blocks or []
    else:
        response.locked = True
        response.paywall = decision.paywall
    return response


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    caller: Caller = AuthorCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Get a specific article by ID for editing.
    """
    article = await _get_article_or_404(db, article_id)
    require_owner_or_admin(caller, article.author_id)
    return article


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    request: ArticleUpdateRequest,
    caller: Caller = AuthorCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Update an article.

    Authors may edit their own unpublished articles; admins may edit any
    article and reassign its owner.
    """
    article = await _get_article_or_404(db, article_id)
    require_owner_or_admin(caller, article.author_id)

    if not caller.is_admin and article.is_published:
        raise ForbiddenError("Published articles cannot be edited")

    update_data = request.model_dump(exclude_unset=True)

    if "author_id" in update_data:
        new_owner = update_data.pop("author_id")
        if caller.is_admin and new_owner and new_owner != article.author_id:
            if await get_profile(db, new_owner) is None:
                raise NotFoundError("User not found")
            article.author_id = new_owner

    if "status" in update_data:
        new_status = resolve_status(update_data.pop("status"), caller)
        article.status = new_status.value
        article.published_at = stamp_published_at(article.published_at, new_status)

    # Retitling keeps the existing URL; the slug only changes when sent
    if "slug" in update_data:
        slug = _clean_slug(update_data.pop("slug"), update_data.get("title") or article.title)
        if slug != article.slug:
            await _ensure_slug_available(db, slug, exclude_id=article.id)
            article.slug = slug

    if "access_tier" in update_data:
        tier = update_data.pop("access_tier")
        if tier is not None:
            article.access_tier = tier.value

    if "issue_id" in update_data:
        await _ensure_issue_exists(db, update_data["issue_id"])

    for field, value in update_data.items():
        if field in ("title", "tags", "content_blocks") and value is None:
            continue
        setattr(article, field, value)

    await _commit_article(db, article)
    logger.info("Article %s updated by %s", article.id, caller.user_id)
    return article


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: str,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an article. Admin only.
    """
    article = await _get_article_or_404(db, article_id)
    await db.delete(article)
    await db.commit()
    logger.info("Article %s deleted by admin %s", article_id, caller.user_id)
