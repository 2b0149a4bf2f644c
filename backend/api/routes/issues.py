"""
Issue API routes: the public archive of printed issues.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.issue import IssueDetailResponse, IssueResponse
from core.domain import ArticleStatus
from core.errors import NotFoundError
from infrastructure.database.connection import get_db
from infrastructure.database.models import Article, Issue

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("", response_model=list[IssueResponse])
async def list_issues(db: AsyncSession = Depends(get_db)):
    """All issues, newest first."""
    result = await db.execute(
        select(Issue).order_by(Issue.year.desc(), Issue.month.desc(), Issue.slug.asc())
    )
    return result.scalars().all()


@router.get("/{slug}", response_model=IssueDetailResponse)
async def get_issue(slug: str, db: AsyncSession = Depends(get_db)):
    """
    An issue and its table of contents.

    Only published articles are listed, in page order. Bodies are not
    included, so the listing is not gated by tier.
    """
    issue = (await db.execute(select(Issue).where(Issue.slug == slug))).scalar_one_or_none()
    if issue is None:
        raise NotFoundError("Issue not found")

    result = await db.execute(
        select(Article)
        .where(Article.issue_id == issue.id, Article.status == ArticleStatus.PUBLISHED.value)
        .order_by(Article.source_page.is_(None), Article.source_page.asc(), Article.title.asc())
    )
    return IssueDetailResponse(
        **IssueResponse.model_validate(issue).model_dump(),
        articles=result.scalars().all(),
    )
