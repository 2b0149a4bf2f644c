"""
Category API routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AdminCaller
from api.schemas.taxonomy import CategoryCreateRequest, CategoryResponse, CategoryUpdateRequest
from core.domain import slugify
from core.errors import ConflictError, ValidationFailedError
from infrastructure.database.connection import get_db
from infrastructure.database.models import Article, Category
from services.taxonomy import count_articles_in_category, plural, rename_category_in_articles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])

NAME_CONFLICT = "A category with that name already exists"


def _category_response(category: Category, article_count: int = 0) -> CategoryResponse:
    response = CategoryResponse.model_validate(category)
    response.article_count = article_count
    return response


async def _get_category_or_404(db: AsyncSession, category_id: str) -> Category:
    result = await db.execute(select(Category).where(Category.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
    return category


async def _commit_category(db: AsyncSession, category: Category) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(NAME_CONFLICT)
    await db.refresh(category)


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """
    List all categories in display order with their article counts. Public.
    """
    query = (
        select(Category, func.count(Article.id))
        .outerjoin(Article, Article.category == Category.name)
        .group_by(Category.id)
        .order_by(Category.sort_order.asc(), Category.name.asc())
    )
    result = await db.execute(query)
    return [_category_response(category, count) for category, count in result.all()]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a category. Admin only.

    Names are unique (exact, case-sensitive match).
    """
    name = request.name.strip()
    if not name:
        raise ValidationFailedError("Name is required")

    existing = await db.execute(select(Category.id).where(Category.name == name))
    if existing.first():
        raise ConflictError(NAME_CONFLICT)

    category = Category(
        name=name,
        slug=slugify(name),
        description=(request.description or "").strip() or None,
        color=(request.color or "").strip() or None,
        sort_order=request.sort_order,
    )
    db.add(category)
    await _commit_category(db, category)

    logger.info("Category %r created by %s", name, caller.user_id)
    return _category_response(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Update a category. Admin only.

    Renaming also re-files the articles that referenced the old name.
    """
    category = await _get_category_or_404(db, category_id)
    update_data = request.model_dump(exclude_unset=True)

    if "name" in update_data:
        name = (update_data.pop("name") or "").strip()
        if not name:
            raise ValidationFailedError("Name is required")
        if name != category.name:
            clash = await db.execute(
                select(Category.id).where(Category.name == name, Category.id != category.id)
            )
            if clash.first():
                raise ConflictError(NAME_CONFLICT)
            moved = await rename_category_in_articles(db, category.name, name)
            if moved:
                logger.info("Re-filed %s from %r to %r", plural(moved, "article"), category.name, name)
            category.name = name
            category.slug = slugify(name)

    for field in ("description", "color"):
        if field in update_data:
            setattr(category, field, (update_data[field] or "").strip() or None)
    if update_data.get("sort_order") is not None:
        category.sort_order = update_data["sort_order"]

    await _commit_category(db, category)
    count = await count_articles_in_category(db, category.name)
    return _category_response(category, count)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a category. Admin only.

    Refused with 409 while any article is filed under it.
    """
    category = await _get_category_or_404(db, category_id)
    name = category.name

    count = await count_articles_in_category(db, name)
    if count > 0:
        verb = "uses" if count == 1 else "use"
        raise ConflictError(
            f"Cannot delete: {plural(count, 'article')} {verb} this category. Reassign them first."
        )

    await db.delete(category)
    await db.commit()
    logger.info("Category %r deleted by %s", name, caller.user_id)
