"""
FAQ API routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AdminCaller, OptionalCaller
from api.schemas.faq import FaqCreateRequest, FaqResponse, FaqUpdateRequest
from core.domain import require_admin
from core.errors import ValidationFailedError
from infrastructure.database.connection import get_db
from infrastructure.database.models import Faq

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/faqs", tags=["faqs"])


async def _get_faq_or_404(db: AsyncSession, faq_id: str) -> Faq:
    result = await db.execute(select(Faq).where(Faq.id == faq_id))
    faq = result.scalar_one_or_none()
    if not faq:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="FAQ not found",
        )
    return faq


@router.get("", response_model=list[FaqResponse])
async def list_faqs(
    caller: OptionalCaller,
    include_unpublished: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """
    List FAQs in display order. Public.

    Admins may pass ``include_unpublished=true`` to see hidden entries.
    """
    query = select(Faq).order_by(Faq.sort_order.asc(), Faq.created_at.asc())
    if include_unpublished:
        require_admin(caller)
    else:
        query = query.where(Faq.is_published.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=FaqResponse, status_code=status.HTTP_201_CREATED)
async def create_faq(
    request: FaqCreateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an FAQ entry. Admin only.
    """
    question, answer = request.question.strip(), request.answer.strip()
    if not question or not answer:
        raise ValidationFailedError("Question and answer are required")

    faq = Faq(
        question=question,
        answer=answer,
        sort_order=request.sort_order,
        is_published=request.is_published,
    )
    db.add(faq)
    await db.commit()
    await db.refresh(faq)
    logger.info("FAQ %s created by %s", faq.id, caller.user_id)
    return faq


@router.put("/{faq_id}", response_model=FaqResponse)
async def update_faq(
    faq_id: str,
    request: FaqUpdateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Update an FAQ entry. Only fields present are applied. Admin only.
    """
    faq = await _get_faq_or_404(db, faq_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValidationFailedError(f"{field.capitalize()} cannot be empty")
        setattr(faq, field, value)

    await db.commit()
    await db.refresh(faq)
    return faq


@router.delete("/{faq_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_faq(
    faq_id: str,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an FAQ entry. Admin only.
    """
    faq = await _get_faq_or_404(db, faq_id)
    await db.delete(faq)
    await db.commit()
    logger.info("FAQ %s deleted by %s", faq_id, caller.user_id)
