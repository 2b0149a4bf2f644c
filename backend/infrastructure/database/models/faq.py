"""
FAQ entry database model.
"""

from uuid import uuid4

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Faq(Base, TimestampMixin):
    """Admin-managed question/answer pair shown on the public FAQ page."""

    __tablename__ = "faqs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_faqs_published_order", "is_published", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"<Faq(id={self.id}, sort_order={self.sort_order})>"
