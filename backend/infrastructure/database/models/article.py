"""
Article database model.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, JSON, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.domain.access import Tier
from core.domain.articles import ArticleStatus

from .base import Base, TimestampMixin


class Article(Base, TimestampMixin):
    """Magazine article.

    ``category`` is a soft reference to ``categories.name`` and ``tags`` is a
    list of tag names; neither is enforced by a foreign key.
    """

    __tablename__ = "articles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    author_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    author_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        ForeignKey("user_profiles.user_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    access_tier: Mapped[str] = mapped_column(
        String(20),
        default=Tier.FREE.value,
        nullable=False,
    )
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ArticleStatus.DRAFT.value,
        nullable=False,
    )

    content_blocks: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    """
    Opaque rich-text document produced by the editor, stored as-is:
    [{"type": "paragraph", ...}, {"type": "image", ...}, ...]
    """

    featured_image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Print provenance for articles imported from an issue
    issue_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("issues.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    month: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)
    year: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    source_page: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "access_tier IN ('free', 'paid', 'premium')", name="ck_articles_access_tier"
        ),
        CheckConstraint(
            "status IN ('draft', 'submitted', 'published')", name="ck_articles_status"
        ),
        Index("ix_articles_status", "status"),
        Index("ix_articles_published_at", "published_at"),
        Index("ix_articles_category", "category"),
        Index("ix_articles_year_month", "year", "month"),
    )

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, slug={self.slug}, status={self.status})>"

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED.value
