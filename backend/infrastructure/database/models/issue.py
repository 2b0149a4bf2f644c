"""
Magazine issue database model.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


def issue_slug(year: int, month: int) -> str:
    """Conventional slug of the issue for a month, e.g. ``2024-03``."""
    return f"{year}-{month:02d}"


def issue_date(year: int, month: int) -> datetime:
    """First day of the issue month, UTC."""
    return datetime(year, month, 1, tzinfo=timezone.utc)


class Issue(Base):
    """A printed monthly issue; articles point at it through ``issue_id``."""

    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    month: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    year: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    volume: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_issues_month"),
    )

    def __repr__(self) -> str:
        return f"<Issue(id={self.id}, slug={self.slug})>"
