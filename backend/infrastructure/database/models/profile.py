"""
User profile database model.
"""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.domain.access import Tier

from .base import Base, TimestampMixin


class UserProfile(Base, TimestampMixin):
    """Role flags and subscription tier for an identity-provider user.

    Rows are keyed by the identity provider's opaque user id and are created
    lazily the first time that identity is seen.  Profiles are never
    hard-deleted.
    """

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    skill_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    tier: Mapped[str] = mapped_column(
        String(20),
        default=Tier.FREE.value,
        nullable=False,
    )

    # Capabilities
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_author: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_contributor: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_legacy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        CheckConstraint("tier IN ('free', 'paid', 'premium')", name="ck_user_profiles_tier"),
        Index("ix_user_profiles_created_at", "created_at"),
        Index("ix_user_profiles_tier", "tier"),
    )

    def __repr__(self) -> str:
        return f"<UserProfile(user_id={self.user_id}, tier={self.tier}, admin={self.is_admin})>"

    @property
    def tier_value(self) -> Tier:
        return Tier.normalize(self.tier)

    @property
    def full_name(self) -> Optional[str]:
        """First and last name joined, or the display name when both are blank."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.display_name or None
