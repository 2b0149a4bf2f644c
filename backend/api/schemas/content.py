"""
Article API schemas.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.domain import PaywallVariant, Tier


# ============================================================================
# Requests
# ============================================================================


def _normalize_tags(tags: list[str]) -> list[str]:
    """Lower-case, trim and de-duplicate tag names, keeping their order."""
    seen: list[str] = []
    for tag in tags:
        name = tag.strip().lower()
        if name and name not in seen:
            seen.append(name)
    return seen


class ArticleCreateRequest(BaseModel):
    """Schema for creating an article."""

    title: str = Field(..., min_length=1, max_length=500)
    slug: Optional[str] = Field(None, max_length=500)
    author_name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=255)
    tags: list[str] = Field(default_factory=list)
    access_tier: Tier = Tier.FREE
    excerpt: Optional[str] = None
    status: Optional[str] = Field(None, description="draft, submitted (or review), published")
    content_blocks: list[Any] = Field(default_factory=list)
    featured_image_url: Optional[str] = Field(None, max_length=1000)
    issue_id: Optional[str] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = None
    level: Optional[str] = Field(None, max_length=50)
    source_page: Optional[int] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)


class ArticleUpdateRequest(BaseModel):
    """Schema for updating an article. Only fields present are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = Field(None, max_length=500)
    author_name: Optional[str] = Field(None, max_length=255)
    author_id: Optional[str] = Field(None, description="Admin only: reassign ownership")
    category: Optional[str] = Field(None, max_length=255)
    tags: Optional[list[str]] = None
    access_tier: Optional[Tier] = None
    excerpt: Optional[str] = None
    status: Optional[str] = None
    content_blocks: Optional[list[Any]] = None
    featured_image_url: Optional[str] = Field(None, max_length=1000)
    issue_id: Optional[str] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = None
    level: Optional[str] = Field(None, max_length=50)
    source_page: Optional[int] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        return _normalize_tags(v)


# ============================================================================
# Responses
# ============================================================================


class ArticleCreatedResponse(BaseModel):
    """Returned after creating an article."""

    id: str
    slug: str
    status: str
    published_at: Optional[datetime] = None


class ArticleResponse(BaseModel):
    """Full article for editors."""

    id: str
    title: str
    slug: str
    author_name: Optional[str] = None
    author_id: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    access_tier: str
    excerpt: Optional[str] = None
    status: str
    content_blocks: list[Any] = Field(default_factory=list)
    featured_image_url: Optional[str] = None
    published_at: Optional[datetime] = None
    issue_id: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    level: Optional[str] = None
    source_page: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ArticleListItemResponse(BaseModel):
    """Article row in editor listings (no content body)."""

    id: str
    title: str
    slug: str
    author_name: Optional[str] = None
    author_id: Optional[str] = None
    category: Optional[str] = None
    access_tier: str
    status: str
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ArticleListResponse(BaseModel):
    """Paginated article list."""

    items: list[ArticleListItemResponse]
    total: int
    page: int
    limit: int
    pages: int


class PublicArticleResponse(BaseModel):
    """Article as served to readers.

    When ``locked`` is true the body is withheld and ``paywall`` says what
    the reader needs to do to see it.
    """

    id: str
    title: str
    slug: str
    author_name: Optional[str] = None
    author_id: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    access_tier: str
    excerpt: Optional[str] = None
    featured_image_url: Optional[str] = None
    published_at: Optional[datetime] = None
    content_blocks: Optional[list[Any]] = None
    locked: bool = False
    paywall: Optional[PaywallVariant] = None
