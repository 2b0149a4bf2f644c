"""
Issue and issue-import API schemas.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .content import _normalize_tags


class IssueFindOrCreateRequest(BaseModel):
    """Issue metadata; ``slug`` identifies the issue."""

    title: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=255)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=2999)
    volume: Optional[int] = None
    number: Optional[int] = None


class IssueFindOrCreateResponse(BaseModel):
    id: str
    created: bool


class BatchArticle(BaseModel):
    """One structured article row from an issue import."""

    title: str = Field(..., min_length=1, max_length=500)
    slug: Optional[str] = Field(None, max_length=500)
    author_name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=255)
    tags: list[str] = Field(default_factory=list)
    level: Optional[str] = Field(None, max_length=50)
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = None
    source_page: Optional[int] = None
    excerpt: Optional[str] = None
    content_blocks: list[Any] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)


class BatchImportRequest(BaseModel):
    issue_id: Optional[str] = Field(None, validation_alias=AliasChoices("issue_id", "issueId"))
    articles: list[BatchArticle] = Field(default_factory=list)


class ImportedArticle(BaseModel):
    id: str
    title: str

    model_config = ConfigDict(from_attributes=True)


class BatchImportResponse(BaseModel):
    created: int
    articles: list[ImportedArticle]


class DraftArticleResponse(BaseModel):
    """Imported draft awaiting review."""

    id: str
    title: str
    slug: str
    author_name: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    excerpt: Optional[str] = None
    content_blocks: list[Any] = Field(default_factory=list)
    source_page: Optional[int] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class DraftListResponse(BaseModel):
    articles: list[DraftArticleResponse]


class IssueResponse(BaseModel):
    id: str
    title: str
    slug: str
    month: int
    year: int
    volume: Optional[int] = None
    number: Optional[int] = None
    published_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class IssueArticleResponse(BaseModel):
    """Table-of-contents entry; the body is read through the paywalled slug route."""

    id: str
    title: str
    slug: str
    author_name: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    access_tier: str
    level: Optional[str] = None
    source_page: Optional[int] = None
    excerpt: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class IssueDetailResponse(IssueResponse):
    articles: list[IssueArticleResponse] = Field(default_factory=list)
