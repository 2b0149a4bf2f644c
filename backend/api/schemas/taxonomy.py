"""
Category and tag API schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreateRequest(BaseModel):
    """Schema for creating a category."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=32)
    sort_order: int = 0


class CategoryUpdateRequest(BaseModel):
    """Schema for updating a category. Only fields present are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=32)
    sort_order: Optional[int] = None


class CategoryResponse(BaseModel):
    """Category with the number of articles filed under it."""

    id: str
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    sort_order: int
    created_at: datetime
    article_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class TagCreateRequest(BaseModel):
    """Schema for creating a tag."""

    name: Optional[str] = Field(None, max_length=255)


class TagUpdateRequest(BaseModel):
    """Schema for renaming a tag."""

    name: str = Field(..., max_length=255)


class TagMergeRequest(BaseModel):
    """Merge the path tag into ``target_id``."""

    target_id: str


class TagResponse(BaseModel):
    """Tag response."""

    id: str
    name: str
    slug: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagMergeResponse(BaseModel):
    """Result of merging two tags."""

    target: TagResponse
    merged_count: int = Field(..., description="Articles whose tag list changed")
