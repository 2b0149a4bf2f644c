"""
Admin API schemas for user management.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.domain import Tier

# ============================================================================
# User Management
# ============================================================================


class AdminUserResponse(BaseModel):
    """Profile row enriched with identity-provider data."""

    user_id: str
    name: str = Field(..., description="Display name, or a placeholder")
    email: str = Field(..., description="Email, or a placeholder")
    image_url: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    tier: str
    is_admin: bool
    is_author: bool
    is_contributor: bool
    is_legacy: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminUserListResponse(BaseModel):
    """Paginated user list."""

    users: list[AdminUserResponse]
    total: int
    page: int
    limit: int
    pages: int


class AdminUserDetailResponse(AdminUserResponse):
    """Single user with profile text and authored article count."""

    bio: Optional[str] = None
    photo_url: Optional[str] = None
    article_count: int = 0


class AdminUserCreateRequest(BaseModel):
    """Manually provision a profile with no identity-provider account."""

    email: str = Field(..., max_length=255)
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    tier: Optional[str] = Field(None, description="Invalid values fall back to free")


class AdminProfileUpdateRequest(BaseModel):
    """Sparse admin edit of a profile. Only fields present are applied."""

    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    display_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    tier: Optional[Tier] = None
    is_admin: Optional[bool] = None
    is_author: Optional[bool] = None
    is_contributor: Optional[bool] = None
    is_legacy: Optional[bool] = None


class TierUpdateRequest(BaseModel):
    tier: Optional[str] = None


class TempPasswordResponse(BaseModel):
    """Temporary password to hand to the user out of band."""

    temp_password: str


class MergeUsersRequest(BaseModel):
    legacy_user_id: str
    target_user_id: str


class MergeUsersResponse(BaseModel):
    merged: int = Field(..., description="Articles reassigned to the target user")
    legacy_name: Optional[str] = None
    target_name: Optional[str] = None
