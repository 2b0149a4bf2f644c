"""
Profile, login history and subscription schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileResponse(BaseModel):
    """A user's persisted profile."""

    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    skill_level: Optional[str] = None
    location: Optional[str] = None
    tier: str
    is_admin: bool
    is_author: bool
    is_contributor: bool
    is_legacy: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Self-service profile edit. Only fields present are applied.

    ``display_name`` and ``target_user_id`` are honoured for admins only.
    """

    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=5000)
    skill_level: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    display_name: Optional[str] = Field(None, max_length=255)
    target_user_id: Optional[str] = None


class LoginHistoryItem(BaseModel):
    id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    logged_in_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AvatarUploadResponse(BaseModel):
    url: str


class PasswordResetTriggerRequest(BaseModel):
    user_id: Optional[str] = None


class PasswordResetTriggerResponse(BaseModel):
    """Outcome of a best-effort reset.

    ``email_sent`` only reflects that the notice was handed to the mail
    provider, not that it was delivered.
    """

    success: bool
    message: str
    email: str
    email_sent: bool
    delivery_guaranteed: bool = False


class SubscriptionStatusResponse(BaseModel):
    """The caller's tier and role flags."""

    tier: str
    is_admin: bool
    is_author: bool = Field(..., description="True for authors and admins")
    is_contributor: bool


class LoginRecordedResponse(BaseModel):
    success: bool = True
