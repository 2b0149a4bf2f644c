"""
Profile API routes: self-service profile, login history, avatar and
admin-triggered password resets.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.email.resend_adapter import ResendEmailService, get_email_service
from adapters.identity import ClerkAdapter, IdentityProviderError, IdentityUserNotFoundError, get_identity_provider
from adapters.storage import ALLOWED_AVATAR_TYPES, StorageAdapter, StorageError, avatar_key, get_avatar_storage
from api.dependencies import AdminCaller, CurrentCaller, get_current_profile
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.profile import (
    AvatarUploadResponse,
    LoginHistoryItem,
    PasswordResetTriggerRequest,
    PasswordResetTriggerResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from core.domain import require_owner_or_admin
from core.errors import ForbiddenError, NotFoundError, UpstreamError, ValidationFailedError
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import LoginHistory, UserProfile
from services.profiles import get_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])

VALID_SKILL_LEVELS = ("beginner", "intermediate", "advanced", "expert", "world_class")
LOGIN_HISTORY_LIMIT = 50

CurrentProfile = Annotated[UserProfile, Depends(get_current_profile)]


@router.get("", response_model=ProfileResponse)
async def get_my_profile(profile: CurrentProfile):
    """
    Return the caller's profile, creating it on first visit.
    """
    return profile


@router.put("", response_model=ProfileResponse)
async def update_profile(
    update_data: ProfileUpdateRequest,
    profile: CurrentProfile,
    db: AsyncSession = Depends(get_db),
):
    """
    Update profile fields present in the body.

    ``display_name`` and ``target_user_id`` are admin-only.  Empty strings
    clear a field.
    """
    changes = update_data.model_dump(exclude_unset=True)
    target_user_id = changes.pop("target_user_id", None)

    skill_level = changes.get("skill_level")
    if skill_level and skill_level not in VALID_SKILL_LEVELS:
        raise ValidationFailedError(
            f"Invalid skill_level. Must be one of: {', '.join(VALID_SKILL_LEVELS)}"
        )

    if "display_name" in changes and not profile.is_admin:
        raise ForbiddenError("Only admins can update display_name")

    target = profile
    if target_user_id and target_user_id != profile.user_id:
        if not profile.is_admin:
            raise ForbiddenError("Only admins can update other users")
        target = await get_profile(db, target_user_id)
        if target is None:
            raise NotFoundError("User not found")

    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(target, field, value)

    await db.commit()
    await db.refresh(target)
    return target


@router.get("/login-history", response_model=List[LoginHistoryItem])
async def get_login_history(
    caller: CurrentCaller,
    user_id: Optional[str] = Query(None, description="Admins may view another user"),
    db: AsyncSession = Depends(get_db),
):
    """
    Return recent sign-ins, newest first.
    """
    target_id = user_id or caller.user_id
    require_owner_or_admin(caller, target_id, "Only admins can view other users' login history")

    result = await db.execute(
        select(LoginHistory)
        .where(LoginHistory.user_id == target_id)
        .order_by(LoginHistory.logged_in_at.desc())
        .limit(LOGIN_HISTORY_LIMIT)
    )
    return result.scalars().all()


@router.post("/reset-password", response_model=PasswordResetTriggerResponse)
@limiter.limit(get_rate_limit("password_reset"))
async def trigger_password_reset(
    request: Request,
    reset_data: PasswordResetTriggerRequest,
    caller: AdminCaller,
    provider: ClerkAdapter = Depends(get_identity_provider),
    email_service: ResendEmailService = Depends(get_email_service),
):
    """
    Start a password reset for a user on the identity provider's sign-in page.

    The user is emailed a notice pointing at the sign-in page.  Delivery is
    best-effort and never confirmed.
    """
    target_id = (reset_data.user_id or "").strip()
    if not target_id:
        raise ValidationFailedError("user_id is required")

    try:
        identity = await provider.get_user(target_id)
    except IdentityUserNotFoundError:
        raise NotFoundError("User not found")
    except IdentityProviderError as e:
        raise UpstreamError(str(e) or "Failed to reset password")

    if not identity.primary_email:
        raise ValidationFailedError("User has no email address")

    email_sent = await email_service.send_password_reset_notice(
        identity.primary_email, identity.full_name
    )
    logger.info(
        "Admin %s triggered password reset for %s (notice sent: %s)",
        caller.user_id, target_id, email_sent,
    )
    return PasswordResetTriggerResponse(
        success=True,
        message=(
            f"Password reset initiated for {identity.primary_email}. "
            "The user can reset their password through the sign-in page."
        ),
        email=identity.primary_email,
        email_sent=email_sent,
    )


@router.post("/avatar", response_model=AvatarUploadResponse)
@limiter.limit(get_rate_limit("avatar_upload"))
async def upload_avatar(
    request: Request,
    profile: CurrentProfile,
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_avatar_storage),
):
    """
    Upload a profile photo (JPG, PNG or WebP, at most 2 MB).

    The object is stored under the caller's id, replacing any previous
    avatar, and ``photo_url`` is updated to the new URL.
    """
    if file is None or not file.filename:
        raise ValidationFailedError("No file provided")

    if file.content_type not in ALLOWED_AVATAR_TYPES:
        raise ValidationFailedError("Invalid file type. Allowed: JPG, PNG, WebP")

    # Read one byte past the cap so oversize uploads are caught without buffering them whole
    data = await file.read(settings.avatar_max_bytes + 1)
    if len(data) > settings.avatar_max_bytes:
        raise ValidationFailedError("File too large. Maximum size is 2 MB")

    try:
        url = await storage.save_avatar(data, avatar_key(profile.user_id, file.content_type), file.content_type)
    except StorageError as e:
        logger.error("Avatar upload failed for %s: %s", profile.user_id, e)
        raise UpstreamError("Failed to store avatar")

    profile.photo_url = url
    await db.commit()

    logger.info("Avatar updated for %s", profile.user_id)
    return AvatarUploadResponse(url=url)
