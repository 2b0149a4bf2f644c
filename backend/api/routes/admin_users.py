"""
Admin user management API routes.
"""

import logging
from math import ceil
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.identity import ClerkAdapter, IdentityProviderError, get_identity_provider
from api.dependencies import AdminCaller
from api.schemas.admin import (
    AdminProfileUpdateRequest,
    AdminUserCreateRequest,
    AdminUserDetailResponse,
    AdminUserListResponse,
    AdminUserResponse,
    MergeUsersRequest,
    MergeUsersResponse,
    TempPasswordResponse,
    TierUpdateRequest,
)
from api.utils import escape_like, paginate
from core.domain import Tier, guard_self_demotion
from core.errors import ValidationFailedError
from core.security import generate_temp_password
from infrastructure.database.connection import get_db
from infrastructure.database.models import Article, UserProfile
from services.user_directory import DirectoryEntry, build_entry, enrich_profiles, lookup_identities

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])

MANUAL_ID_PREFIX = "manual_"


# ============================================================================
# Helper Functions
# ============================================================================


def build_user_response(entry: DirectoryEntry) -> AdminUserResponse:
    """Build list item response from an enriched profile."""
    profile = entry.profile
    return AdminUserResponse(
        user_id=profile.user_id,
        name=entry.name,
        email=entry.email,
        image_url=entry.image_url,
        first_name=profile.first_name,
        last_name=profile.last_name,
        display_name=profile.display_name,
        tier=profile.tier,
        is_admin=profile.is_admin,
        is_author=profile.is_author,
        is_contributor=profile.is_contributor,
        is_legacy=profile.is_legacy,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


async def _get_profile_or_404(
    db: AsyncSession, user_id: str, detail: str = "User not found"
) -> UserProfile:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )
    return profile


async def _detail_response(
    db: AsyncSession, provider: ClerkAdapter, profile: UserProfile
) -> AdminUserDetailResponse:
    identities = await lookup_identities(provider, [profile.user_id])
    entry = build_entry(profile, identities.get(profile.user_id))
    count_result = await db.execute(
        select(func.count()).where(Article.author_id == profile.user_id)
    )
    base = build_user_response(entry)
    return AdminUserDetailResponse(
        **base.model_dump(),
        bio=profile.bio,
        photo_url=profile.photo_url,
        article_count=count_result.scalar() or 0,
    )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


# ============================================================================
# User Management Endpoints
# ============================================================================


@router.get("", response_model=AdminUserListResponse)
async def list_users(
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
    provider: ClerkAdapter = Depends(get_identity_provider),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=255),
) -> AdminUserListResponse:
    """
    List profiles newest first, annotated with name, email and avatar.

    Identity-provider failures degrade to stored names/emails or a
    placeholder; the listing itself never fails because of them.
    """
    query = select(UserProfile)
    if search and search.strip():
        pattern = f"%{escape_like(search.strip())}%"
        query = query.where(
            or_(
                UserProfile.email.ilike(pattern, escape="\\"),
                UserProfile.first_name.ilike(pattern, escape="\\"),
                UserProfile.last_name.ilike(pattern, escape="\\"),
                UserProfile.display_name.ilike(pattern, escape="\\"),
            )
        )
    query = query.order_by(UserProfile.created_at.desc(), UserProfile.user_id.asc())

    profiles, total = await paginate(db, query, page, limit)
    entries = await enrich_profiles(provider, profiles)

    return AdminUserListResponse(
        users=[build_user_response(entry) for entry in entries],
        total=total,
        page=page,
        limit=limit,
        pages=ceil(total / limit) if total > 0 else 0,
    )


@router.post("", response_model=AdminUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: AdminUserCreateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
) -> AdminUserResponse:
    """
    Provision a profile for someone without an identity-provider account.

    The profile gets a ``manual_`` id; an unrecognised tier falls back to free.
    """
    email = _clean(request.email)
    if not email:
        raise ValidationFailedError("Email is required")

    profile = UserProfile(
        user_id=f"{MANUAL_ID_PREFIX}{uuid4()}",
        first_name=_clean(request.first_name),
        last_name=_clean(request.last_name),
        email=email,
        tier=Tier.normalize(request.tier).value,
        is_admin=False,
        is_author=False,
        is_contributor=False,
        is_legacy=False,
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)

    logger.info("Admin %s provisioned manual profile %s", caller.user_id, profile.user_id)
    return build_user_response(build_entry(profile, None))


@router.post("/merge", response_model=MergeUsersResponse)
async def merge_users(
    request: MergeUsersRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
) -> MergeUsersResponse:
    """
    Reassign a legacy author's articles to a live user.

    The legacy profile itself is kept.
    """
    legacy_id, target_id = request.legacy_user_id.strip(), request.target_user_id.strip()
    if not legacy_id or not target_id:
        raise ValidationFailedError("Both legacy_user_id and target_user_id are required")
    if legacy_id == target_id:
        raise ValidationFailedError("Cannot merge a user into themselves")

    legacy = await _get_profile_or_404(db, legacy_id, "Legacy user not found")
    if not legacy.is_legacy:
        raise ValidationFailedError("Source user is not a legacy profile")
    target = await _get_profile_or_404(db, target_id, "Target user not found")

    legacy_name, target_name = legacy.full_name, target.full_name

    result = await db.execute(
        update(Article)
        .where(Article.author_id == legacy_id)
        .values(author_id=target_id)
    )
    merged = result.rowcount or 0
    await db.commit()

    logger.info(
        "Admin %s merged %d articles from legacy %s into %s",
        caller.user_id, merged, legacy_id, target_id,
    )
    return MergeUsersResponse(merged=merged, legacy_name=legacy_name, target_name=target_name)


@router.get("/{user_id}", response_model=AdminUserDetailResponse)
async def get_user_detail(
    user_id: str,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
    provider: ClerkAdapter = Depends(get_identity_provider),
) -> AdminUserDetailResponse:
    """
    Get a single profile with its authored article count.
    """
    profile = await _get_profile_or_404(db, user_id)
    return await _detail_response(db, provider, profile)


@router.patch("/{user_id}/profile", response_model=AdminUserDetailResponse)
async def update_user_profile(
    user_id: str,
    request: AdminProfileUpdateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
    provider: ClerkAdapter = Depends(get_identity_provider),
) -> AdminUserDetailResponse:
    """
    Apply the fields present in the body to a profile.

    An admin cannot clear their own admin flag.
    """
    update_data = request.model_dump(exclude_unset=True)
    guard_self_demotion(caller, user_id, update_data.get("is_admin"))

    profile = await _get_profile_or_404(db, user_id)

    for field, value in update_data.items():
        if field == "tier":
            if value is not None:
                profile.tier = Tier(value).value
        elif field.startswith("is_"):
            if value is not None:
                setattr(profile, field, value)
        else:
            setattr(profile, field, _clean(value))

    await db.commit()
    await db.refresh(profile)

    logger.info("Admin %s updated profile %s: %s", caller.user_id, user_id, sorted(update_data))
    return await _detail_response(db, provider, profile)


@router.patch("/{user_id}/tier", response_model=AdminUserResponse)
async def update_user_tier(
    user_id: str,
    request: TierUpdateRequest,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
) -> AdminUserResponse:
    """
    Set a user's subscription tier.
    """
    try:
        tier = Tier((request.tier or "").strip().lower())
    except ValueError:
        raise ValidationFailedError("Invalid tier. Must be one of: free, paid, premium")

    profile = await _get_profile_or_404(db, user_id)
    profile.tier = tier.value
    await db.commit()
    await db.refresh(profile)

    logger.info("Admin %s set tier of %s to %s", caller.user_id, user_id, tier.value)
    return build_user_response(build_entry(profile, None))


@router.patch("/{user_id}/reset-password", response_model=TempPasswordResponse)
async def reset_user_password(
    user_id: str,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
    provider: ClerkAdapter = Depends(get_identity_provider),
) -> TempPasswordResponse:
    """
    Replace a user's password with a generated temporary one.

    The password is returned to the admin to pass on out of band.  A
    rejection by the identity provider is reported as 422 with its message.
    """
    await _get_profile_or_404(db, user_id)

    temp_password = generate_temp_password()
    try:
        await provider.set_password(user_id, temp_password)
    except IdentityProviderError as e:
        logger.warning("Identity provider rejected password reset for %s: %s", user_id, e)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e) or "Failed to reset password",
        )

    logger.info("Admin %s reset the password of %s", caller.user_id, user_id)
    return TempPasswordResponse(temp_password=temp_password)
