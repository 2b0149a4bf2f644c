"""
Profile resolution: identity id -> persisted role flags and tier.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.identity import ClerkAdapter, IdentityProviderError
from core.domain import Tier
from core.errors import UnauthenticatedError
from infrastructure.database.models import UserProfile
from services.idempotent import create_or_fetch

logger = logging.getLogger(__name__)


async def get_profile(db: AsyncSession, user_id: str) -> Optional[UserProfile]:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_profile(
    db: AsyncSession,
    user_id: Optional[str],
    provider: Optional[ClerkAdapter] = None,
) -> UserProfile:
    """
    Return the profile for ``user_id``, creating a free, flagless one if needed.

    New profiles are seeded with name and email from the identity provider
    when it is configured and reachable; a provider failure never prevents
    creation.

    Args:
        db: Database session
        user_id: Identity provider user id
        provider: Identity provider client used to seed new profiles

    Returns:
        The persisted UserProfile

    Raises:
        UnauthenticatedError: If no identity was supplied
    """
    if not user_id:
        raise UnauthenticatedError()

    profile = await get_profile(db, user_id)
    if profile is not None:
        return profile

    profile = UserProfile(
        user_id=user_id,
        tier=Tier.FREE.value,
        is_admin=False,
        is_author=False,
        is_contributor=False,
        is_legacy=False,
    )

    if provider is not None and provider.is_configured:
        try:
            identity = await provider.get_user(user_id)
        except IdentityProviderError as e:
            logger.warning("Could not seed profile %s from identity provider: %s", user_id, e)
        else:
            profile.first_name = identity.first_name
            profile.last_name = identity.last_name
            profile.display_name = identity.full_name
            profile.email = identity.primary_email

    profile, created = await create_or_fetch(
        db, profile, select(UserProfile).where(UserProfile.user_id == user_id)
    )
    if created:
        logger.info("Created profile for %s", user_id)
    return profile
