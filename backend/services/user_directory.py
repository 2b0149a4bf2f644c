"""
Admin user directory: profiles joined with identity-provider records.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from adapters.identity import ClerkAdapter, IdentityProviderError, IdentityUser
from infrastructure.config.settings import settings
from infrastructure.database.models import UserProfile

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"


@dataclass
class DirectoryEntry:
    """A profile annotated with best-effort display data."""

    profile: UserProfile
    name: str
    email: str
    image_url: Optional[str] = None


def _chunks(items: Sequence[str], size: int) -> List[Sequence[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


async def lookup_identities(
    provider: ClerkAdapter,
    user_ids: Sequence[str],
    batch_size: Optional[int] = None,
) -> Dict[str, IdentityUser]:
    """
    Fetch identity records in batches.

    A failed batch is logged and skipped; the users in it are simply absent
    from the result.
    """
    if not user_ids or not provider.is_configured:
        return {}

    found: Dict[str, IdentityUser] = {}
    for batch in _chunks(list(user_ids), batch_size or settings.clerk_batch_size):
        try:
            found.update(await provider.list_users(batch))
        except IdentityProviderError as e:
            logger.warning(
                "Identity lookup failed for %d users, showing local data: %s", len(batch), e
            )
    return found


def build_entry(profile: UserProfile, identity: Optional[IdentityUser]) -> DirectoryEntry:
    """Combine a profile with its identity record, falling back to local data."""
    name = (identity.full_name if identity else None) or profile.full_name or PLACEHOLDER
    email = (identity.primary_email if identity else None) or profile.email or PLACEHOLDER
    image_url = (identity.image_url if identity else None) or profile.photo_url
    return DirectoryEntry(profile=profile, name=name, email=email, image_url=image_url)


async def enrich_profiles(
    provider: ClerkAdapter,
    profiles: Sequence[UserProfile],
) -> List[DirectoryEntry]:
    """
    Annotate profiles with display name, email and avatar.

    Never raises for provider failures.  Manually provisioned and legacy
    users have no identity record and get their stored names/email, or the
    placeholder when those are blank.
    """
    identities = await lookup_identities(provider, [p.user_id for p in profiles])
    return [build_entry(p, identities.get(p.user_id)) for p in profiles]
