"""
Service layer for business logic.
"""

from services.idempotent import create_or_fetch
from services.profiles import get_or_create_profile, get_profile
from services.user_directory import DirectoryEntry, PLACEHOLDER, enrich_profiles

__all__ = [
    "create_or_fetch",
    "get_or_create_profile",
    "get_profile",
    "DirectoryEntry",
    "PLACEHOLDER",
    "enrich_profiles",
]
