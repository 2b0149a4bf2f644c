# Identity provider adapters
# Clerk Backend API integration

from .clerk_adapter import (
    ClerkAdapter,
    IdentityProviderError,
    IdentityUser,
    IdentityUserNotFoundError,
    get_identity_provider,
    identity_provider,
)

__all__ = [
    "ClerkAdapter",
    "IdentityUser",
    "IdentityProviderError",
    "IdentityUserNotFoundError",
    "get_identity_provider",
    "identity_provider",
]
