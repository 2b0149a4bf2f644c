"""
API dependencies for authentication and authorization.

Each request resolves its caller explicitly: session token -> identity id ->
profile -> :class:`Caller`.  Route handlers receive the caller as a parameter
and pass it to the access checks in ``core.domain``.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.identity import ClerkAdapter, get_identity_provider
from core.domain import Caller, Capability, require_admin, require_any
from core.security.tokens import TokenService
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import UserProfile
from services.profiles import get_or_create_profile

token_service = TokenService(
    key=settings.session_jwt_key,
    algorithm=settings.session_jwt_algorithm,
    issuer=settings.session_jwt_issuer,
    expire_minutes=settings.session_token_expire_minutes,
)

# Cookie the identity provider's frontend SDK sets for same-site requests
SESSION_COOKIE = "__session"


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    token = None
    if authorization and authorization.startswith("Bearer "):
        parts = authorization.split(" ", 1)
        token = parts[1].strip() if len(parts) > 1 and parts[1].strip() else None
    if not token:
        token = request.cookies.get(SESSION_COOKIE)
    return token


async def get_optional_user_id(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Optional[str]:
    """
    Identity id from the session token, or None for anonymous requests.

    A token that is present but invalid is still rejected with 401 rather
    than silently treated as anonymous.
    """
    token = _extract_token(request, authorization)
    if not token:
        return None

    payload = token_service.decode_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload.sub


async def get_current_user_id(
    user_id: Annotated[Optional[str], Depends(get_optional_user_id)],
) -> str:
    """Dependency requiring an authenticated identity."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


async def get_current_profile(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: AsyncSession = Depends(get_db),
    provider: ClerkAdapter = Depends(get_identity_provider),
) -> UserProfile:
    """Dependency returning the caller's profile, creating it on first sight."""
    return await get_or_create_profile(db, user_id, provider)


async def get_current_caller(
    profile: Annotated[UserProfile, Depends(get_current_profile)],
) -> Caller:
    """Dependency returning the authenticated caller's capabilities and tier."""
    return Caller.from_profile(profile)


async def get_optional_caller(
    user_id: Annotated[Optional[str], Depends(get_optional_user_id)],
    db: AsyncSession = Depends(get_db),
    provider: ClerkAdapter = Depends(get_identity_provider),
) -> Optional[Caller]:
    """Dependency for public endpoints that behave differently for signed-in readers."""
    if not user_id:
        return None
    profile = await get_or_create_profile(db, user_id, provider)
    return Caller.from_profile(profile)


async def get_current_admin(
    caller: Annotated[Caller, Depends(get_current_caller)],
) -> Caller:
    """
    Dependency to get the current authenticated admin.

    Raises:
        ForbiddenError: 403 if the caller is not an admin
    """
    return require_admin(caller)


def require_capability(*capabilities: Capability):
    """
    Build a dependency that admits callers holding any of ``capabilities``.

    Admins pass any author or contributor requirement.
    """

    async def dependency(caller: Annotated[Caller, Depends(get_current_caller)]) -> Caller:
        return require_any(caller, *capabilities)

    return dependency


CurrentCaller = Annotated[Caller, Depends(get_current_caller)]
OptionalCaller = Annotated[Optional[Caller], Depends(get_optional_caller)]
AdminCaller = Annotated[Caller, Depends(get_current_admin)]
