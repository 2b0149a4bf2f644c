"""
Subscription status API route.
"""

from fastapi import APIRouter

from api.dependencies import CurrentCaller
from api.schemas.profile import SubscriptionStatusResponse
from core.domain import Capability

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/subscription", response_model=SubscriptionStatusResponse)
async def get_subscription(caller: CurrentCaller) -> SubscriptionStatusResponse:
    """
    Return the caller's tier and role flags.

    ``is_author`` is also true for admins.
    """
    return SubscriptionStatusResponse(
        tier=caller.tier.value,
        is_admin=caller.is_admin,
        is_author=caller.has(Capability.AUTHOR),
        is_contributor=Capability.CONTRIBUTOR in caller.capabilities,
    )
