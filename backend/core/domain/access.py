"""Access control domain: tiers, capabilities and the authorization gate.

Everything here is a pure decision over already-fetched data.  The request
layer resolves a :class:`Caller` once per request and passes it explicitly
into these checks; there is no ambient "current user".
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from core.errors import ForbiddenError, SelfDemotionError, UnauthenticatedError


class Tier(str, Enum):
    """Subscription tiers, cheapest first."""
    FREE = "free"
    PAID = "paid"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    @classmethod
    def normalize(cls, value: Optional[str]) -> "Tier":
        """Map a stored or submitted value onto a tier; anything unknown is FREE."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.FREE


_TIER_RANK = {Tier.FREE: 0, Tier.PAID: 1, Tier.PREMIUM: 2}


class Capability(str, Enum):
    """Independent role flags a profile may carry."""
    ADMIN = "admin"
    AUTHOR = "author"
    CONTRIBUTOR = "contributor"
    LEGACY = "legacy"


class PaywallVariant(str, Enum):
    """Why a reader was refused an article."""
    SIGN_IN = "sign_in"
    UPGRADE_PAID = "upgrade_paid"
    UPGRADE_PREMIUM = "upgrade_premium"


@dataclass(frozen=True)
class Caller:
    """The resolved identity making a request."""

    user_id: str
    tier: Tier = Tier.FREE
    capabilities: frozenset[Capability] = field(default_factory=frozenset)

    @classmethod
    def from_flags(
        cls,
        user_id: str,
        tier: Optional[str] = None,
        *,
        is_admin: bool = False,
        is_author: bool = False,
        is_contributor: bool = False,
        is_legacy: bool = False,
    ) -> "Caller":
        caps = set()
        if is_admin:
            caps.add(Capability.ADMIN)
        if is_author:
            caps.add(Capability.AUTHOR)
        if is_contributor:
            caps.add(Capability.CONTRIBUTOR)
        if is_legacy:
            caps.add(Capability.LEGACY)
        return cls(user_id=user_id, tier=Tier.normalize(tier), capabilities=frozenset(caps))

    @classmethod
    def from_profile(cls, profile) -> "Caller":
        return cls.from_flags(
            profile.user_id,
            profile.tier,
            is_admin=profile.is_admin,
            is_author=profile.is_author,
            is_contributor=profile.is_contributor,
            is_legacy=profile.is_legacy,
        )

    def has(self, capability: Capability) -> bool:
        """Check a capability. Admins implicitly hold author and contributor."""
        if capability in self.capabilities:
            return True
        return Capability.ADMIN in self.capabilities and capability in (
            Capability.AUTHOR,
            Capability.CONTRIBUTOR,
        )

    @property
    def is_admin(self) -> bool:
        return Capability.ADMIN in self.capabilities

    def owns(self, owner_id: Optional[str]) -> bool:
        return owner_id is not None and owner_id == self.user_id


@dataclass(frozen=True)
class ReadDecision:
    """Outcome of a paywall check."""

    allowed: bool
    paywall: Optional[PaywallVariant] = None


# ---------------------------------------------------------------------------
# Authorization gate
# ---------------------------------------------------------------------------

def require_caller(caller: Optional[Caller]) -> Caller:
    """An identity must be present."""
    if caller is None or not caller.user_id:
        raise UnauthenticatedError()
    return caller


def require_any(
    caller: Optional[Caller],
    *capabilities: Capability,
    message: Optional[str] = None,
) -> Caller:
    """The caller must hold at least one of ``capabilities``."""
    caller = require_caller(caller)
    if not any(caller.has(cap) for cap in capabilities):
        raise ForbiddenError(message)
    return caller


def require_admin(caller: Optional[Caller]) -> Caller:
    return require_any(caller, Capability.ADMIN, message="Admin access required")


def require_owner_or_admin(
    caller: Optional[Caller],
    owner_id: Optional[str],
    message: Optional[str] = None,
) -> Caller:
    """Resource-scoped access needs admin or ownership."""
    caller = require_caller(caller)
    if caller.is_admin or caller.owns(owner_id):
        return caller
    raise ForbiddenError(message)


def guard_self_demotion(caller: Caller, target_user_id: str, is_admin: Optional[bool]) -> None:
    """An admin may not clear their own admin flag."""
    if is_admin is False and caller.user_id == target_user_id:
        raise SelfDemotionError()


# ---------------------------------------------------------------------------
# Tier comparator
# ---------------------------------------------------------------------------

def tier_satisfies(caller_tier: Tier, required: Tier) -> bool:
    return caller_tier.rank >= required.rank


def check_read_access(
    caller: Optional[Caller],
    required: Tier,
    author_id: Optional[str] = None,
) -> ReadDecision:
    """Decide whether ``caller`` may read content gated at ``required``.

    Admins and the content's own author always pass.  Anonymous readers only
    see free content and are told to sign in otherwise; signed-in readers
    below the required tier are told which tier to upgrade to.
    """
    required = Tier.normalize(required)
    if caller is None:
        if required is Tier.FREE:
            return ReadDecision(allowed=True)
        return ReadDecision(allowed=False, paywall=PaywallVariant.SIGN_IN)

    if caller.is_admin or caller.owns(author_id) or tier_satisfies(caller.tier, required):
        return ReadDecision(allowed=True)

    if required is Tier.PREMIUM:
        return ReadDecision(allowed=False, paywall=PaywallVariant.UPGRADE_PREMIUM)
    return ReadDecision(allowed=False, paywall=PaywallVariant.UPGRADE_PAID)
