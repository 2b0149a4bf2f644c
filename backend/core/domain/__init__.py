# Domain Entities
# Pure business rules with no external dependencies
from .access import (
    Caller,
    Capability,
    PaywallVariant,
    ReadDecision,
    Tier,
    check_read_access,
    guard_self_demotion,
    require_admin,
    require_any,
    require_caller,
    require_owner_or_admin,
    tier_satisfies,
)
from .articles import ArticleStatus, parse_status, resolve_status, stamp_published_at
from .slug import slugify

__all__ = [
    "Caller",
    "Capability",
    "PaywallVariant",
    "ReadDecision",
    "Tier",
    "check_read_access",
    "guard_self_demotion",
    "require_admin",
    "require_any",
    "require_caller",
    "require_owner_or_admin",
    "tier_satisfies",
    "ArticleStatus",
    "parse_status",
    "resolve_status",
    "stamp_published_at",
    "slugify",
]
