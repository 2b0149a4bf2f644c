"""
Per-client request throttling with slowapi.

Every route gets ``RATE_LIMITS["default"]`` through SlowAPIMiddleware.
Routes that send mail, call the identity provider or accept uploads carry a
tighter ``@limiter.limit(get_rate_limit(...))`` of their own.
"""

import ipaddress
import logging
from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

RATE_LIMITS = {
    "contact": "5/minute",
    "log_login": "10/minute",
    "avatar_upload": "10/minute",
    "password_reset": "5/hour",
    "default": "100/minute",
}


def _public_ip(value: Optional[str]) -> Optional[str]:
    """Return ``value`` if it parses as a routable address, else None.

    Forwarding headers are client-controlled; private and loopback values
    would let a caller pick its own bucket.
    """
    if not value:
        return None
    try:
        addr = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if addr.is_private or addr.is_loopback or addr.is_link_local:
        return None
    return str(addr)


def rate_limit_key(request: Request) -> str:
    """Bucket key: first forwarded address, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    return (
        _public_ip(forwarded.split(",")[0])
        or _public_ip(request.headers.get("x-real-ip"))
        or get_remote_address(request)
    )


def get_rate_limit(endpoint: str) -> str:
    """Limit string for ``endpoint``, falling back to the global default."""
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])


if settings.redis_url:
    _storage_uri = settings.redis_url
else:
    _storage_uri = "memory://"
    if settings.is_production:
        logger.critical("REDIS_URL is not set; rate limits are per worker process")
    else:
        logger.warning("Rate limiter using in-memory storage")

limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)
