"""
Clerk Backend API adapter.

Reads user records (names, email addresses, avatar) from the identity
provider and performs the few administrative writes the magazine needs.
Authentication is a bearer secret key issued by the provider.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


# Errors
class IdentityProviderError(Exception):
    """Raised when the identity provider is unreachable or returns an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IdentityUserNotFoundError(IdentityProviderError):
    """Raised when the identity provider has no such user."""
    pass


@dataclass
class IdentityUser:
    """The subset of an identity-provider user record the app uses."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    primary_email: Optional[str] = None
    emails: List[str] = field(default_factory=list)

    @property
    def full_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "IdentityUser":
        addresses = data.get("email_addresses") or []
        emails = [a.get("email_address") for a in addresses if a.get("email_address")]
        primary_id = data.get("primary_email_address_id")
        primary = next(
            (a.get("email_address") for a in addresses if a.get("id") == primary_id),
            emails[0] if emails else None,
        )
        return cls(
            id=data["id"],
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            image_url=data.get("image_url"),
            primary_email=primary,
            emails=emails,
        )


class ClerkAdapter:
    """
    Clerk Backend API client.

    Supports listing users by id, fetching a single user and setting a
    user's password.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize the Clerk adapter.

        Args:
            secret_key: Backend API secret key (defaults to settings)
            api_url: Backend API base URL (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
        """
        self.secret_key = secret_key if secret_key is not None else settings.clerk_secret_key
        self.api_url = (api_url or settings.clerk_api_url).rstrip("/")
        self.timeout = timeout or settings.clerk_timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily built client carrying the Backend API bearer key."""
        if self._client is None:
            headers = {
                "Authorization": f"Bearer {self.secret_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                headers=headers,
                timeout=self.timeout,
            )
        return self._client

    async def close(self):
        """Release the pooled connection, if one was opened."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _handle_response(self, response: httpx.Response) -> Any:
        """
        Parse an API response, raising on error statuses.

        Raises:
            IdentityUserNotFoundError: On 404
            IdentityProviderError: On any other error status or bad JSON
        """
        if response.status_code == 404:
            raise IdentityUserNotFoundError("User not found", status_code=404)

        if response.status_code >= 400:
            try:
                errors = response.json().get("errors") or []
                message = errors[0].get("long_message") or errors[0].get("message")
            except Exception:
                message = None
            message = message or response.text or f"HTTP {response.status_code}"
            logger.error("Identity provider error [%s]: %s", response.status_code, message)
            raise IdentityProviderError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise IdentityProviderError(f"Invalid JSON response: {e}")

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        if not self.is_configured:
            raise IdentityProviderError("Identity provider is not configured")
        try:
            response = await self._get_client().request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("Identity provider timeout: %s", e)
            raise IdentityProviderError(
                f"Identity provider did not respond within {self.timeout} seconds"
            )
        except httpx.HTTPError as e:
            logger.error("Identity provider connection failed: %s", e)
            raise IdentityProviderError(f"Cannot reach identity provider: {e}")
        return self._handle_response(response)

    async def list_users(self, user_ids: Iterable[str]) -> Dict[str, IdentityUser]:
        """
        Fetch users by id in a single call.

        Args:
            user_ids: Identity ids to look up (at most ``clerk_batch_size``)

        Returns:
            Mapping of id -> IdentityUser for the ids the provider knows
        """
        ids = list(user_ids)
        if not ids:
            return {}
        params = [("user_id", uid) for uid in ids]
        params.append(("limit", str(len(ids))))
        data = await self._request("GET", "/users", params=params)
        # The API returns either a bare list or {"data": [...], "total_count": n}
        rows = data.get("data", []) if isinstance(data, dict) else data
        users = [IdentityUser.from_api(row) for row in rows]
        return {u.id: u for u in users}

    async def get_user(self, user_id: str) -> IdentityUser:
        """Fetch a single user record."""
        data = await self._request("GET", f"/users/{user_id}")
        return IdentityUser.from_api(data)

    async def set_password(self, user_id: str, password: str) -> None:
        """
        Replace a user's password without the provider's strength checks.

        Raises:
            IdentityProviderError: If the provider rejects the update
        """
        await self._request(
            "PATCH",
            f"/users/{user_id}",
            json={"password": password, "skip_password_checks": True},
        )
        logger.info("Password replaced for user %s", user_id)


def get_identity_provider() -> ClerkAdapter:
    """FastAPI dependency returning the identity-provider client."""
    return identity_provider


# Shared by the app; tests override get_identity_provider
identity_provider = ClerkAdapter()
