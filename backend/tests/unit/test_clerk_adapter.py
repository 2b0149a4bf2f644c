"""
Tests for the Clerk identity provider adapter.
"""

import json

import httpx
import pytest

from adapters.identity import ClerkAdapter, IdentityProviderError, IdentityUser, IdentityUserNotFoundError

API_URL = "https://api.clerk.test/v1"


def clerk_user(user_id, first="Bob", last="Hamman", email="bob@example.com"):
    return {
        "id": user_id,
        "first_name": first,
        "last_name": last,
        "image_url": f"https://img.clerk.test/{user_id}.png",
        "primary_email_address_id": "idn_2",
        "email_addresses": [
            {"id": "idn_1", "email_address": "old@example.com"},
            {"id": "idn_2", "email_address": email},
        ],
    }


def make_adapter(handler) -> ClerkAdapter:
    adapter = ClerkAdapter(secret_key="sk_test_123", api_url=API_URL, timeout=5)
    adapter._client = httpx.AsyncClient(base_url=API_URL, transport=httpx.MockTransport(handler))
    return adapter


class TestIdentityUser:
    def test_from_api_picks_primary_email(self):
        user = IdentityUser.from_api(clerk_user("user_1"))

        assert user.primary_email == "bob@example.com"
        assert user.emails == ["old@example.com", "bob@example.com"]
        assert user.full_name == "Bob Hamman"

    def test_from_api_without_primary_uses_first_address(self):
        data = clerk_user("user_1")
        data["primary_email_address_id"] = None

        assert IdentityUser.from_api(data).primary_email == "old@example.com"

    def test_full_name_blank(self):
        assert IdentityUser(id="user_1").full_name is None


@pytest.mark.asyncio
class TestClerkAdapter:
    async def test_list_users_sends_ids_and_maps_results(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ids"] = request.url.params.get_list("user_id")
            seen["limit"] = request.url.params.get("limit")
            return httpx.Response(200, json=[clerk_user("user_1"), clerk_user("user_2", first="Zia")])

        adapter = make_adapter(handler)
        users = await adapter.list_users(["user_1", "user_2"])

        assert seen == {"ids": ["user_1", "user_2"], "limit": "2"}
        assert users["user_2"].first_name == "Zia"

    async def test_list_users_accepts_paginated_envelope(self):
        def handler(request):
            return httpx.Response(200, json={"data": [clerk_user("user_1")], "total_count": 1})

        users = await make_adapter(handler).list_users(["user_1"])

        assert list(users) == ["user_1"]

    async def test_list_users_with_no_ids_makes_no_call(self):
        def handler(request):
            raise AssertionError("unexpected request")

        assert await make_adapter(handler).list_users([]) == {}

    async def test_get_user_not_found(self):
        adapter = make_adapter(lambda request: httpx.Response(404, json={"errors": []}))

        with pytest.raises(IdentityUserNotFoundError):
            await adapter.get_user("user_missing")

    async def test_error_message_comes_from_provider(self):
        body = {"errors": [{"message": "bad", "long_message": "Password has been found in a breach"}]}
        adapter = make_adapter(lambda request: httpx.Response(422, json=body))

        with pytest.raises(IdentityProviderError) as exc_info:
            await adapter.set_password("user_1", "Temp-1234")

        assert str(exc_info.value) == "Password has been found in a breach"
        assert exc_info.value.status_code == 422

    async def test_set_password_skips_strength_checks(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=clerk_user("user_1"))

        await make_adapter(handler).set_password("user_1", "ABCD-2345-abcd")

        assert seen["method"] == "PATCH"
        assert seen["path"] == "/v1/users/user_1"
        assert seen["body"] == {"password": "ABCD-2345-abcd", "skip_password_checks": True}

    async def test_network_failure_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(IdentityProviderError):
            await make_adapter(handler).get_user("user_1")

    async def test_unconfigured_adapter_refuses_calls(self):
        adapter = ClerkAdapter(secret_key="", api_url=API_URL)

        assert not adapter.is_configured
        with pytest.raises(IdentityProviderError):
            await adapter.get_user("user_1")
