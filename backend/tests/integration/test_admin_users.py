"""Integration tests for admin user management endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import Article, UserProfile

pytestmark = pytest.mark.asyncio


class TestListUsers:
    """Tests for GET /admin/users endpoint."""

    async def test_requires_admin(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.get("/api/v1/admin/users", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    async def test_requires_sign_in(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/admin/users")

        assert response.status_code == 401

    async def test_enriches_from_identity_provider(
        self, async_client: AsyncClient, admin_headers: dict, reader, identity_provider
    ):
        identity_provider.add_user(
            reader.user_id, "Rita", "Clerkson", "rita@clerk.test", "https://img.test/rita.png"
        )

        response = await async_client.get("/api/v1/admin/users", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["limit"] == 20
        users = {u["user_id"]: u for u in data["users"]}
        assert users[reader.user_id]["name"] == "Rita Clerkson"
        assert users[reader.user_id]["email"] == "rita@clerk.test"
        assert users[reader.user_id]["image_url"] == "https://img.test/rita.png"
        # not known to the provider, so stored data is shown
        assert users["user_admin"]["name"] == "Ada"
        assert users["user_admin"]["email"] == "ada@example.com"

    async def test_provider_failure_falls_back_to_stored_data(
        self, async_client: AsyncClient, admin_headers: dict, reader, make_profile, identity_provider
    ):
        await make_profile("user_blank")
        identity_provider.add_user(reader.user_id, "Rita", "Clerkson", "rita@clerk.test")
        identity_provider.failing_ids.add("user_blank")

        response = await async_client.get("/api/v1/admin/users", headers=admin_headers)

        assert response.status_code == 200
        users = {u["user_id"]: u for u in response.json()["users"]}
        assert users[reader.user_id]["name"] == "Rita Reader"
        assert users[reader.user_id]["email"] == "rita@example.com"
        assert users["user_blank"]["name"] == "—"
        assert users["user_blank"]["email"] == "—"

    async def test_pagination_and_search(
        self, async_client: AsyncClient, admin_headers: dict, make_profile
    ):
        for i in range(5):
            await make_profile(f"user_member_{i}", email=f"member{i}@example.com")

        page = await async_client.get(
            "/api/v1/admin/users", headers=admin_headers, params={"limit": 2, "page": 3}
        )
        search = await async_client.get(
            "/api/v1/admin/users", headers=admin_headers, params={"search": "MEMBER3"}
        )

        assert page.json()["total"] == 6
        assert page.json()["pages"] == 3
        assert len(page.json()["users"]) == 2
        assert [u["user_id"] for u in search.json()["users"]] == ["user_member_3"]


class TestCreateUser:
    async def test_manual_profile(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/admin/users",
            headers=admin_headers,
            json={"email": " guest@example.com ", "first_name": "Gus", "tier": "premium"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"].startswith("manual_")
        assert data["email"] == "guest@example.com"
        assert data["tier"] == "premium"
        assert data["is_admin"] is False

    async def test_unknown_tier_falls_back_to_free(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/admin/users", headers=admin_headers, json={"email": "x@example.com", "tier": "gold"}
        )

        assert response.json()["tier"] == "free"

    async def test_email_required(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post("/api/v1/admin/users", headers=admin_headers, json={"email": "  "})

        assert response.status_code == 400
        assert response.json()["detail"] == "Email is required"


class TestUserDetail:
    async def test_detail_counts_articles(
        self, async_client: AsyncClient, admin_headers: dict, author, db_session: AsyncSession
    ):
        db_session.add_all([
            Article(title="One", slug="one", author_id=author.user_id, tags=[], content_blocks=[]),
            Article(title="Two", slug="two", author_id=author.user_id, tags=[], content_blocks=[]),
        ])
        await db_session.commit()

        response = await async_client.get(f"/api/v1/admin/users/{author.user_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["article_count"] == 2
        assert response.json()["is_author"] is True

    async def test_unknown_user(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.get("/api/v1/admin/users/nobody", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"


class TestUpdateUser:
    async def test_grant_capabilities(self, async_client: AsyncClient, admin_headers: dict, reader):
        response = await async_client.patch(
            f"/api/v1/admin/users/{reader.user_id}/profile",
            headers=admin_headers,
            json={"is_author": True, "tier": "paid", "bio": "  Club player  "},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_author"] is True
        assert data["tier"] == "paid"
        assert data["bio"] == "Club player"
        assert data["first_name"] == "Rita"

    async def test_admin_cannot_demote_self(self, async_client: AsyncClient, admin_headers: dict, admin):
        response = await async_client.patch(
            f"/api/v1/admin/users/{admin.user_id}/profile", headers=admin_headers, json={"is_admin": False}
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "You cannot remove your own admin access"

    async def test_admin_can_demote_another_admin(
        self, async_client: AsyncClient, admin_headers: dict, make_profile
    ):
        other = await make_profile("user_other_admin", is_admin=True)

        response = await async_client.patch(
            f"/api/v1/admin/users/{other.user_id}/profile", headers=admin_headers, json={"is_admin": False}
        )

        assert response.status_code == 200
        assert response.json()["is_admin"] is False

    async def test_set_tier(self, async_client: AsyncClient, admin_headers: dict, reader):
        response = await async_client.patch(
            f"/api/v1/admin/users/{reader.user_id}/tier", headers=admin_headers, json={"tier": "Premium"}
        )

        assert response.status_code == 200
        assert response.json()["tier"] == "premium"

    async def test_invalid_tier(self, async_client: AsyncClient, admin_headers: dict, reader):
        response = await async_client.patch(
            f"/api/v1/admin/users/{reader.user_id}/tier", headers=admin_headers, json={"tier": "gold"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid tier. Must be one of: free, paid, premium"


class TestResetPassword:
    async def test_returns_temp_password(
        self, async_client: AsyncClient, admin_headers: dict, reader, identity_provider
    ):
        response = await async_client.patch(
            f"/api/v1/admin/users/{reader.user_id}/reset-password", headers=admin_headers
        )

        assert response.status_code == 200
        temp_password = response.json()["temp_password"]
        assert identity_provider.passwords[reader.user_id] == temp_password
        assert len(temp_password.split("-")) == 3

    async def test_provider_rejection_is_422(
        self, async_client: AsyncClient, admin_headers: dict, reader, identity_provider
    ):
        identity_provider.password_error = "Password has been found in an online data breach"

        response = await async_client.patch(
            f"/api/v1/admin/users/{reader.user_id}/reset-password", headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Password has been found in an online data breach"

    async def test_unknown_user(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.patch("/api/v1/admin/users/nobody/reset-password", headers=admin_headers)

        assert response.status_code == 404


class TestMergeUsers:
    @pytest.fixture
    async def legacy(self, make_profile, db_session: AsyncSession) -> UserProfile:
        profile = await make_profile("legacy_42", is_legacy=True, first_name="Old", last_name="Hand")
        db_session.add_all([
            Article(title=f"Legacy {i}", slug=f"legacy-{i}", author_id=profile.user_id, tags=[], content_blocks=[])
            for i in range(3)
        ])
        await db_session.commit()
        return profile

    async def test_reassigns_articles(
        self, async_client: AsyncClient, admin_headers: dict, legacy, author, db_session: AsyncSession
    ):
        response = await async_client.post(
            "/api/v1/admin/users/merge",
            headers=admin_headers,
            json={"legacy_user_id": legacy.user_id, "target_user_id": author.user_id},
        )

        assert response.status_code == 200
        assert response.json() == {"merged": 3, "legacy_name": "Old Hand", "target_name": "Alex"}
        owners = (await db_session.execute(select(Article.author_id))).scalars().all()
        assert set(owners) == {author.user_id}
        # the legacy profile itself is kept
        assert await db_session.get(UserProfile, legacy.user_id) is not None

    async def test_source_must_be_legacy(self, async_client: AsyncClient, admin_headers: dict, reader, author):
        response = await async_client.post(
            "/api/v1/admin/users/merge",
            headers=admin_headers,
            json={"legacy_user_id": reader.user_id, "target_user_id": author.user_id},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Source user is not a legacy profile"

    async def test_cannot_merge_into_self(self, async_client: AsyncClient, admin_headers: dict, legacy):
        response = await async_client.post(
            "/api/v1/admin/users/merge",
            headers=admin_headers,
            json={"legacy_user_id": legacy.user_id, "target_user_id": legacy.user_id},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot merge a user into themselves"

    async def test_missing_users(self, async_client: AsyncClient, admin_headers: dict, legacy):
        no_legacy = await async_client.post(
            "/api/v1/admin/users/merge",
            headers=admin_headers,
            json={"legacy_user_id": "ghost", "target_user_id": legacy.user_id},
        )
        no_target = await async_client.post(
            "/api/v1/admin/users/merge",
            headers=admin_headers,
            json={"legacy_user_id": legacy.user_id, "target_user_id": "ghost"},
        )

        assert no_legacy.json()["detail"] == "Legacy user not found"
        assert no_target.json()["detail"] == "Target user not found"

    async def test_blank_ids(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/admin/users/merge",
            headers=admin_headers,
            json={"legacy_user_id": " ", "target_user_id": ""},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Both legacy_user_id and target_user_id are required"
