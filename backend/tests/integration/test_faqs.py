"""Integration tests for FAQ endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import Faq

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def faqs(db_session: AsyncSession):
    rows = [
        Faq(question="How do I subscribe?", answer="From your account page.", sort_order=2),
        Faq(question="What is premium?", answer="Everything.", sort_order=1),
        Faq(question="Draft entry", answer="Not yet.", sort_order=0, is_published=False),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


class TestListFaqs:
    async def test_public_sees_published_in_order(self, async_client: AsyncClient, faqs):
        response = await async_client.get("/api/v1/faqs")

        assert response.status_code == 200
        assert [f["question"] for f in response.json()] == ["What is premium?", "How do I subscribe?"]

    async def test_admin_can_include_unpublished(self, async_client: AsyncClient, faqs, admin_headers):
        response = await async_client.get(
            "/api/v1/faqs", headers=admin_headers, params={"include_unpublished": True}
        )

        assert len(response.json()) == 3
        assert response.json()[0]["question"] == "Draft entry"

    async def test_unpublished_requires_admin(self, async_client: AsyncClient, faqs, auth_headers):
        anonymous = await async_client.get("/api/v1/faqs", params={"include_unpublished": True})
        reader = await async_client.get(
            "/api/v1/faqs", headers=auth_headers, params={"include_unpublished": True}
        )

        assert anonymous.status_code == 401
        assert reader.status_code == 403


class TestManageFaqs:
    async def test_create(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/faqs",
            headers=admin_headers,
            json={"question": " Can I cancel? ", "answer": "Any time.", "sort_order": 3},
        )

        assert response.status_code == 201
        assert response.json()["question"] == "Can I cancel?"
        assert response.json()["is_published"] is True

    async def test_create_rejects_blank(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/faqs", headers=admin_headers, json={"question": "  ", "answer": "x"}
        )

        assert response.status_code == 400

    async def test_reader_cannot_create(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/v1/faqs", headers=auth_headers, json={"question": "q", "answer": "a"}
        )

        assert response.status_code == 403

    async def test_partial_update(self, async_client: AsyncClient, admin_headers: dict, faqs):
        faq = faqs[0]

        response = await async_client.put(
            f"/api/v1/faqs/{faq.id}", headers=admin_headers, json={"is_published": False}
        )

        assert response.status_code == 200
        assert response.json()["is_published"] is False
        assert response.json()["question"] == "How do I subscribe?"

    async def test_update_rejects_blank_answer(self, async_client: AsyncClient, admin_headers: dict, faqs):
        response = await async_client.put(
            f"/api/v1/faqs/{faqs[0].id}", headers=admin_headers, json={"answer": "   "}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Answer cannot be empty"

    async def test_delete(self, async_client: AsyncClient, admin_headers: dict, faqs):
        response = await async_client.delete(f"/api/v1/faqs/{faqs[0].id}", headers=admin_headers)
        again = await async_client.delete(f"/api/v1/faqs/{faqs[0].id}", headers=admin_headers)

        assert response.status_code == 204
        assert again.status_code == 404
        assert again.json()["detail"] == "FAQ not found"
