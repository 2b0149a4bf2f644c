"""Integration tests for issue archive and issue import endpoints."""
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import Article, Issue

pytestmark = pytest.mark.asyncio

ISSUE = {"title": "March 2024", "slug": "2024-03", "month": 3, "year": 2024, "volume": 96, "number": 3}


async def add_issue(db: AsyncSession, year: int = 2024, month: int = 3) -> Issue:
    issue = Issue(title=f"Issue {year}-{month:02d}", slug=f"{year}-{month:02d}", year=year, month=month)
    db.add(issue)
    await db.commit()
    await db.refresh(issue)
    return issue


async def add_article(db: AsyncSession, slug: str, issue: Issue = None, status="draft", source_page=None) -> Article:
    article = Article(
        title=slug.replace("-", " ").title(),
        slug=slug,
        status=status,
        tags=[],
        content_blocks=[{"type": "paragraph", "text": "Body"}],
        issue_id=issue.id if issue else None,
        source_page=source_page,
    )
    db.add(article)
    await db.commit()
    await db.refresh(article)
    return article


class TestFindOrCreateIssue:
    """Tests for POST /admin/import/issue."""

    async def test_creates_then_finds(self, async_client: AsyncClient, admin_headers: dict, db_session: AsyncSession):
        first = await async_client.post("/api/v1/admin/import/issue", headers=admin_headers, json=ISSUE)
        second = await async_client.post(
            "/api/v1/admin/import/issue", headers=admin_headers, json={**ISSUE, "title": "Renamed"}
        )

        assert first.status_code == 201
        assert first.json()["created"] is True
        assert second.status_code == 200
        assert second.json() == {"id": first.json()["id"], "created": False}

        issue = (await db_session.execute(select(Issue))).scalar_one()
        assert issue.title == "March 2024"
        assert issue.volume == 96
        assert issue.published_at.replace(tzinfo=timezone.utc) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    async def test_reuses_row_inserted_after_lookup(
        self, async_client: AsyncClient, admin_headers: dict, db_session: AsyncSession, monkeypatch
    ):
        existing = await add_issue(db_session)
        existing_id = existing.id

        async def lookup_misses(db, slug):
            return None

        monkeypatch.setattr("api.routes.admin_import._find_issue", lookup_misses)

        response = await async_client.post("/api/v1/admin/import/issue", headers=admin_headers, json=ISSUE)

        assert response.status_code == 200
        assert response.json() == {"id": existing_id, "created": False}
        count = await db_session.scalar(select(func.count()).select_from(Issue))
        assert count == 1

    async def test_missing_fields(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/admin/import/issue", headers=admin_headers, json={"title": "No date", "slug": "x"}
        )

        assert response.status_code == 400

    async def test_blank_title(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/admin/import/issue", headers=admin_headers, json={**ISSUE, "title": "  "}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: title, slug, month, year"

    async def test_month_out_of_range(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/admin/import/issue", headers=admin_headers, json={**ISSUE, "month": 13}
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("month:")

    async def test_admin_only(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post("/api/v1/admin/import/issue", headers=auth_headers, json=ISSUE)

        assert response.status_code == 403


class TestBatchImport:
    """Tests for POST /admin/import/batch."""

    async def test_imports_paid_drafts(self, async_client: AsyncClient, admin_headers: dict, db_session: AsyncSession):
        issue = await add_issue(db_session)
        rows = [
            {
                "title": "The Bidding Box",
                "author_name": "Edgar Kaplan",
                "category": "Bidding",
                "tags": [" Slam ", "slam"],
                "level": "advanced",
                "source_page": 12,
                "excerpt": "Six hearts or seven?",
                "content_blocks": [{"type": "paragraph", "text": "..."}],
                "status": "published",
            },
            {"title": "Letters", "slug": "letters-march", "month": 2, "year": 2024},
        ]

        response = await async_client.post(
            "/api/v1/admin/import/batch", headers=admin_headers, json={"issueId": issue.id, "articles": rows}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["created"] == 2
        assert [a["title"] for a in data["articles"]] == ["The Bidding Box", "Letters"]

        stored = {
            a.slug: a
            for a in (await db_session.execute(select(Article).where(Article.issue_id == issue.id))).scalars()
        }
        box = stored["the-bidding-box"]
        assert box.status == "draft"
        assert box.published_at is None
        assert box.access_tier == "paid"
        assert box.tags == ["slam"]
        assert box.level == "advanced"
        assert (box.year, box.month, box.source_page) == (2024, 3, 12)
        assert (stored["letters-march"].year, stored["letters-march"].month) == (2024, 2)

    async def test_requires_rows_and_issue(self, async_client: AsyncClient, admin_headers: dict):
        empty = await async_client.post(
            "/api/v1/admin/import/batch", headers=admin_headers, json={"issue_id": "x", "articles": []}
        )
        no_issue = await async_client.post(
            "/api/v1/admin/import/batch", headers=admin_headers, json={"articles": [{"title": "A"}]}
        )

        assert empty.status_code == 400
        assert no_issue.status_code == 400

    async def test_unknown_issue(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/admin/import/batch",
            headers=admin_headers,
            json={"issue_id": "missing", "articles": [{"title": "A"}]},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Issue not found"

    async def test_slug_conflicts_insert_nothing(
        self, async_client: AsyncClient, admin_headers: dict, db_session: AsyncSession
    ):
        issue = await add_issue(db_session)
        await add_article(db_session, "taken")

        clash = await async_client.post(
            "/api/v1/admin/import/batch",
            headers=admin_headers,
            json={"issue_id": issue.id, "articles": [{"title": "Fresh"}, {"title": "Taken"}]},
        )
        repeated = await async_client.post(
            "/api/v1/admin/import/batch",
            headers=admin_headers,
            json={"issue_id": issue.id, "articles": [{"title": "Twice"}, {"title": "twice"}]},
        )

        assert clash.status_code == 409
        assert clash.json()["detail"] == "Slugs already in use: taken"
        assert repeated.status_code == 409
        count = await db_session.scalar(
            select(func.count()).select_from(Article).where(Article.issue_id == issue.id)
        )
        assert count == 0

    async def test_admin_only(self, async_client: AsyncClient, make_headers, author):
        response = await async_client.post(
            "/api/v1/admin/import/batch",
            headers=make_headers(author.user_id),
            json={"issue_id": "x", "articles": [{"title": "A"}]},
        )

        assert response.status_code == 403


class TestIssueDrafts:
    """Tests for GET /admin/import/drafts."""

    async def test_lists_drafts_in_page_order(
        self, async_client: AsyncClient, admin_headers: dict, db_session: AsyncSession
    ):
        issue = await add_issue(db_session)
        await add_article(db_session, "late", issue, source_page=40)
        await add_article(db_session, "early", issue, source_page=3)
        await add_article(db_session, "unpaged", issue)
        await add_article(db_session, "live", issue, status="published", source_page=1)
        await add_article(db_session, "elsewhere", source_page=2)

        response = await async_client.get(
            "/api/v1/admin/import/drafts", headers=admin_headers, params={"year": 2024, "month": 3}
        )

        assert response.status_code == 200
        assert [a["slug"] for a in response.json()["articles"]] == ["early", "late", "unpaged"]

    async def test_unknown_issue_is_empty(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.get(
            "/api/v1/admin/import/drafts", headers=admin_headers, params={"year": 1999, "month": 1}
        )

        assert response.status_code == 200
        assert response.json() == {"articles": []}

    async def test_year_and_month_required(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.get(
            "/api/v1/admin/import/drafts", headers=admin_headers, params={"year": 2024}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "year and month required"


class TestIssueArchive:
    """Tests for the public /issues endpoints."""

    async def test_list_newest_first(self, async_client: AsyncClient, db_session: AsyncSession):
        await add_issue(db_session, 2023, 12)
        await add_issue(db_session, 2024, 2)
        await add_issue(db_session, 2024, 1)

        response = await async_client.get("/api/v1/issues")

        assert response.status_code == 200
        assert [i["slug"] for i in response.json()] == ["2024-02", "2024-01", "2023-12"]

    async def test_detail_lists_published_articles(self, async_client: AsyncClient, db_session: AsyncSession):
        issue = await add_issue(db_session)
        await add_article(db_session, "second", issue, status="published", source_page=9)
        await add_article(db_session, "first", issue, status="published", source_page=2)
        await add_article(db_session, "pending", issue, source_page=5)

        response = await async_client.get("/api/v1/issues/2024-03")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == issue.id
        assert [a["slug"] for a in data["articles"]] == ["first", "second"]
        assert "content_blocks" not in data["articles"][0]

    async def test_unknown_issue(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/issues/1900-01")

        assert response.status_code == 404
        assert response.json()["detail"] == "Issue not found"


class TestArticleIssueLink:
    async def test_create_with_unknown_issue(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/v1/articles", headers=admin_headers, json={"title": "Linked", "issue_id": "missing"}
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Issue not found"

    async def test_create_linked_to_issue(
        self, async_client: AsyncClient, admin_headers: dict, db_session: AsyncSession
    ):
        issue = await add_issue(db_session)

        created = await async_client.post(
            "/api/v1/articles",
            headers=admin_headers,
            json={"title": "Linked", "issue_id": issue.id, "source_page": 7, "level": "beginner"},
        )
        fetched = await async_client.get(f"/api/v1/articles/{created.json()['id']}", headers=admin_headers)

        assert created.status_code == 201
        assert fetched.json()["issue_id"] == issue.id
        assert fetched.json()["source_page"] == 7
        assert fetched.json()["level"] == "beginner"
