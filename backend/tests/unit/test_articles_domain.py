"""
Tests for article status rules and slug derivation.
"""

from datetime import datetime, timezone

import pytest

from core.domain import (
    ArticleStatus,
    Caller,
    parse_status,
    resolve_status,
    slugify,
    stamp_published_at,
)
from core.errors import ValidationFailedError

ADMIN = Caller.from_flags("user_admin", is_admin=True)
CONTRIBUTOR = Caller.from_flags("user_contributor", is_contributor=True)


class TestParseStatus:
    def test_missing_status_is_draft(self):
        assert parse_status(None) is ArticleStatus.DRAFT

    def test_review_is_an_alias_of_submitted(self):
        assert parse_status("review") is ArticleStatus.SUBMITTED
        assert parse_status(" Submitted ") is ArticleStatus.SUBMITTED

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            parse_status("archived")
        assert exc_info.value.message == "Invalid status: archived"


class TestResolveStatus:
    def test_non_admin_publish_becomes_draft(self):
        assert resolve_status("published", CONTRIBUTOR) is ArticleStatus.DRAFT

    def test_non_admin_may_submit(self):
        assert resolve_status("submitted", CONTRIBUTOR) is ArticleStatus.SUBMITTED

    def test_admin_may_publish(self):
        assert resolve_status("published", ADMIN) is ArticleStatus.PUBLISHED


class TestStampPublishedAt:
    NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_first_publish_sets_timestamp(self):
        assert stamp_published_at(None, ArticleStatus.PUBLISHED, now=self.NOW) == self.NOW

    def test_existing_timestamp_is_kept(self):
        earlier = datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert stamp_published_at(earlier, ArticleStatus.PUBLISHED, now=self.NOW) == earlier

    def test_leaving_published_never_clears(self):
        earlier = datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert stamp_published_at(earlier, ArticleStatus.DRAFT) == earlier

    def test_draft_stays_unpublished(self):
        assert stamp_published_at(None, ArticleStatus.SUBMITTED) is None


class TestSlugify:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Hello World", "hello-world"),
            ("Hello, World!  Bridge", "hello-world-bridge"),
            ("  The 2026   Bermuda Bowl!  ", "the-2026-bermuda-bowl"),
            ("Déjà vu", "dj-vu"),
            ("a -- b", "a-b"),
            ("---", ""),
            ("", ""),
        ],
    )
    def test_slugify(self, text, expected):
        assert slugify(text) == expected

    def test_output_alphabet(self):
        slug = slugify("Spades & Hearts: a (very) *long* title_with_underscores")
        assert all(ch.isdigit() or ("a" <= ch <= "z") or ch == "-" for ch in slug)
        assert not slug.startswith("-") and not slug.endswith("-")
        assert "--" not in slug
