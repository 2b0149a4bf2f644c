"""
SQLAlchemy database models.
"""

from .article import Article, ArticleStatus
from .base import Base, TimestampMixin
from .faq import Faq
from .issue import Issue, issue_date, issue_slug
from .login_history import LoginHistory
from .profile import Tier, UserProfile
from .taxonomy import Category, Tag

__all__ = [
    "Base",
    "TimestampMixin",
    "UserProfile",
    "Tier",
    "Article",
    "ArticleStatus",
    "Category",
    "Tag",
    "Faq",
    "Issue",
    "issue_date",
    "issue_slug",
    "LoginHistory",
]
