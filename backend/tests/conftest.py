"""
Pytest configuration and shared fixtures for backend tests.
"""

import os
import sys
import tempfile
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are read at import time, so the test environment is fixed first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["SESSION_JWT_KEY"] = "test-session-key-with-at-least-32-characters"
os.environ["CLERK_SECRET_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["STORAGE_TYPE"] = "local"
os.environ["STORAGE_LOCAL_PATH"] = tempfile.mkdtemp(prefix="folio-uploads-")

import pytest
from typing import AsyncGenerator, Dict, Iterable, Optional
from unittest.mock import AsyncMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import after path is set
from adapters.email.resend_adapter import ResendEmailService, get_email_service
from adapters.identity import (
    ClerkAdapter,
    IdentityProviderError,
    IdentityUser,
    IdentityUserNotFoundError,
    get_identity_provider,
)
from adapters.storage import LocalStorageAdapter, get_avatar_storage
from api.dependencies import token_service
from infrastructure.database.connection import get_db
from infrastructure.database.models import Base, UserProfile


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeIdentityProvider(ClerkAdapter):
    """In-memory identity provider.

    ``failing_ids`` makes any batch containing one of them fail, and
    ``password_error`` makes set_password reject with that message.
    """

    def __init__(self):
        super().__init__(secret_key="sk_test_fake")
        self.users: Dict[str, IdentityUser] = {}
        self.failing_ids: set = set()
        self.password_error: Optional[str] = None
        self.list_calls: list = []
        self.passwords: Dict[str, str] = {}

    def add_user(self, user_id: str, first_name=None, last_name=None, email=None, image_url=None):
        user = IdentityUser(
            id=user_id,
            first_name=first_name,
            last_name=last_name,
            image_url=image_url,
            primary_email=email,
            emails=[email] if email else [],
        )
        self.users[user_id] = user
        return user

    async def list_users(self, user_ids: Iterable[str]) -> Dict[str, IdentityUser]:
        ids = list(user_ids)
        self.list_calls.append(ids)
        if self.failing_ids.intersection(ids):
            raise IdentityProviderError("Service unavailable", status_code=503)
        return {uid: self.users[uid] for uid in ids if uid in self.users}

    async def get_user(self, user_id: str) -> IdentityUser:
        if user_id in self.failing_ids:
            raise IdentityProviderError("Service unavailable", status_code=503)
        if user_id not in self.users:
            raise IdentityUserNotFoundError("User not found", status_code=404)
        return self.users[user_id]

    async def set_password(self, user_id: str, password: str) -> None:
        if self.password_error:
            raise IdentityProviderError(self.password_error, status_code=422)
        self.passwords[user_id] = password


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def email_service() -> AsyncMock:
    service = AsyncMock(spec=ResendEmailService)
    service.send_contact_message.return_value = True
    service.send_password_reset_notice.return_value = True
    return service


@pytest.fixture
def avatar_storage(tmp_path) -> LocalStorageAdapter:
    return LocalStorageAdapter(base_path=str(tmp_path), base_url="http://test")


@pytest.fixture
def make_profile(db_session: AsyncSession):
    """Factory creating persisted profiles."""

    async def _make(
        user_id: str,
        tier: str = "free",
        is_admin: bool = False,
        is_author: bool = False,
        is_contributor: bool = False,
        is_legacy: bool = False,
        **fields,
    ) -> UserProfile:
        profile = UserProfile(
            user_id=user_id,
            tier=tier,
            is_admin=is_admin,
            is_author=is_author,
            is_contributor=is_contributor,
            is_legacy=is_legacy,
            **fields,
        )
        db_session.add(profile)
        await db_session.commit()
        await db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture
async def reader(make_profile) -> UserProfile:
    return await make_profile("user_reader", first_name="Rita", last_name="Reader", email="rita@example.com")


@pytest.fixture
async def paid_reader(make_profile) -> UserProfile:
    return await make_profile("user_paid", tier="paid")


@pytest.fixture
async def premium_reader(make_profile) -> UserProfile:
    return await make_profile("user_premium", tier="premium")


@pytest.fixture
async def contributor(make_profile) -> UserProfile:
    return await make_profile("user_contributor", is_contributor=True, first_name="Cara")


@pytest.fixture
async def author(make_profile) -> UserProfile:
    return await make_profile("user_author", is_author=True, is_contributor=True, first_name="Alex")


@pytest.fixture
async def admin(make_profile) -> UserProfile:
    return await make_profile("user_admin", is_admin=True, first_name="Ada", email="ada@example.com")


def headers_for(user_id: str) -> dict:
    """Bearer headers carrying a session token for ``user_id``."""
    return {"Authorization": f"Bearer {token_service.create_session_token(user_id)}"}


@pytest.fixture
def make_headers():
    return headers_for


@pytest.fixture
def auth_headers(reader: UserProfile) -> dict:
    return headers_for(reader.user_id)


@pytest.fixture
def admin_headers(admin: UserProfile) -> dict:
    return headers_for(admin.user_id)


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    identity_provider: FakeIdentityProvider,
    email_service: AsyncMock,
    avatar_storage: LocalStorageAdapter,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_avatar_storage] = lambda: avatar_storage

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
