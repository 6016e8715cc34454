"""Pytest configuration and fixtures for candidate onboarding tests.

Service tests run the FastAPI app against an in-memory SQLite database;
controller tests run against FakeProfileBackend, which records every call.
"""

import asyncio
import os
from typing import AsyncGenerator

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("DEBUG", "false")
os.environ["CACHE_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from candidate_onboarding.auth.jwt import Principal, create_access_token
from candidate_onboarding.database import Base, get_db
from candidate_onboarding.main import app
from candidate_onboarding.models.candidate import Candidate
from candidate_onboarding.models.user import OnboardingStatus, User
from candidate_onboarding.services.documents import DocumentStore, get_document_store
from candidate_onboarding.services.profile_backend import (
    CreateResult,
    ProfileBackendError,
    ProfileNotFound,
)

TEST_AUTH_ID = "auth|jane"
TEST_EMAIL = "jane@example.com"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding rows directly; commit to make them visible to the app."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, tmp_path) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database and storage dependencies."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_store] = lambda: DocumentStore(tmp_path / "documents")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Auth Fixtures ────────────────────────────────────────────────

@pytest.fixture
def test_token() -> str:
    return create_access_token(TEST_AUTH_ID, TEST_EMAIL, name="Jane Doe")


@pytest.fixture
def auth_headers(test_token: str) -> dict:
    """Create authorization headers with test token."""
    return {"Authorization": f"Bearer {test_token}"}


@pytest.fixture
def other_headers() -> dict:
    token = create_access_token("auth|mallory", "mallory@example.com", name="Mallory")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def principal() -> Principal:
    return Principal(auth_user_id=TEST_AUTH_ID, email=TEST_EMAIL, name="Jane Doe")


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(
        auth_user_id=TEST_AUTH_ID,
        email=TEST_EMAIL,
        name="Jane Doe",
        onboarding_status=OnboardingStatus.PENDING,
        onboarding_step=1,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_candidate(db_session: AsyncSession, test_user: User) -> Candidate:
    candidate = Candidate(user_id=test_user.id, full_name="Jane Doe", email=TEST_EMAIL)
    db_session.add(candidate)
    await db_session.commit()
    await db_session.refresh(candidate)
    return candidate


# ── Fake Profile Backend ─────────────────────────────────────────

class FakeProfileBackend:
    """In-memory ProfileBackend.

    Add a method name to `fail` to make that call error out. Set `hold`
    to an asyncio.Event to block update_account_record until it is set.
    """

    def __init__(self):
        self.profile: dict | None = None
        self.account: dict = {
            "id": "user-1",
            "auth_user_id": TEST_AUTH_ID,
            "email": TEST_EMAIL,
            "onboarding_status": "pending",
            "onboarding_step": 1,
            "onboarding_metadata": None,
        }
        self.documents: dict[str, dict] = {}
        self.calls: list[tuple[str, object]] = []
        self.fail: set[str] = set()
        self.hold: asyncio.Event | None = None

    def calls_to(self, name: str) -> list:
        return [payload for method, payload in self.calls if method == name]

    def _maybe_fail(self, name: str, message: str) -> None:
        if name in self.fail:
            raise ProfileBackendError(message, status_code=500)

    async def fetch_own_profile(self) -> dict:
        self.calls.append(("fetch_own_profile", None))
        self._maybe_fail("fetch_own_profile", "Service unavailable")
        if self.profile is None:
            raise ProfileNotFound("Candidate not found", status_code=404)
        return dict(self.profile)

    async def create_account_and_profile(self, seed: dict) -> CreateResult:
        self.calls.append(("create_account_and_profile", seed))
        if "create_account_and_profile" in self.fail:
            return CreateResult(success=False, error="Failed to create profile, please retry")
        self.profile = {
            "id": "cand-1",
            "user_id": self.account["id"],
            "full_name": seed.get("name") or seed["email"].split("@")[0],
            "email": seed["email"],
        }
        return CreateResult(success=True, profile=dict(self.profile), account=dict(self.account))

    async def fetch_account_record(self) -> dict:
        self.calls.append(("fetch_account_record", None))
        self._maybe_fail("fetch_account_record", "Service unavailable")
        return dict(self.account)

    async def update_profile(self, candidate_id: str, fields: dict) -> dict | None:
        self.calls.append(("update_profile", (candidate_id, fields)))
        self._maybe_fail("update_profile", "Profile update failed")
        self.profile = {**(self.profile or {}), **fields}
        return dict(self.profile)

    async def update_account_record(self, patch: dict) -> dict:
        self.calls.append(("update_account_record", patch))
        if self.hold is not None:
            await self.hold.wait()
        self._maybe_fail("update_account_record", "Account update failed")
        self.account.update(patch)
        return dict(self.account)

    async def upload_document(self, file, metadata: dict) -> dict:
        self.calls.append(("upload_document", (file.filename, metadata)))
        self._maybe_fail("upload_document", "Upload failed")
        document_id = f"doc-{len(self.documents) + 1}"
        self.documents[document_id] = {"id": document_id, "filename": file.filename}
        return dict(self.documents[document_id])

    async def delete_document(self, document_id: str) -> None:
        self.calls.append(("delete_document", document_id))
        self._maybe_fail("delete_document", "Delete failed")
        self.documents.pop(document_id, None)


@pytest.fixture
def backend() -> FakeProfileBackend:
    return FakeProfileBackend()


@pytest.fixture
def navigations() -> list:
    return []


@pytest.fixture
def navigate(navigations: list):
    return navigations.append


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: Service endpoint tests")
    config.addinivalue_line("markers", "integration: Client against the running app")
