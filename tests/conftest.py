"""
Pytest fixtures for testing.
"""
import json
from typing import AsyncGenerator, Callable, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import jobboard.database
from jobboard.database import Base
# Import ALL models so Base.metadata knows about all tables
from jobboard.models.stored_item import StoredItem

# Now import app (after we can override database)
from jobboard.main import app as fastapi_app
from jobboard.api.auth import get_http_client
from jobboard.schemas.auth import SessionUser, UserType
from jobboard.services.api_client import JobBoardAPI
from jobboard.services.session import SessionStore


# Test database URL (use in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BACKEND_URL = "http://backend.test/api"
BROWSER_ID = "test-browser"

COVER_LETTER = (
    "I have spent six years building backend services in Python and would love "
    "to bring that experience to your team."
)


class FakeBackend:
    """
    Stand-in for the job board REST backend.

    Routes are registered per test with `on()`; every request is recorded.
    Unregistered routes answer 404.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    @staticmethod
    def _path(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/api")

    def on(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        status_code: int = 200,
        content: Optional[bytes] = None,
        headers: Optional[dict] = None,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ) -> None:
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(status_code, json=json, content=content, headers=headers)
        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, self._path(request)))
        if handler is None:
            return httpx.Response(404, json={"success": False, "error": "Not found"})
        return handler(request)

    def sent(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request for request in self.requests
            if request.method == method and self._path(request) == path
        ]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh local storage database for each test.
    """
    # StaticPool keeps one connection so every session sees the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Replace the app's engine and sessionmaker so get_db() uses the test database
    original_engine = jobboard.database.engine
    original_sessionmaker = jobboard.database.AsyncSessionLocal

    jobboard.database.engine = test_engine
    jobboard.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    session = jobboard.database.AsyncSessionLocal()

    try:
        yield session
    finally:
        await session.close()
        await test_engine.dispose()
        jobboard.database.engine = original_engine
        jobboard.database.AsyncSessionLocal = original_sessionmaker


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def http(backend: FakeBackend) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Backend HTTP client wired to the fake backend."""
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(backend),
        base_url=BACKEND_URL,
        headers={"Accept": "application/json"},
    ) as client:
        yield client


@pytest.fixture
def session_store(db: AsyncSession) -> SessionStore:
    """The test browser's session, as the portal sees it."""
    return SessionStore(db, BROWSER_ID)


@pytest.fixture
def api(http: httpx.AsyncClient, session_store: SessionStore) -> JobBoardAPI:
    return JobBoardAPI(http, session_store)


@pytest_asyncio.fixture
async def async_client(db: AsyncSession, http: httpx.AsyncClient) -> AsyncGenerator[AsyncClient, None]:
    """
    Portal client for the test browser.

    Redirects are not followed so tests can check where a page sends the user.
    """
    fastapi_app.dependency_overrides[get_http_client] = lambda: http
    transport = ASGITransport(app=fastapi_app)

    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=False,
        cookies={"portal_id": BROWSER_ID},
    ) as client:
        yield client

    fastapi_app.dependency_overrides.clear()


# ============================================================
# Logged-in users
# ============================================================

JOBSEEKER = SessionUser(id=7, email="seeker@example.com", name="Sam Seeker", type=UserType.JOBSEEKER, phone="555-0100")
EMPLOYER = SessionUser(id=3, email="hr@acme.example", name="Acme HR", type=UserType.EMPLOYER)
ADMIN = SessionUser(id=1, email="admin@jobboard.example", name="Admin", type=UserType.ADMIN)


@pytest_asyncio.fixture
async def jobseeker(session_store: SessionStore) -> SessionUser:
    await session_store.login("seeker-token", JOBSEEKER)
    return JOBSEEKER


@pytest_asyncio.fixture
async def employer(session_store: SessionStore) -> SessionUser:
    await session_store.login("employer-token", EMPLOYER)
    return EMPLOYER


@pytest_asyncio.fixture
async def admin(session_store: SessionStore) -> SessionUser:
    await session_store.login("admin-token", ADMIN)
    return ADMIN


# ============================================================
# Backend data
# ============================================================

def make_application(application_id, job_title="Backend Engineer", status="pending", **fields) -> dict:
    data = {
        "id": application_id,
        "job_id": 100,
        "job_title": job_title,
        "company_name": "Acme",
        "location": "Remote",
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-0199",
        "cover_letter": COVER_LETTER,
        "experience": "6 years",
        "cv_file_path": "uploads/cvs/cv-123.pdf",
        "status": status,
        "applied_at": "2024-03-05T14:30:00Z",
    }
    data.update(fields)
    return data


def make_job(job_id, title="Backend Engineer", status="pending", **fields) -> dict:
    data = {
        "id": job_id,
        "title": title,
        "description": "Build and run the services behind the job board.",
        "location": "Remote",
        "category_name": "Engineering",
        "job_type": "full-time",
        "company_name": "Acme",
        "employer_id": 3,
        "status": status,
        "created_at": "2024-03-01T09:00:00Z",
    }
    data.update(fields)
    return data


@pytest.fixture
def sample_pdf() -> bytes:
    return b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"
