from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings

# Override settings for tests
settings.jwt_secret_key = "test-secret-key-that-is-at-least-32-bytes-long"
settings.app_env = "development"
settings.database_url = "sqlite+aiosqlite://"
settings.gemini_api_key = "test-gemini-key"

from app.core.rate_limit import limiter  # noqa: E402
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.postgres import engine as app_engine  # noqa: E402
from app.db.postgres import get_db  # noqa: E402
from app.llm import get_llm_client  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.pending_records import PendingRecords, get_pending_records  # noqa: E402
from app.storage.object_store import LocalObjectStore, get_object_store  # noqa: E402

limiter.enabled = False

# In-memory SQLite shared by every connection of the test engine
TEST_DB_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(
    TEST_DB_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
test_session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


class FakeGenerator:
    """Stands in for the LLM client; answers by prompt prefix."""

    def __init__(self, summary: str = "## Overview\nThe lease runs **12 months**.", bias: str = ""):
        self.summary = summary
        self.bias = bias
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if prompt.startswith("Summarize this legal document:"):
            return self.summary
        return self.bias


GENDER_BIAS_REPORT = (
    "Type: Gender Bias\n"
    'Text: "the chairman shall decide"\n'
    "Confidence: 82%\n"
    "Alternative: the chairperson shall decide"
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Connections are bound to the per-test event loop
    await test_engine.dispose()
    await app_engine.dispose()


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_generator() -> FakeGenerator:
    generator = FakeGenerator(bias=GENDER_BIAS_REPORT)
    app.dependency_overrides[get_llm_client] = lambda: generator
    yield generator
    app.dependency_overrides.pop(get_llm_client, None)


@pytest.fixture
def pending() -> PendingRecords:
    records = PendingRecords(max_size=10)
    app.dependency_overrides[get_pending_records] = lambda: records
    yield records
    app.dependency_overrides.pop(get_pending_records, None)


@pytest.fixture
def media_store(tmp_path) -> LocalObjectStore:
    store = LocalObjectStore(tmp_path, base_url="/media")
    app.dependency_overrides[get_object_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_object_store, None)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def user(db: AsyncSession) -> User:
    """Create a test user."""
    user = User(
        email="test@example.com",
        password_hash=hash_password("testpassword123"),
        full_name="Test Attorney",
        role="Attorney",
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def auth_headers(user: User) -> dict[str, str]:
    """Get auth headers with a valid access token."""
    token = create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}
