import os

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-do-not-use-in-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REQUIRE_SUBSCRIPTION"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from study_scheduler import models  # noqa: F401
from study_scheduler.core.config import get_settings
from study_scheduler.core.security import create_access_token, hash_password
from study_scheduler.db.base import Base
from study_scheduler.db.session import get_db
from study_scheduler.main import app
from study_scheduler.models.question import Question
from study_scheduler.models.technology import Subtopic, Technology
from study_scheduler.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Secret123"


# --- In-memory test database ---
@pytest.fixture
async def test_engine():
    """Create test database engine with in-memory SQLite"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_session(session_factory):
    """Session for arranging and inspecting data outside of requests"""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """API client; every request gets its own session on the test database"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def require_subscription(monkeypatch, settings):
    monkeypatch.setattr(settings, "REQUIRE_SUBSCRIPTION", True)


# --- Users ---
async def _make_user(session: AsyncSession, email: str, role: str = "user") -> User:
    user = User(
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        full_name=email.split("@")[0].title(),
        role=role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def user(test_session):
    return await _make_user(test_session, "learner@example.com")


@pytest.fixture
async def other_user(test_session):
    return await _make_user(test_session, "other@example.com")


@pytest.fixture
async def admin_user(test_session):
    return await _make_user(test_session, "admin@example.com", role="admin")


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def other_headers(other_user):
    return auth_headers(other_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


# --- Catalog ---
@pytest.fixture
async def catalog(test_session):
    """Two technologies: A (rank 1, one 3h subtopic) and B (rank 2, one 1h subtopic)"""
    tech_a = Technology(name="Alpha", description="First", complexity_rank=1)
    tech_b = Technology(name="Beta", description="Second", complexity_rank=2)
    test_session.add_all([tech_a, tech_b])
    await test_session.flush()

    sub_a = Subtopic(
        technology_id=tech_a.id,
        name="Alpha Basics",
        hours_required=Decimal("3.00"),
        difficulty_level="beginner",
        order_index=1,
    )
    sub_b = Subtopic(
        technology_id=tech_b.id,
        name="Beta Basics",
        hours_required=Decimal("1.00"),
        difficulty_level="intermediate",
        order_index=1,
    )
    test_session.add_all([sub_a, sub_b])
    await test_session.commit()
    return {"a": tech_a, "b": tech_b, "sub_a": sub_a, "sub_b": sub_b}


@pytest.fixture
async def question(test_session, catalog):
    q = Question(
        subtopic_id=catalog["sub_a"].id,
        content="Which tag starts a paragraph?",
        options=["<p>", "<div>", "<span>"],
        correct_answer="<p>",
        explanation="<p> marks a paragraph.",
    )
    test_session.add(q)
    await test_session.commit()
    return q


@pytest.fixture
def config_payload(catalog):
    """Monday 2h, Wednesday 1h starting Monday 2024-01-01"""
    return {
        "start_date": "2024-01-01",
        "study_days": [
            {"day": "monday", "hours": 2},
            {"day": "wednesday", "hours": 1},
        ],
        "selected_technologies": [str(catalog["b"].id), str(catalog["a"].id)],
    }


@pytest.fixture
def password():
    return TEST_PASSWORD
