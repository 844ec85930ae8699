import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from fakes import FakeLanguageModel, FakeYouTube, build_test_pipeline
from main import app
from models.user import User
from routers import rate_limit
from routers.generate import get_pipeline
from services.crypto import hash_password
from services.generation import ScriptGenerationPipeline


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "script_generator.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def integration_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_pipeline, None)


@pytest.fixture
def use_pipeline():
    """Route /generate through a pipeline built on fakes."""

    def _install(llm: FakeLanguageModel, youtube: Optional[FakeYouTube] = None) -> ScriptGenerationPipeline:
        pipeline = build_test_pipeline(llm, youtube)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return pipeline

    yield _install
    app.dependency_overrides.pop(get_pipeline, None)


@pytest_asyncio.fixture
async def create_user(session_maker):
    async def _create(
        email: str = "creator@example.com",
        password: str = "correct-horse",
        generations_used: int = 0,
        **fields: Any,
    ) -> User:
        name = fields.pop("name", "Creator")
        async with session_maker() as session:
            user = User(
                email=email,
                name=name,
                password_hash=hash_password(password),
                generations_used=generations_used,
                **fields,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _create
