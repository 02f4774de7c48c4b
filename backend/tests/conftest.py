"""Pytest fixtures for the posting backend."""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from api.deps import get_db
from app import create_app
from core.config import settings
from db.session import build_engine
from services import RateLimiter, set_rate_limiter
from services.rate_limiter import get_redis_client


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Migrate a throwaway SQLite file once and hand out its aiosqlite URL."""
    db_path = tmp_path_factory.mktemp("sqlite") / "posting-test.db"
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))

    original_database_url = settings.database_url
    settings.database_url = f"sqlite:///{db_path}"
    try:
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def session_maker(test_database_url: str) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = build_engine(test_database_url)
    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield maker
    await engine.dispose()


@pytest.fixture()
def app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture()
async def db_session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session


@pytest.fixture(autouse=True)
def _rate_limiting_disabled() -> Iterator[None]:
    # A zero limit never reaches Redis; tests that need limiting set an override.
    set_rate_limiter(RateLimiter(get_redis_client(), limit=0, window_seconds=0))
    yield
    set_rate_limiter(None)
