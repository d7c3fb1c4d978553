"""Shared pytest fixtures for all test suites."""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from hoteldocs.app.db.inmemory import InMemoryDocumentStore
from hoteldocs.app.db.models import Base
from hoteldocs.app.embeddings.providers import HashingEmbedder
from hoteldocs.app.embeddings.service import EmbeddingService
from hoteldocs.app.models.docs import Document
from tests.factories import SeedFn, seed_document


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip real-model tests unless RUN_MODEL_TESTS=1."""
    if os.getenv("RUN_MODEL_TESTS") == "1":
        return
    skip_model = pytest.mark.skip(reason="set RUN_MODEL_TESTS=1 to run real-model tests")
    for item in items:
        if item.get_closest_marker("model") is not None:
            item.add_marker(skip_model)


@pytest.fixture
def embeddings() -> EmbeddingService:
    """Embedding service over the deterministic hashing provider."""
    return EmbeddingService(HashingEmbedder())


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def seed(store: InMemoryDocumentStore, embeddings: EmbeddingService) -> SeedFn:
    """Seed documents into the in-memory store."""

    async def _seed(**kwargs: object) -> Document:
        return await seed_document(store, embeddings, **kwargs)  # type: ignore[arg-type]

    return _seed


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Async SQLite engine on a temp file with the schema created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hoteldocs.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string
    with the vector extension available. Tests using this fixture should be
    marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.exec_driver_sql("CREATE EXTENSION IF NOT EXISTS vector")
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def postgres_session(postgres_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Async session for PostgreSQL integration tests."""
    async with AsyncSession(postgres_engine, expire_on_commit=False) as session:
        yield session
