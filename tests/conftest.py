"""Test config and shared fixtures."""
import pytest
from typing import AsyncGenerator, List
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import apps.models  # noqa: F401
from apps.catalog.context import CatalogContext
from apps.catalog.models import Part, Widget
from apps.catalog.repository import PartRepository, WidgetRepository
from generic_repository.repository import UnitOfWork


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create engine with the catalog tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def context_factory(engine: AsyncEngine) -> sessionmaker:
    """Factory for fresh catalog contexts (used to check what was really persisted)."""
    return sessionmaker(engine, class_=CatalogContext, expire_on_commit=False)


@pytest.fixture
async def context(context_factory) -> AsyncGenerator[CatalogContext, None]:
    """Data context under test."""
    async with context_factory() as context:
        yield context


@pytest.fixture
def widgets(context: CatalogContext) -> WidgetRepository:
    return WidgetRepository(context)


@pytest.fixture
def parts(context: CatalogContext) -> PartRepository:
    return PartRepository(context)


@pytest.fixture
def uow(context: CatalogContext) -> UnitOfWork:
    return UnitOfWork(context)


@pytest.fixture
async def sample_widgets(context_factory) -> List[Widget]:
    """Seed alpha (5.0, two parts), beta (15.0) and inactive gamma (25.0) through a separate context."""
    async with context_factory() as seed:
        rows = [
            Widget(name="alpha", price=5.0),
            Widget(name="beta", price=15.0),
            Widget(name="gamma", price=25.0, active=False),
        ]
        seed.add_all(rows)
        await seed.commit()

        seed.add_all([
            Part(sku="A-1", quantity=2, widget_id=rows[0].id),
            Part(sku="A-2", quantity=1, widget_id=rows[0].id),
        ])
        await seed.commit()
    return rows
