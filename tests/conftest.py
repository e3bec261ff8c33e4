from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from commander_league.api.dependencies import get_catalog
from commander_league.db.database import get_session
from commander_league.main import app
from commander_league.models.db import Base
from commander_league.models.pricing import CatalogCard


class FakeCatalog:
    """In-memory price lookup. Unknown names are reported as not found."""

    rate_limit_delay = 0.0

    def __init__(self, prices: dict[str, str] | None = None) -> None:
        self.prices = dict(prices or {})
        self.calls: list[str] = []

    async def fetch_card_by_name(
        self, card_name: str, prefer_foil: bool = False
    ) -> CatalogCard | None:
        self.calls.append(card_name)
        price = self.prices.get(card_name)
        if price is None:
            return None

        key = "eur_foil" if prefer_foil else "eur"
        return {
            "name": card_name,
            "set": "cmm",
            "set_name": "Commander Masters",
            "prices": {key: price},
        }


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_catalog():
    """Factory for catalogs with custom prices."""
    return FakeCatalog


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(
        {
            "Atraxa, Praetors' Voice": "12.50",
            "Sol Ring": "1.50",
            "Arcane Signet": "0.75",
            "Command Tower": "0.25",
        }
    )


@pytest.fixture
async def client(session_factory, catalog: FakeCatalog):
    """Provide an async test client with overridden database session and catalog."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_catalog] = lambda: catalog

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_decklist() -> str:
    """Moxfield-style Commander export."""
    return """// Commander
1 Atraxa, Praetors' Voice

// Deck
1 Sol Ring
1x Arcane Signet
1 Command Tower"""


@pytest.fixture
def sample_total() -> Decimal:
    return Decimal("15.00")
