from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokevault.models.card import Card, CardPricing, CardSet
from pokevault.models.collection import CollectionCardSummary, CollectionRow
from pokevault.models.db import Base
from pokevault.models.variant import CardVariant

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


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
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def make_row() -> Callable[..., CollectionRow]:
    """Factory for collection rows; ``minutes`` offsets both timestamps."""

    def _make(
        card_id: str = "sv1-1",
        variant: str = "normal",
        quantity: int = 1,
        condition: str = "near_mint",
        minutes: int = 0,
        updated_minutes: int | None = None,
        user_id: str = "user-1",
    ) -> CollectionRow:
        created = BASE_TIME + timedelta(minutes=minutes)
        updated = BASE_TIME + timedelta(
            minutes=minutes if updated_minutes is None else updated_minutes
        )
        return CollectionRow(
            user_id=user_id,
            card_id=card_id,
            variant=variant,
            quantity=quantity,
            condition=condition,
            created_at=created,
            updated_at=updated,
        )

    return _make


@pytest.fixture
def make_summary() -> Callable[..., CollectionCardSummary]:
    """Factory for summaries from variant keyword counts, e.g. normal=2, holo=1."""

    def _make(card_id: str = "sv1-1", user_id: str = "user-1", **counts: int):
        summary = CollectionCardSummary(
            user_id=user_id,
            card_id=card_id,
            date_added=BASE_TIME,
            last_updated=BASE_TIME,
        )
        for name, count in counts.items():
            summary.counts[CardVariant(name)] = count
        return summary

    return _make


@pytest.fixture
def make_card() -> Callable[..., Card]:
    """Factory for catalog cards."""

    def _make(
        card_id: str = "sv1-1",
        name: str = "Sprigatito",
        number: str = "1",
        rarity: str = "Common",
        set_id: str = "sv1",
        types: tuple[str, ...] = ("Grass",),
        **prices: float | None,
    ) -> Card:
        return Card(
            id=card_id,
            name=name,
            number=number,
            rarity=rarity,
            set_id=set_id,
            types=types,
            pricing=CardPricing(**prices),
        )

    return _make


@pytest.fixture
def scarlet_violet() -> CardSet:
    return CardSet(id="sv1", name="Scarlet & Violet", series="Scarlet & Violet", total_cards=198)
