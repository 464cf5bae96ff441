"""
Database CRUD operations.

Provides async functions for the card catalog (sets and cards) and for
per-variant collection rows, plus SqlCollectionStore, which exposes the
collection functions to CollectionSession.
"""

from collections.abc import Collection, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pokevault.models.card import Card, CardPricing, CardSet
from pokevault.models.collection import CollectionRow
from pokevault.models.db import CardDB, CollectionEntryDB, SetDB, utcnow
from pokevault.models.failure import ConcurrentChangeError, VariantNotOwnedError
from pokevault.models.variant import CardCondition, CardVariant

# --- Catalog Operations ---


async def get_set(session: AsyncSession, set_id: str) -> SetDB | None:
    """Get a set by id. Returns None if it is not in the catalog."""
    return await session.get(SetDB, set_id)


async def get_cards_for_set(session: AsyncSession, set_id: str) -> list[CardDB]:
    """All cards of a set, ordered by card id."""
    result = await session.execute(
        select(CardDB).where(CardDB.set_id == set_id).order_by(CardDB.id)
    )
    return list(result.scalars().all())


async def get_cards_by_ids(session: AsyncSession, card_ids: Collection[str]) -> list[CardDB]:
    """Cards for the given ids; unknown ids are skipped."""
    if not card_ids:
        return []
    result = await session.execute(select(CardDB).where(CardDB.id.in_(list(card_ids))))
    return list(result.scalars().all())


async def upsert_set(session: AsyncSession, card_set: CardSet) -> SetDB:
    """
    Insert or update a set.

    If a set with the same id exists, updates it.
    Otherwise creates a new record.
    """
    existing = await get_set(session, card_set.id)

    if existing:
        existing.name = card_set.name
        existing.series = card_set.series
        existing.total_cards = card_set.total_cards
        existing.release_date = card_set.release_date
        await session.flush()
        return existing

    db_set = SetDB(
        id=card_set.id,
        name=card_set.name,
        series=card_set.series,
        total_cards=card_set.total_cards,
        release_date=card_set.release_date,
    )
    session.add(db_set)
    await session.flush()
    return db_set


async def upsert_cards(session: AsyncSession, cards: Sequence[Card]) -> int:
    """
    Insert or update catalog cards.

    Returns the number of cards written.
    """
    existing = {card.id: card for card in await get_cards_by_ids(session, [c.id for c in cards])}

    for card in cards:
        db_card = existing.get(card.id)
        if db_card is None:
            db_card = CardDB(id=card.id)
            session.add(db_card)
        db_card.set_id = card.set_id
        db_card.name = card.name
        db_card.number = card.number
        db_card.rarity = card.rarity
        db_card.types = list(card.types)
        db_card.cardmarket_avg_sell_price = card.pricing.avg_sell_price
        db_card.cardmarket_low_price = card.pricing.low_price
        db_card.cardmarket_trend_price = card.pricing.trend_price
        db_card.cardmarket_reverse_holo_sell = card.pricing.reverse_holo_sell
        db_card.cardmarket_reverse_holo_low = card.pricing.reverse_holo_low
        db_card.cardmarket_reverse_holo_trend = card.pricing.reverse_holo_trend

    await session.flush()
    return len(cards)


def set_to_model(db_set: SetDB) -> CardSet:
    """Convert a database set to a domain model."""
    return CardSet(
        id=db_set.id,
        name=db_set.name,
        series=db_set.series,
        total_cards=db_set.total_cards,
        release_date=db_set.release_date,
    )


def card_to_model(db_card: CardDB) -> Card:
    """Convert a database card to a domain model."""
    return Card(
        id=db_card.id,
        name=db_card.name,
        number=db_card.number,
        rarity=db_card.rarity,
        set_id=db_card.set_id,
        types=tuple(db_card.types or ()),
        pricing=CardPricing(
            avg_sell_price=db_card.cardmarket_avg_sell_price,
            low_price=db_card.cardmarket_low_price,
            trend_price=db_card.cardmarket_trend_price,
            reverse_holo_sell=db_card.cardmarket_reverse_holo_sell,
            reverse_holo_low=db_card.cardmarket_reverse_holo_low,
            reverse_holo_trend=db_card.cardmarket_reverse_holo_trend,
        ),
    )


# --- Collection Operations ---


def entry_to_row(entry: CollectionEntryDB) -> CollectionRow:
    """Convert a database collection entry to a domain row."""
    return CollectionRow(
        user_id=entry.user_id,
        card_id=entry.card_id,
        variant=entry.variant,
        quantity=entry.quantity,
        condition=entry.condition,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


async def get_collection_entries(
    session: AsyncSession,
    user_id: str,
    card_ids: Collection[str] | None = None,
) -> list[CollectionEntryDB]:
    """
    All collection entries of a user.

    When ``card_ids`` is given, only entries for those cards are returned.
    """
    query = select(CollectionEntryDB).where(CollectionEntryDB.user_id == user_id)
    if card_ids is not None:
        if not card_ids:
            return []
        query = query.where(CollectionEntryDB.card_id.in_(list(card_ids)))
    result = await session.execute(query.order_by(CollectionEntryDB.id))
    return list(result.scalars().all())


async def get_entry(
    session: AsyncSession,
    user_id: str,
    card_id: str,
    variant: CardVariant,
    condition: CardCondition | None = None,
) -> CollectionEntryDB | None:
    """
    Find the entry for one (card, variant, condition).

    Without a condition, the most recently updated entry of the variant is
    returned.
    """
    query = select(CollectionEntryDB).where(
        CollectionEntryDB.user_id == user_id,
        CollectionEntryDB.card_id == card_id,
        CollectionEntryDB.variant == variant.value,
    )
    if condition is not None:
        query = query.where(CollectionEntryDB.condition == condition.value)
    query = query.order_by(CollectionEntryDB.updated_at.desc(), CollectionEntryDB.id.desc())
    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()


async def increment_variant(
    session: AsyncSession,
    user_id: str,
    card_id: str,
    variant: CardVariant,
    condition: CardCondition = CardCondition.NEAR_MINT,
) -> CollectionEntryDB:
    """
    Add one copy of a variant.

    Creates the entry with quantity 1 if the user had no copy in this
    condition yet.
    """
    entry = await get_entry(session, user_id, card_id, variant, condition)

    if entry:
        entry.quantity += 1
        entry.updated_at = utcnow()
        await session.flush()
        return entry

    entry = CollectionEntryDB(
        user_id=user_id,
        card_id=card_id,
        variant=variant.value,
        condition=condition.value,
        quantity=1,
    )
    session.add(entry)
    await session.flush()
    return entry


async def decrement_variant(
    session: AsyncSession,
    user_id: str,
    card_id: str,
    variant: CardVariant,
    condition: CardCondition | None = None,
) -> CollectionEntryDB | None:
    """
    Remove one copy of a variant.

    The entry is deleted when its quantity would reach zero.

    Returns:
        The updated entry, or None if it was deleted.

    Raises:
        VariantNotOwnedError: If the user owns no copy of the variant.
    """
    entry = await get_entry(session, user_id, card_id, variant, condition)
    if entry is None:
        raise VariantNotOwnedError(card_id, variant.value)

    if entry.quantity > 1:
        entry.quantity -= 1
        entry.updated_at = utcnow()
        await session.flush()
        return entry

    await session.delete(entry)
    await session.flush()
    return None


async def delete_card_entries(
    session: AsyncSession, user_id: str, card_ids: Collection[str]
) -> int:
    """
    Delete every entry of the user for the given cards.

    Returns the number of deleted records.
    """
    if not card_ids:
        return 0
    result = await session.execute(
        delete(CollectionEntryDB).where(
            CollectionEntryDB.user_id == user_id,
            CollectionEntryDB.card_id.in_(list(card_ids)),
        )
    )
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount)  # type: ignore[attr-defined]


class SqlCollectionStore:
    """CollectionStore backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def fetch_rows(
        self, user_id: str, card_ids: Collection[str] | None = None
    ) -> list[CollectionRow]:
        entries = await get_collection_entries(self.session, user_id, card_ids)
        return [entry_to_row(entry) for entry in entries]

    async def increment(
        self,
        user_id: str,
        card_id: str,
        variant: CardVariant,
        condition: CardCondition,
    ) -> CollectionRow:
        """
        Add one copy through ``increment_variant``.

        Raises:
            ConcurrentChangeError: If another transaction inserted the same
                (user, card, variant, condition) row first.
        """
        try:
            entry = await increment_variant(self.session, user_id, card_id, variant, condition)
        except IntegrityError as e:
            raise ConcurrentChangeError(card_id, variant.value) from e
        return entry_to_row(entry)

    async def decrement(
        self,
        user_id: str,
        card_id: str,
        variant: CardVariant,
        condition: CardCondition | None = None,
    ) -> CollectionRow | None:
        entry = await decrement_variant(self.session, user_id, card_id, variant, condition)
        return entry_to_row(entry) if entry else None

    async def delete_cards(self, user_id: str, card_ids: Collection[str]) -> int:
        return await delete_card_entries(self.session, user_id, card_ids)
