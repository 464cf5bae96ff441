"""
Collection API endpoints.

Per-variant collection changes and the set page view (completion, value,
duplicates, need/have filtering and sorting).
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from pokevault.config import settings
from pokevault.db import (
    SqlCollectionStore,
    card_to_model,
    get_cards_by_ids,
    get_cards_for_set,
    get_set,
    set_to_model,
)
from pokevault.db.database import get_session
from pokevault.models.card import Card, CardSet
from pokevault.models.collection import CollectionCardSummary
from pokevault.models.failure import CardNotFoundError, SetNotFoundError
from pokevault.models.variant import CardCondition, CardVariant
from pokevault.services.collection_state import CollectionSession
from pokevault.services.completion import CollectionMode
from pokevault.services.duplicates import duplicate_count
from pokevault.services.set_view import (
    CardView,
    FilterMode,
    SetViewQuery,
    SortDirection,
    SortKey,
    SortState,
    build_set_view,
)
from pokevault.services.valuation import calculate_card_value

router = APIRouter(prefix="/collection", tags=["collection"])


class CardSummaryModel(BaseModel):
    """What a user owns of one card."""

    card_id: str
    variants: dict[str, int] = Field(
        default_factory=dict,
        description="Copies owned per variant",
        examples=[{"normal": 2, "holo": 0, "reverse_holo": 1}],
    )
    total_quantity: int = 0
    date_added: datetime | None = None
    last_updated: datetime | None = None


class CollectionResponse(BaseModel):
    """Response model for a whole collection."""

    user_id: str
    cards: list[CardSummaryModel] = Field(default_factory=list)
    total_cards: int = 0
    unique_cards: int = 0
    duplicate_cards: int = 0
    total_value: float = 0.0


class CardCollectionResponse(BaseModel):
    """Response model for a single card after a change."""

    user_id: str
    card_id: str
    in_collection: bool
    summary: CardSummaryModel | None = None
    value: float = 0.0


class SetCardModel(BaseModel):
    """One card row of a set page."""

    id: str
    name: str
    number: str
    rarity: str
    price: float | None = None
    available_variants: list[str] = Field(default_factory=list)
    variants: dict[str, int] = Field(default_factory=dict)
    total_quantity: int = 0
    is_collected: bool = False
    is_mastered: bool = False
    has_duplicates: bool = False
    duplicate_count: int = 0
    value: float = 0.0


class SetViewResponse(BaseModel):
    """Response model for a set page."""

    user_id: str
    set_id: str
    set_name: str
    mode: CollectionMode
    filter: FilterMode
    sort: SortKey
    order: SortDirection
    cards: list[SetCardModel] = Field(default_factory=list)
    total_cards: int = 0
    collected_count: int = 0
    need_count: int = 0
    have_count: int = 0
    duplicates_count: int = 0
    set_value: float = 0.0
    user_value: float = 0.0
    need_card_ids: list[str] = Field(default_factory=list)


class ResetResponse(BaseModel):
    """Response model for a set reset."""

    user_id: str
    set_id: str
    rows_deleted: int
    message: str = ""


def _summary_model(summary: CollectionCardSummary) -> CardSummaryModel:
    return CardSummaryModel(
        card_id=summary.card_id,
        variants=summary.variant_counts(),
        total_quantity=summary.total_quantity,
        date_added=summary.date_added,
        last_updated=summary.last_updated,
    )


def _set_card_model(view: CardView) -> SetCardModel:
    summary = view.summary
    return SetCardModel(
        id=view.card.id,
        name=view.card.name,
        number=view.card.number,
        rarity=view.card.rarity,
        price=view.card.pricing.avg_sell_price,
        available_variants=[variant.value for variant in view.available_variants],
        variants=summary.variant_counts() if summary else {},
        total_quantity=summary.total_quantity if summary else 0,
        is_collected=view.completion.is_collected,
        is_mastered=view.completion.is_mastered,
        has_duplicates=view.has_duplicates,
        duplicate_count=view.duplicate_count,
        value=round(view.value, 2),
    )


async def _load_set(session: AsyncSession, set_id: str) -> tuple[CardSet, list[Card]]:
    db_set = await get_set(session, set_id)
    if db_set is None:
        raise SetNotFoundError(set_id)
    cards = [card_to_model(c) for c in await get_cards_for_set(session, set_id)]
    return set_to_model(db_set), cards


async def _load_card(session: AsyncSession, card_id: str) -> Card:
    found = await get_cards_by_ids(session, [card_id])
    if not found:
        raise CardNotFoundError(card_id)
    return card_to_model(found[0])


async def _card_session(
    session: AsyncSession, user_id: str, card_id: str
) -> CollectionSession:
    collection = CollectionSession(SqlCollectionStore(session), user_id)
    await collection.refresh([card_id])
    return collection


def _card_response(
    user_id: str, card: Card, summary: CollectionCardSummary | None
) -> CardCollectionResponse:
    return CardCollectionResponse(
        user_id=user_id,
        card_id=card.id,
        in_collection=summary is not None,
        summary=_summary_model(summary) if summary else None,
        value=round(calculate_card_value(card.pricing, summary), 2),
    )


@router.get("/{user_id}", response_model=CollectionResponse)
async def get_user_collection(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    """
    Get a user's whole collection.

    Returns one summary per owned card, plus totals. Cards missing from the
    catalog still count towards totals but contribute no value.
    """
    collection = CollectionSession(SqlCollectionStore(session), user_id)
    await collection.refresh()
    summaries = collection.summaries

    cards = [card_to_model(c) for c in await get_cards_by_ids(session, list(summaries))]
    value = sum(calculate_card_value(card.pricing, summaries.get(card.id)) for card in cards)

    ordered = sorted(summaries.values(), key=lambda s: s.card_id)
    return CollectionResponse(
        user_id=user_id,
        cards=[_summary_model(summary) for summary in ordered],
        total_cards=sum(summary.total_quantity for summary in ordered),
        unique_cards=len(ordered),
        duplicate_cards=sum(duplicate_count(summary) for summary in ordered),
        total_value=round(value, 2),
    )


@router.get("/{user_id}/sets/{set_id}", response_model=SetViewResponse)
async def get_set_view(
    user_id: str,
    set_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    search: Annotated[str, Query(max_length=100)] = "",
    filter_mode: Annotated[FilterMode, Query(alias="filter")] = FilterMode.ALL,
    sort: SortKey = SortKey.NUMBER,
    order: SortDirection = SortDirection.ASC,
    mode: CollectionMode = CollectionMode.REGULAR,
) -> SetViewResponse:
    """
    Get a set page for a user.

    Search matches the card name (any case) or collector number. Counts
    (need, have, duplicates) always cover the whole set.
    """
    card_set, cards = await _load_set(session, set_id)

    collection = CollectionSession(SqlCollectionStore(session), user_id)
    await collection.refresh([card.id for card in cards])

    query = SetViewQuery(
        search=search.strip(),
        filter_mode=filter_mode,
        sort=SortState(key=sort, direction=order),
        mode=mode,
    )
    view = build_set_view(cards, collection.summaries, query, card_set)

    return SetViewResponse(
        user_id=user_id,
        set_id=card_set.id,
        set_name=card_set.name,
        mode=mode,
        filter=filter_mode,
        sort=sort,
        order=order,
        cards=[_set_card_model(card_view) for card_view in view.cards],
        total_cards=view.total_cards,
        collected_count=view.collected_count,
        need_count=view.need_count,
        have_count=view.have_count,
        duplicates_count=view.duplicates_count,
        set_value=round(view.set_value, 2),
        user_value=round(view.user_value, 2),
        need_card_ids=view.need_card_ids,
    )


@router.post(
    "/{user_id}/cards/{card_id}/variants/{variant}",
    response_model=CardCollectionResponse,
)
async def add_card_variant(
    user_id: str,
    card_id: str,
    variant: CardVariant,
    session: Annotated[AsyncSession, Depends(get_session)],
    condition: CardCondition | None = None,
) -> CardCollectionResponse:
    """Add one copy of a card variant (default condition from settings)."""
    card = await _load_card(session, card_id)
    collection = await _card_session(session, user_id, card_id)
    summary = await collection.add_variant(
        card_id, variant, condition or CardCondition(settings.default_condition)
    )
    return _card_response(user_id, card, summary)


@router.delete(
    "/{user_id}/cards/{card_id}/variants/{variant}",
    response_model=CardCollectionResponse,
)
async def remove_card_variant(
    user_id: str,
    card_id: str,
    variant: CardVariant,
    session: Annotated[AsyncSession, Depends(get_session)],
    condition: CardCondition | None = None,
) -> CardCollectionResponse:
    """
    Remove one copy of a card variant.

    Without a condition, the most recently changed copy of the variant is
    removed. Returns 404 if the variant is not owned.
    """
    card = await _load_card(session, card_id)
    collection = await _card_session(session, user_id, card_id)
    summary = await collection.remove_variant(card_id, variant, condition)
    return _card_response(user_id, card, summary)


@router.post("/{user_id}/cards/{card_id}/toggle", response_model=CardCollectionResponse)
async def toggle_card(
    user_id: str,
    card_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardCollectionResponse:
    """
    Collect or uncollect a card in one step.

    An uncollected card gets one normal copy. A collected card loses every
    copy of every variant.
    """
    card = await _load_card(session, card_id)
    collection = await _card_session(session, user_id, card_id)
    summary = await collection.toggle_card(card_id)
    return _card_response(user_id, card, summary)


@router.delete("/{user_id}/sets/{set_id}", response_model=ResetResponse)
async def reset_set(
    user_id: str,
    set_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ResetResponse:
    """
    Remove every card of a set from the user's collection.

    This is an explicit, irreversible operation covering all variants and
    conditions of every card in the set.
    """
    card_set, cards = await _load_set(session, set_id)

    collection = CollectionSession(SqlCollectionStore(session), user_id)
    deleted = await collection.reset_cards(card.id for card in cards)

    if deleted:
        message = f"All cards from {card_set.name} have been removed from your collection."
    else:
        message = f"No cards from {card_set.name} were in your collection."

    return ResetResponse(user_id=user_id, set_id=set_id, rows_deleted=deleted, message=message)
