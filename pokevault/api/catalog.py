"""
Catalog API endpoints.

Load sets and cards into the catalog and read them back with the variants
each card can be collected in.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from pokevault.db import (
    card_to_model,
    get_cards_for_set,
    get_set,
    set_to_model,
    upsert_cards,
    upsert_set,
)
from pokevault.db.database import get_session
from pokevault.models.card import Card, CardPricing, CardSet
from pokevault.models.failure import SetNotFoundError
from pokevault.models.variant import VARIANTS
from pokevault.services.variant_rules import default_available_variants

router = APIRouter(prefix="/catalog", tags=["catalog"])


class PricingModel(BaseModel):
    """Cardmarket prices (EUR); omitted fields are unpriced."""

    avg_sell_price: float | None = Field(default=None, ge=0)
    low_price: float | None = Field(default=None, ge=0)
    trend_price: float | None = Field(default=None, ge=0)
    reverse_holo_sell: float | None = Field(default=None, ge=0)
    reverse_holo_low: float | None = Field(default=None, ge=0)
    reverse_holo_trend: float | None = Field(default=None, ge=0)


class CardModel(BaseModel):
    """A card in a catalog request or response."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    rarity: str = ""
    types: list[str] = Field(default_factory=list)
    pricing: PricingModel = Field(default_factory=PricingModel)


class SetUpsertRequest(BaseModel):
    """Request model for loading a set and its cards."""

    name: str = Field(..., min_length=1, examples=["Prismatic Evolutions"])
    series: str = Field(default="", examples=["Scarlet & Violet"])
    total_cards: int = Field(default=0, ge=0)
    release_date: date | None = None
    cards: list[CardModel] = Field(default_factory=list)


class CatalogCardResponse(CardModel):
    """A catalog card with the variants it exists in."""

    available_variants: list[str] = Field(default_factory=list)


class SetResponse(BaseModel):
    """Response model for a set."""

    id: str
    name: str
    series: str
    total_cards: int
    release_date: date | None = None
    cards: list[CatalogCardResponse] = Field(default_factory=list)


def _card_from_request(set_id: str, card: CardModel) -> Card:
    return Card(
        id=card.id,
        name=card.name,
        number=card.number,
        rarity=card.rarity,
        set_id=set_id,
        types=tuple(card.types),
        pricing=CardPricing(**card.pricing.model_dump()),
    )


def _ordered_variants(card: Card, card_set: CardSet) -> list[str]:
    available = default_available_variants(card, card_set)
    return [variant.value for variant in VARIANTS if variant in available]


def _set_response(card_set: CardSet, cards: list[Card]) -> SetResponse:
    return SetResponse(
        id=card_set.id,
        name=card_set.name,
        series=card_set.series,
        total_cards=card_set.total_cards,
        release_date=card_set.release_date,
        cards=[
            CatalogCardResponse(
                id=card.id,
                name=card.name,
                number=card.number,
                rarity=card.rarity,
                types=list(card.types),
                pricing=PricingModel(
                    avg_sell_price=card.pricing.avg_sell_price,
                    low_price=card.pricing.low_price,
                    trend_price=card.pricing.trend_price,
                    reverse_holo_sell=card.pricing.reverse_holo_sell,
                    reverse_holo_low=card.pricing.reverse_holo_low,
                    reverse_holo_trend=card.pricing.reverse_holo_trend,
                ),
                available_variants=_ordered_variants(card, card_set),
            )
            for card in cards
        ],
    )


@router.put("/sets/{set_id}", response_model=SetResponse)
async def put_set(
    set_id: str,
    request: SetUpsertRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SetResponse:
    """
    Create or update a set and its cards.

    Cards already in the catalog are updated in place; cards not listed
    are left untouched.
    """
    card_ids = [card.id for card in request.cards]
    if len(card_ids) != len(set(card_ids)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Card ids must be unique within a set",
        )

    card_set = CardSet(
        id=set_id,
        name=request.name,
        series=request.series,
        total_cards=request.total_cards or len(request.cards),
        release_date=request.release_date,
    )
    await upsert_set(session, card_set)
    await upsert_cards(session, [_card_from_request(set_id, card) for card in request.cards])

    cards = [card_to_model(c) for c in await get_cards_for_set(session, set_id)]
    return _set_response(card_set, cards)


@router.get("/sets/{set_id}", response_model=SetResponse)
async def read_set(
    set_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SetResponse:
    """Get a set with every card and its collectable variants."""
    db_set = await get_set(session, set_id)
    if db_set is None:
        raise SetNotFoundError(set_id)

    cards = [card_to_model(c) for c in await get_cards_for_set(session, set_id)]
    return _set_response(set_to_model(db_set), cards)
