"""
Card valuation.

Prices each owned variant from the card's Cardmarket data, falling back
through alternative price fields when the preferred one is missing:

    standard printings:  avg sell -> low -> trend -> 0
    reverse holo:        reverse holo sell -> low -> trend -> standard -> 0

Pattern and first edition printings have no dedicated market fields and use
the standard resolution. A price counts as present only when it is a finite
number greater than zero.
"""

import math
from collections.abc import Iterable, Mapping

from pokevault.models.card import Card, CardPricing
from pokevault.models.collection import CollectionCardSummary
from pokevault.models.variant import VARIANTS, CardVariant


def _first_price(*candidates: float | None) -> float | None:
    for price in candidates:
        if price is None:
            continue
        try:
            value = float(price)
        except (TypeError, ValueError):
            continue
        if math.isfinite(value) and value > 0:
            return value
    return None


def _standard_price(pricing: CardPricing) -> float | None:
    return _first_price(pricing.avg_sell_price, pricing.low_price, pricing.trend_price)


def resolve_unit_price(pricing: CardPricing, variant: CardVariant) -> float:
    """Unit price of one copy of ``variant``; 0.0 when nothing is priced."""
    if variant == CardVariant.REVERSE_HOLO:
        price = _first_price(
            pricing.reverse_holo_sell,
            pricing.reverse_holo_low,
            pricing.reverse_holo_trend,
        )
        if price is None:
            price = _standard_price(pricing)
    else:
        price = _standard_price(pricing)

    return price if price is not None else 0.0


def calculate_card_value(pricing: CardPricing, summary: CollectionCardSummary | None) -> float:
    """Total value of every owned copy of a card."""
    if summary is None:
        return 0.0

    total = 0.0
    for variant in VARIANTS:
        count = summary.count(variant)
        if count > 0:
            total += count * resolve_unit_price(pricing, variant)
    return total


def set_market_value(cards: Iterable[Card]) -> float:
    """One copy of every card in a set at average sell price."""
    return sum(_first_price(card.pricing.avg_sell_price) or 0.0 for card in cards)


def collection_value(
    cards: Iterable[Card],
    summaries: Mapping[str, CollectionCardSummary],
) -> float:
    """Value of everything owned among ``cards``."""
    return sum(calculate_card_value(card.pricing, summaries.get(card.id)) for card in cards)
