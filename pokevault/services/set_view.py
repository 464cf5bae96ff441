"""
Set page filter/sort pipeline.

Turns the full card list of one set plus the user's summaries into the
list a set page shows:

1. search: case-insensitive substring of the name, or substring of the
   collector number
2. filter: need / have (under the active collection mode) or duplicates
3. sort: number, name, rarity or price, ascending or descending

Summary counts (need / have / duplicates) are always computed over the whole
set, independent of the search and filter.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pokevault.models.card import Card, CardSet, parse_card_number
from pokevault.models.collection import CollectionCardSummary
from pokevault.models.variant import VARIANTS, CardVariant
from pokevault.services.completion import CollectionMode, CompletionStatus, evaluate_completion
from pokevault.services.duplicates import duplicate_count, has_duplicates
from pokevault.services.valuation import calculate_card_value, collection_value, set_market_value
from pokevault.services.variant_rules import default_available_variants

AvailableVariantsRule = Callable[[Card, CardSet | None], frozenset[CardVariant]]


class FilterMode(str, Enum):
    """Which cards of a set to show."""

    ALL = "all"
    NEED = "need"
    HAVE = "have"
    DUPLICATES = "duplicates"


class SortKey(str, Enum):
    """Field a set page is sorted by."""

    NUMBER = "number"
    NAME = "name"
    RARITY = "rarity"
    PRICE = "price"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortState:
    """Current sort of a set page."""

    key: SortKey = SortKey.NUMBER
    direction: SortDirection = SortDirection.ASC

    def toggle(self, key: SortKey) -> "SortState":
        """
        Sort state after the user picks ``key``.

        Picking the active key flips the direction; picking another key
        sorts by it ascending.
        """
        if key == self.key:
            flipped = (
                SortDirection.DESC if self.direction == SortDirection.ASC else SortDirection.ASC
            )
            return SortState(key=key, direction=flipped)
        return SortState(key=key, direction=SortDirection.ASC)


@dataclass(frozen=True, slots=True)
class SetViewQuery:
    """Everything the user controls on a set page."""

    search: str = ""
    filter_mode: FilterMode = FilterMode.ALL
    sort: SortState = field(default_factory=SortState)
    mode: CollectionMode = CollectionMode.REGULAR


@dataclass(frozen=True, slots=True)
class CardView:
    """One card as shown on a set page."""

    card: Card
    summary: CollectionCardSummary | None
    available_variants: tuple[CardVariant, ...]
    completion: CompletionStatus
    has_duplicates: bool
    duplicate_count: int
    value: float

    def is_complete(self, mode: CollectionMode) -> bool:
        return self.completion.is_complete(mode)


@dataclass
class SetView:
    """Result of running the pipeline over one set."""

    cards: list[CardView]
    total_cards: int
    need_count: int
    have_count: int
    duplicates_count: int
    set_value: float
    user_value: float
    need_card_ids: list[str]

    @property
    def collected_count(self) -> int:
        """Cards complete under the active mode."""
        return self.have_count


def matches_search(card: Card, search: str) -> bool:
    """Name contains the query (any case) or the number contains it."""
    if not search:
        return True
    return search.lower() in card.name.lower() or search in card.number


def _sort_value(card: Card, key: SortKey) -> Any:
    if key == SortKey.NUMBER:
        return parse_card_number(card.number)
    if key == SortKey.NAME:
        return card.name.lower()
    if key == SortKey.RARITY:
        return (card.rarity or "").lower()
    price = card.pricing.avg_sell_price
    return price if price is not None and price > 0 else 0.0


def sort_cards(views: Sequence[CardView], sort: SortState) -> list[CardView]:
    """Stable sort of card views by the given sort state."""
    return sorted(
        views,
        key=lambda view: _sort_value(view.card, sort.key),
        reverse=sort.direction == SortDirection.DESC,
    )


def _passes_filter(view: CardView, filter_mode: FilterMode, mode: CollectionMode) -> bool:
    if filter_mode == FilterMode.NEED:
        return not view.is_complete(mode)
    if filter_mode == FilterMode.HAVE:
        return view.is_complete(mode)
    if filter_mode == FilterMode.DUPLICATES:
        return view.has_duplicates
    return True


def build_card_view(
    card: Card,
    summary: CollectionCardSummary | None,
    card_set: CardSet | None = None,
    available_variants: AvailableVariantsRule = default_available_variants,
) -> CardView:
    """Evaluate completion, duplicates and value for one card."""
    available = available_variants(card, card_set)
    ordered = tuple(variant for variant in VARIANTS if variant in available)
    return CardView(
        card=card,
        summary=summary,
        available_variants=ordered,
        completion=evaluate_completion(available, summary),
        has_duplicates=has_duplicates(summary),
        duplicate_count=duplicate_count(summary),
        value=calculate_card_value(card.pricing, summary),
    )


def build_set_view(
    cards: Sequence[Card],
    summaries: Mapping[str, CollectionCardSummary],
    query: SetViewQuery | None = None,
    card_set: CardSet | None = None,
    available_variants: AvailableVariantsRule = default_available_variants,
) -> SetView:
    """
    Run search, filter and sort over a set's cards.

    Args:
        cards: Every card of the set
        summaries: The user's summaries, keyed by card id (may hold cards
            from other sets)
        query: Search, filter, sort and collection mode
        card_set: The set itself, passed to the availability rule
        available_variants: Rule giving the legal variants of a card

    Returns:
        SetView with the visible cards and whole-set counts
    """
    if query is None:
        query = SetViewQuery()

    views = [
        build_card_view(card, summaries.get(card.id), card_set, available_variants)
        for card in cards
    ]

    have = [view for view in views if view.is_complete(query.mode)]
    need_ids = [view.card.id for view in views if not view.is_complete(query.mode)]

    visible = [
        view
        for view in views
        if matches_search(view.card, query.search)
        and _passes_filter(view, query.filter_mode, query.mode)
    ]

    return SetView(
        cards=sort_cards(visible, query.sort),
        total_cards=len(views),
        need_count=len(need_ids),
        have_count=len(have),
        duplicates_count=sum(view.duplicate_count for view in views),
        set_value=set_market_value(cards),
        user_value=collection_value(cards, summaries),
        need_card_ids=need_ids,
    )
