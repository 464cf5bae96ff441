import re
from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True, slots=True)
class CardPricing:
    """
    Cardmarket prices for a card (EUR).

    Any field may be None for cards the market has not priced.

    Attributes:
        avg_sell_price: Average sell price of the standard printing
        low_price: Lowest listed price of the standard printing
        trend_price: Price trend of the standard printing
        reverse_holo_sell: Average sell price of the reverse holo printing
        reverse_holo_low: Lowest listed price of the reverse holo printing
        reverse_holo_trend: Price trend of the reverse holo printing
    """

    avg_sell_price: float | None = None
    low_price: float | None = None
    trend_price: float | None = None
    reverse_holo_sell: float | None = None
    reverse_holo_low: float | None = None
    reverse_holo_trend: float | None = None


@dataclass(frozen=True, slots=True)
class CardSet:
    """An expansion set in the card catalog."""

    id: str
    name: str
    series: str = ""
    total_cards: int = 0
    release_date: date | None = None


@dataclass(frozen=True, slots=True)
class Card:
    """
    A catalog card.

    Attributes:
        id: Catalog id (e.g., "sv8pt5-12")
        name: Card name
        number: Collector number as printed (may be non-numeric, e.g., "TG05")
        rarity: Rarity label (e.g., "Common", "Rare Holo", "Double Rare")
        set_id: Id of the set the card belongs to
        types: Pokemon types; empty for Trainers
        pricing: Market prices
    """

    id: str
    name: str
    number: str
    rarity: str = ""
    set_id: str = ""
    types: tuple[str, ...] = ()
    pricing: CardPricing = field(default_factory=CardPricing)


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_card_number(number: str | None) -> int:
    """
    Leading integer of a collector number.

    "12" -> 12, "12/198" -> 12, "7a" -> 7; non-numeric numbers such as
    "TG05" or "SWSH001" give 0.
    """
    if not number:
        return 0
    match = _LEADING_INT.match(number)
    return int(match.group(1)) if match else 0
