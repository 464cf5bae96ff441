"""
Pokemon TCG API client.

Fetches sets and cards (with Cardmarket prices) from the Pokemon TCG API
and converts them to catalog models.

API docs: https://docs.pokemontcg.io/
"""

import logging
from datetime import date, datetime
from typing import Any

import httpx

from pokevault.config import DEFAULT_SYNC_PAGE_SIZE, settings
from pokevault.models.card import Card, CardPricing, CardSet

logger = logging.getLogger(__name__)

USER_AGENT = "PokeVault/1.0"

# Cardmarket price keys -> CardPricing fields
CARDMARKET_PRICE_FIELDS = {
    "averageSellPrice": "avg_sell_price",
    "lowPrice": "low_price",
    "trendPrice": "trend_price",
    "reverseHoloSell": "reverse_holo_sell",
    "reverseHoloLow": "reverse_holo_low",
    "reverseHoloTrend": "reverse_holo_trend",
}


class PokemonTcgError(Exception):
    """Raised when the API returns data we cannot use."""


def build_headers(api_key: str | None = None) -> dict[str, str]:
    """Request headers; the API key is optional but raises rate limits."""
    headers = {"User-Agent": USER_AGENT}
    key = settings.pokemon_tcg_api_key if api_key is None else api_key
    if key:
        headers["X-Api-Key"] = key
    return headers


def _parse_release_date(value: str | None) -> date | None:
    """Release dates come as "YYYY/MM/DD"."""
    if not value:
        return None
    for fmt in ("%Y/%m/%d", "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    logger.warning("Unparseable release date: %s", value)
    return None


def _parse_price(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_set(data: dict[str, Any]) -> CardSet:
    """
    Convert an API set object.

    Raises:
        PokemonTcgError: If the id or name is missing
    """
    set_id = data.get("id")
    name = data.get("name")
    if not set_id or not name:
        raise PokemonTcgError(f"Set is missing id or name: {data!r:.200}")

    return CardSet(
        id=str(set_id),
        name=str(name),
        series=str(data.get("series") or ""),
        total_cards=int(data.get("total") or data.get("printedTotal") or 0),
        release_date=_parse_release_date(data.get("releaseDate")),
    )


def parse_card(data: dict[str, Any], set_id: str) -> Card | None:
    """
    Convert an API card object.

    Returns None for cards without an id, name or number.
    Energy cards carry "Energy" in ``types`` (the API leaves types empty for
    them) so availability rules can tell them apart from Trainers.
    """
    card_id = data.get("id")
    name = data.get("name")
    number = data.get("number")
    if not card_id or not name or not number:
        return None

    types = list(data.get("types") or [])
    if data.get("supertype") == "Energy" and "Energy" not in types:
        types.append("Energy")

    prices = (data.get("cardmarket") or {}).get("prices") or {}
    pricing = CardPricing(
        **{field: _parse_price(prices.get(key)) for key, field in CARDMARKET_PRICE_FIELDS.items()}
    )

    return Card(
        id=str(card_id),
        name=str(name),
        number=str(number),
        rarity=str(data.get("rarity") or ""),
        set_id=set_id,
        types=tuple(types),
        pricing=pricing,
    )


def fetch_set(set_id: str, client: httpx.Client) -> CardSet:
    """
    Fetch one set.

    Raises:
        httpx.HTTPError: If the request fails
        PokemonTcgError: If the response has no usable set
    """
    response = client.get(f"{settings.pokemon_tcg_api_url}/sets/{set_id}")
    response.raise_for_status()

    data = response.json().get("data")
    if not isinstance(data, dict):
        raise PokemonTcgError(f"No set data returned for '{set_id}'")
    return parse_set(data)


def fetch_set_cards(
    set_id: str,
    client: httpx.Client,
    page_size: int = DEFAULT_SYNC_PAGE_SIZE,
) -> list[Card]:
    """
    Fetch every card of a set, following pagination.

    Cards that cannot be parsed are skipped and logged.

    Raises:
        httpx.HTTPError: If a request fails
    """
    cards: list[Card] = []
    skipped = 0
    page = 1

    while True:
        response = client.get(
            f"{settings.pokemon_tcg_api_url}/cards",
            params={"q": f"set.id:{set_id}", "page": page, "pageSize": page_size},
        )
        response.raise_for_status()
        payload = response.json()

        batch = payload.get("data") or []
        for item in batch:
            card = parse_card(item, set_id)
            if card is None:
                skipped += 1
                continue
            cards.append(card)

        total = int(payload.get("totalCount") or 0)
        if not batch or page * page_size >= total:
            break
        page += 1

    if skipped:
        logger.warning("Skipped %d unparseable cards in set %s", skipped, set_id)

    return cards
