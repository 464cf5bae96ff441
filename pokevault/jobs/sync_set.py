"""
Job to sync sets from the Pokemon TCG API into the catalog.

Fetches each set and its cards (with Cardmarket prices) and upserts them.
Can be run as a standalone script or called from a scheduler.
"""

import argparse
import asyncio
import logging

import httpx

from pokevault.config import HTTP_TIMEOUT_SECONDS
from pokevault.db.database import async_session_factory
from pokevault.db.operations import upsert_cards, upsert_set
from pokevault.parsers.pokemon_tcg import (
    PokemonTcgError,
    build_headers,
    fetch_set,
    fetch_set_cards,
)

logger = logging.getLogger(__name__)


async def sync_set(set_id: str, client: httpx.Client) -> int:
    """
    Sync a single set.

    Args:
        set_id: Pokemon TCG API set id (e.g. "sv8pt5")
        client: HTTP client for requests

    Returns:
        Number of cards synced, 0 if the set could not be fetched
    """
    logger.info("Fetching set %s...", set_id)

    try:
        card_set = fetch_set(set_id, client)
        cards = fetch_set_cards(set_id, client)
        logger.info("Fetched %d cards for %s (%s)", len(cards), set_id, card_set.name)

        async with async_session_factory() as session:
            await upsert_set(session, card_set)
            count = await upsert_cards(session, cards)
            await session.commit()

        logger.info("Synced %d cards for %s", count, set_id)
        return count

    except httpx.HTTPError as e:
        logger.error("HTTP error fetching %s: %s", set_id, e)
        return 0
    except PokemonTcgError as e:
        logger.error("Bad data for %s: %s", set_id, e)
        return 0


async def run_sync(set_ids: list[str], api_key: str | None = None) -> dict[str, int]:
    """
    Sync several sets with one HTTP client.

    Returns:
        Dict mapping set id to number of cards synced
    """
    results: dict[str, int] = {}

    with httpx.Client(
        headers=build_headers(api_key),
        follow_redirects=True,
        timeout=HTTP_TIMEOUT_SECONDS,
    ) as client:
        for set_id in set_ids:
            results[set_id] = await sync_set(set_id, client)

    total = sum(results.values())
    logger.info("Catalog sync complete. Total cards synced: %d", total)
    return results


def main() -> None:
    """CLI entry point for syncing sets."""
    parser = argparse.ArgumentParser(description="Sync Pokemon TCG sets into the catalog")
    parser.add_argument("set_ids", nargs="+", help="Set ids to sync, e.g. sv8pt5 zsv10pt5")
    parser.add_argument("--api-key", default=None, help="Pokemon TCG API key")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_sync(args.set_ids, api_key=args.api_key))


if __name__ == "__main__":
    main()
