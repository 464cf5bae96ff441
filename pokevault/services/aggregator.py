"""
Variant aggregation.

Folds raw collection rows (one per card, variant and condition) into one
CollectionCardSummary per card.

Malformed rows are skipped, never raised on:
- unknown variant strings are ignored and logged; they count towards
  neither a variant bucket nor the total
- rows with a non-positive quantity are ignored and logged
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from pokevault.models.collection import CollectionCardSummary, CollectionRow
from pokevault.models.variant import CardVariant, parse_variant

logger = logging.getLogger(__name__)


def aggregate_rows(rows: Iterable[CollectionRow]) -> dict[str, CollectionCardSummary]:
    """
    Build a card_id -> summary map from collection rows.

    Rows may arrive in any order. A card appears in the result only if at
    least one of its rows was counted.
    """
    summaries: dict[str, CollectionCardSummary] = {}
    skipped: list[tuple[str, str, int]] = []

    for row in rows:
        variant = parse_variant(row.variant)
        if variant is None or row.quantity <= 0:
            skipped.append((row.card_id, row.variant, row.quantity))
            continue

        summary = summaries.get(row.card_id)
        if summary is None:
            summary = CollectionCardSummary(
                user_id=row.user_id,
                card_id=row.card_id,
                date_added=row.created_at,
                last_updated=row.updated_at,
            )
            summaries[row.card_id] = summary
        else:
            if row.created_at < summary.date_added:
                summary.date_added = row.created_at
            if row.updated_at > summary.last_updated:
                summary.last_updated = row.updated_at

        summary.counts[variant] += row.quantity

    if skipped:
        logger.warning(
            "collection_rows_skipped",
            extra={
                "skipped_count": len(skipped),
                "skipped_rows": skipped[:10],
            },
        )

    return summaries


def apply_variant_delta(
    summaries: dict[str, CollectionCardSummary],
    *,
    user_id: str,
    card_id: str,
    variant: CardVariant,
    delta: int,
    now: datetime,
) -> CollectionCardSummary | None:
    """
    Patch one card's summary in place after an add (+) or remove (-).

    The variant count is clamped at zero. When the card's total reaches zero
    it is removed from ``summaries``.

    Returns:
        The updated summary, or None if the card is no longer owned.
    """
    current = summaries.get(card_id)
    if current is None:
        if delta <= 0:
            return None
        current = CollectionCardSummary(
            user_id=user_id,
            card_id=card_id,
            date_added=now,
            last_updated=now,
        )

    current.counts[variant] = max(0, current.count(variant) + delta)
    current.last_updated = now

    if current.total_quantity == 0:
        summaries.pop(card_id, None)
        return None

    summaries[card_id] = current
    return current
