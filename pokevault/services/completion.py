"""
Completion evaluation.

A card is *collected* when any copy is owned and *mastered* when every
variant the card can legally have is owned at least once.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from pokevault.models.collection import CollectionCardSummary
from pokevault.models.variant import CardVariant


class CollectionMode(str, Enum):
    """Which completion rule a set page counts progress with."""

    REGULAR = "regular"
    MASTER = "master"


@dataclass(frozen=True, slots=True)
class CompletionStatus:
    """Both completion results for one card."""

    is_collected: bool
    is_mastered: bool

    def is_complete(self, mode: CollectionMode) -> bool:
        """Completion under the given collection mode."""
        if mode == CollectionMode.MASTER:
            return self.is_mastered
        return self.is_collected


NOT_COLLECTED = CompletionStatus(is_collected=False, is_mastered=False)


def evaluate_completion(
    available_variants: Iterable[CardVariant],
    summary: CollectionCardSummary | None,
) -> CompletionStatus:
    """
    Evaluate collected and mastered status for a card.

    A card with no available variants is mastered as soon as it is
    collected.
    """
    if summary is None or summary.total_quantity <= 0:
        return NOT_COLLECTED

    mastered = all(summary.count(variant) > 0 for variant in available_variants)
    return CompletionStatus(is_collected=True, is_mastered=mastered)
