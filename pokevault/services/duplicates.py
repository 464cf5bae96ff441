"""Duplicate detection: copies beyond the first within the same variant."""

from pokevault.models.collection import CollectionCardSummary
from pokevault.models.variant import VARIANTS


def has_duplicates(summary: CollectionCardSummary | None) -> bool:
    """True if any single variant is owned more than once."""
    if summary is None:
        return False
    return any(summary.count(variant) > 1 for variant in VARIANTS)


def duplicate_count(summary: CollectionCardSummary | None) -> int:
    """
    Number of spare copies.

    One normal and one holo is no duplicate; three normals is two.
    """
    if summary is None:
        return 0
    return sum(max(0, summary.count(variant) - 1) for variant in VARIANTS)
