from dataclasses import dataclass, field
from datetime import datetime

from pokevault.models.variant import VARIANTS, CardVariant


@dataclass(frozen=True, slots=True)
class CollectionRow:
    """
    One persisted collection record.

    Variant and condition are kept as raw strings: rows come from storage
    and may carry values this version does not recognise.
    """

    user_id: str
    card_id: str
    variant: str
    quantity: int
    condition: str
    created_at: datetime
    updated_at: datetime


def _empty_counts() -> dict[CardVariant, int]:
    return dict.fromkeys(VARIANTS, 0)


@dataclass
class CollectionCardSummary:
    """
    Everything a user owns of one card, folded across variants and conditions.

    Derived from CollectionRow records and never persisted.
    """

    user_id: str
    card_id: str
    date_added: datetime
    last_updated: datetime
    counts: dict[CardVariant, int] = field(default_factory=_empty_counts)

    @property
    def total_quantity(self) -> int:
        """Total copies across all variants."""
        return sum(self.counts.values())

    def count(self, variant: CardVariant) -> int:
        """Copies owned of a single variant."""
        return self.counts.get(variant, 0)

    def copy(self) -> "CollectionCardSummary":
        """Independent copy, safe to mutate without touching this one."""
        return CollectionCardSummary(
            user_id=self.user_id,
            card_id=self.card_id,
            date_added=self.date_added,
            last_updated=self.last_updated,
            counts=dict(self.counts),
        )

    def variant_counts(self) -> dict[str, int]:
        """Counts keyed by persisted variant name, in canonical order."""
        return {variant.value: self.count(variant) for variant in VARIANTS}
