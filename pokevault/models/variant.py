"""
Card variants and physical conditions.

CardVariant is the single key used by every component that counts, prices
or compares variants. Values match the strings persisted in
``user_collections.variant``.
"""

from enum import Enum


class CardVariant(str, Enum):
    """A distinct printing style of the same card."""

    NORMAL = "normal"
    HOLO = "holo"
    REVERSE_HOLO = "reverse_holo"
    POKEBALL_PATTERN = "pokeball_pattern"
    MASTERBALL_PATTERN = "masterball_pattern"
    FIRST_EDITION = "1st_edition"


# Canonical iteration order for counts, pricing and display
VARIANTS: tuple[CardVariant, ...] = (
    CardVariant.NORMAL,
    CardVariant.HOLO,
    CardVariant.REVERSE_HOLO,
    CardVariant.POKEBALL_PATTERN,
    CardVariant.MASTERBALL_PATTERN,
    CardVariant.FIRST_EDITION,
)


class CardCondition(str, Enum):
    """Physical grading of a card copy."""

    MINT = "mint"
    NEAR_MINT = "near_mint"
    LIGHTLY_PLAYED = "lightly_played"
    MODERATELY_PLAYED = "moderately_played"
    HEAVILY_PLAYED = "heavily_played"
    DAMAGED = "damaged"


def parse_variant(value: str | None) -> CardVariant | None:
    """
    Parse a persisted variant string.

    A missing value means ``normal`` (rows written before variants existed).
    Returns None for strings that are not a known variant.
    """
    if value is None or value == "":
        return CardVariant.NORMAL
    try:
        return CardVariant(value)
    except ValueError:
        return None
