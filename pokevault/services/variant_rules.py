"""
Default variant availability rules.

Which printings a card legally exists in depends on its rarity, its card
type and the era of its set:

- First edition era (WotC Base through Neo, e-Card): every card also exists
  as 1st Edition
- Regular sets: commons/uncommons come as normal + reverse holo, rares as
  holo + reverse holo, ultra rares only as holo
- Prismatic Evolutions, Black Bolt and White Flare add Poke Ball and
  Master Ball pattern reverse holos below their secret rare range
- Celebrations reprints were never printed as reverse holo

The rule is injected into the set page pipeline, so callers can replace it.
"""

from pokevault.models.card import Card, CardSet, parse_card_number
from pokevault.models.variant import CardVariant

N = CardVariant.NORMAL
H = CardVariant.HOLO
RH = CardVariant.REVERSE_HOLO
PB = CardVariant.POKEBALL_PATTERN
MB = CardVariant.MASTERBALL_PATTERN
FE = CardVariant.FIRST_EDITION

FIRST_EDITION_SET_IDS = frozenset(
    {
        "base1",
        "base2",
        "base3",
        "base4",
        "base5",
        "gym1",
        "gym2",
        "neo1",
        "neo2",
        "neo3",
        "neo4",
        "ecard1",
        "ecard2",
        "ecard3",
    }
)

FIRST_EDITION_SET_NAMES = (
    "base",
    "jungle",
    "fossil",
    "team rocket",
    "gym heroes",
    "gym challenge",
    "neo genesis",
    "neo discovery",
    "neo revelation",
    "neo destiny",
    "expedition",
    "aquapolis",
    "skyridge",
)

# Collector numbers above these are secret rares (holo only)
PRISMATIC_SECRET_RARE_START = 132
BLACK_WHITE_SECRET_RARE_START = 87

_ULTRA_RARE_MARKERS = ("V", "EX", "GX", "VMAX", "VSTAR", "ex")


class _Rarity:
    """Rarity classification of a single card."""

    def __init__(self, card: Card):
        rarity = card.rarity or ""
        self.common = rarity == "Common"
        self.uncommon = rarity == "Uncommon"
        self.rare = rarity == "Rare"
        self.holo_rare = rarity in ("Rare Holo", "Holo Rare")
        self.ultra = (
            any(marker in rarity for marker in _ULTRA_RARE_MARKERS)
            or rarity in ("Rare Ultra", "Ultra Rare", "Double Rare")
            or " ex" in card.name
        )
        self.illustration = "Special Illustration" in rarity or "Illustration Rare" in rarity
        self.secret = any(marker in rarity for marker in ("Secret", "Gold", "Rainbow"))
        self.ace_spec = "ACE SPEC" in rarity
        self.full_art = "Full Art" in rarity
        self.has_ex = "ex" in rarity

        self.energy = "Energy" in card.types
        self.trainer = not card.types
        self.pokemon = not self.trainer and not self.energy
        self.special_energy = self.energy and (self.full_art or "Special" in rarity)

    @property
    def low(self) -> bool:
        """Common or uncommon."""
        return self.common or self.uncommon

    @property
    def any_rare(self) -> bool:
        """Rare or holo rare."""
        return self.rare or self.holo_rare

    @property
    def premium(self) -> bool:
        """Ultra, illustration, secret or ACE SPEC rare."""
        return self.ultra or self.illustration or self.secret or self.ace_spec


def _is_first_edition_set(set_id: str, set_name: str) -> bool:
    return set_id in FIRST_EDITION_SET_IDS or any(
        name in set_name for name in FIRST_EDITION_SET_NAMES
    )


def _first_edition_variants(r: _Rarity) -> list[CardVariant]:
    if r.low:
        return [N, RH, FE]
    if r.any_rare:
        return [RH, H, FE]
    if r.premium:
        return [H, FE]
    if r.energy:
        return [H, FE] if r.special_energy else [N, RH, FE]
    return []


def _regular_variants(r: _Rarity) -> list[CardVariant]:
    if r.low:
        return [N, RH]
    if r.any_rare:
        return [RH, H]
    if r.premium:
        return [H]
    if r.energy:
        return [H] if r.special_energy else [N, RH]
    return []


def _prismatic_variants(r: _Rarity, number: int) -> list[CardVariant]:
    if number >= PRISMATIC_SECRET_RARE_START:
        return [H]
    if r.pokemon:
        if r.has_ex or r.ace_spec:
            return [N, RH, PB]
        return [N, RH, PB, MB]
    return [N, RH, PB]


def _black_white_variants(r: _Rarity, number: int) -> list[CardVariant]:
    if number >= BLACK_WHITE_SECRET_RARE_START:
        return [H]
    if r.pokemon and (r.low or r.any_rare):
        return [N, RH, PB, MB]
    if r.trainer:
        return [N, RH, PB]
    if r.energy and not r.special_energy:
        return [N, RH]
    if r.premium or r.special_energy:
        return [H]
    return []


def _celebrations_variants(r: _Rarity) -> list[CardVariant]:
    if r.trainer and r.low:
        return [N]
    if r.energy and not r.special_energy:
        return [N]
    return [H]


def default_available_variants(
    card: Card, card_set: CardSet | None = None
) -> frozenset[CardVariant]:
    """
    Variants a card can legally be collected in.

    Always returns at least one variant.
    """
    r = _Rarity(card)
    set_id = (card_set.id if card_set else card.set_id).lower()
    set_name = (card_set.name if card_set else "").lower()
    number = parse_card_number(card.number)

    if _is_first_edition_set(set_id, set_name):
        variants = _first_edition_variants(r)
    elif "prismatic evolutions" in set_name or set_id == "sv8pt5":
        variants = _prismatic_variants(r, number)
    elif (
        "black bolt" in set_name
        or "white flare" in set_name
        or set_id in ("zsv10pt5", "rsv10pt5")
    ):
        variants = _black_white_variants(r, number)
    elif "celebrations" in set_name or set_id == "swsh12pt5":
        variants = _celebrations_variants(r)
    else:
        variants = _regular_variants(r)

    if not variants:
        variants = [H] if (r.premium or r.special_energy) else [N]

    return frozenset(variants)
