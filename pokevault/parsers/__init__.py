from pokevault.parsers.pokemon_tcg import (
    PokemonTcgError,
    fetch_set,
    fetch_set_cards,
    parse_card,
    parse_set,
)

__all__ = [
    "PokemonTcgError",
    "fetch_set",
    "fetch_set_cards",
    "parse_card",
    "parse_set",
]
