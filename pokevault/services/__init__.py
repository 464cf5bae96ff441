from pokevault.services.aggregator import aggregate_rows, apply_variant_delta
from pokevault.services.collection_state import (
    CollectionSession,
    CollectionStore,
    Mutation,
    MutationState,
)
from pokevault.services.completion import (
    CollectionMode,
    CompletionStatus,
    evaluate_completion,
)
from pokevault.services.duplicates import duplicate_count, has_duplicates
from pokevault.services.set_view import (
    CardView,
    FilterMode,
    SetView,
    SetViewQuery,
    SortDirection,
    SortKey,
    SortState,
    build_card_view,
    build_set_view,
    matches_search,
    sort_cards,
)
from pokevault.services.valuation import (
    calculate_card_value,
    collection_value,
    resolve_unit_price,
    set_market_value,
)
from pokevault.services.variant_rules import default_available_variants

__all__ = [
    "CardView",
    "CollectionMode",
    "CollectionSession",
    "CollectionStore",
    "CompletionStatus",
    "FilterMode",
    "Mutation",
    "MutationState",
    "SetView",
    "SetViewQuery",
    "SortDirection",
    "SortKey",
    "SortState",
    "aggregate_rows",
    "apply_variant_delta",
    "build_card_view",
    "build_set_view",
    "calculate_card_value",
    "collection_value",
    "default_available_variants",
    "duplicate_count",
    "evaluate_completion",
    "has_duplicates",
    "matches_search",
    "resolve_unit_price",
    "set_market_value",
    "sort_cards",
]
