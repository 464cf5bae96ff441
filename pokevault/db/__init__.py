from pokevault.db.database import get_session, init_db
from pokevault.db.operations import (
    SqlCollectionStore,
    card_to_model,
    decrement_variant,
    delete_card_entries,
    entry_to_row,
    get_cards_by_ids,
    get_cards_for_set,
    get_collection_entries,
    get_entry,
    get_set,
    increment_variant,
    set_to_model,
    upsert_cards,
    upsert_set,
)

__all__ = [
    "SqlCollectionStore",
    "card_to_model",
    "decrement_variant",
    "delete_card_entries",
    "entry_to_row",
    "get_cards_by_ids",
    "get_cards_for_set",
    "get_collection_entries",
    "get_entry",
    "get_session",
    "get_set",
    "increment_variant",
    "init_db",
    "set_to_model",
    "upsert_cards",
    "upsert_set",
]
