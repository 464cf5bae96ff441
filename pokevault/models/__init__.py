from pokevault.models.card import Card, CardPricing, CardSet
from pokevault.models.collection import CollectionCardSummary, CollectionRow
from pokevault.models.failure import (
    ApiResponse,
    CardNotFoundError,
    CollectionFetchError,
    ConcurrentChangeError,
    FailureDetail,
    FailureKind,
    KnownError,
    MutationFailedError,
    OutcomeType,
    SetNotFoundError,
    VariantNotOwnedError,
)
from pokevault.models.variant import VARIANTS, CardCondition, CardVariant, parse_variant

__all__ = [
    "ApiResponse",
    "Card",
    "CardCondition",
    "CardNotFoundError",
    "CardPricing",
    "CardSet",
    "CardVariant",
    "CollectionCardSummary",
    "CollectionFetchError",
    "CollectionRow",
    "ConcurrentChangeError",
    "FailureDetail",
    "FailureKind",
    "KnownError",
    "MutationFailedError",
    "OutcomeType",
    "SetNotFoundError",
    "VARIANTS",
    "VariantNotOwnedError",
    "parse_variant",
]
