"""
Per-user collection state with optimistic mutations.

A CollectionSession holds one user's card summaries and applies add / remove
/ toggle / reset actions optimistically: the local summary is patched first,
then the store is called. Each mutation moves through

    pending -> committed   (store call succeeded)
    pending -> reverted    (store call failed; pre-mutation snapshot restored)

Mutations on the same card are serialized with a per-card lock, so a slow
store call can never interleave with the next click on that card.

Sessions are constructed explicitly per request or per client session; there
is no shared module-level cache. The locks belong to the session, so they
order mutations made through one session only. Separate HTTP requests build
separate sessions and rely on the database: the unique row constraint turns
a racing first insert into ConcurrentChangeError (409).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection, Iterable
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol, TypeVar

from pokevault.models.collection import CollectionCardSummary, CollectionRow
from pokevault.models.db import utcnow
from pokevault.models.failure import CollectionFetchError, KnownError, MutationFailedError
from pokevault.models.variant import CardCondition, CardVariant
from pokevault.services.aggregator import aggregate_rows, apply_variant_delta

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollectionStore(Protocol):
    """Persistence collaborator for collection rows."""

    async def fetch_rows(
        self, user_id: str, card_ids: Collection[str] | None = None
    ) -> list[CollectionRow]: ...

    async def increment(
        self,
        user_id: str,
        card_id: str,
        variant: CardVariant,
        condition: CardCondition,
    ) -> CollectionRow: ...

    async def decrement(
        self,
        user_id: str,
        card_id: str,
        variant: CardVariant,
        condition: CardCondition | None = None,
    ) -> CollectionRow | None: ...

    async def delete_cards(self, user_id: str, card_ids: Collection[str]) -> int: ...


class MutationState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    REVERTED = "reverted"


@dataclass
class Mutation:
    """One optimistic change and the snapshots needed to undo it."""

    action: str
    card_ids: tuple[str, ...]
    snapshot: dict[str, CollectionCardSummary | None]
    state: MutationState = MutationState.PENDING


class CollectionSession:
    """
    One user's collection summaries and the actions that change them.

    Args:
        store: Persistence collaborator
        user_id: Owner of the collection
        clock: Source of timestamps for optimistic patches
    """

    def __init__(
        self,
        store: CollectionStore,
        user_id: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.user_id = user_id
        self._clock = clock
        self._summaries: dict[str, CollectionCardSummary] = {}
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._last_mutation: dict[str, Mutation] = {}

    # --- Reads ---

    @property
    def summaries(self) -> dict[str, CollectionCardSummary]:
        """Current summaries keyed by card id (do not mutate)."""
        return self._summaries

    def get(self, card_id: str) -> CollectionCardSummary | None:
        return self._summaries.get(card_id)

    def is_busy(self, card_id: str) -> bool:
        """True while a mutation on this card is in flight."""
        lock = self._locks.get((self.user_id, card_id))
        return lock is not None and lock.locked()

    def last_mutation(self, card_id: str) -> Mutation | None:
        """Most recent mutation that touched this card."""
        return self._last_mutation.get(card_id)

    async def refresh(self, card_ids: Collection[str] | None = None) -> None:
        """
        Rebuild summaries from the store.

        With ``card_ids`` only those cards are replaced; summaries of other
        cards are kept.

        Raises:
            CollectionFetchError: If the store fails. Existing summaries are
                left exactly as they were.
        """
        try:
            rows = await self.store.fetch_rows(self.user_id, card_ids)
        except Exception as e:
            logger.warning(
                "collection_fetch_failed",
                extra={"user_id": self.user_id, "error": type(e).__name__},
            )
            raise CollectionFetchError(self.user_id, detail=type(e).__name__) from e

        fresh = aggregate_rows(rows)
        if card_ids is None:
            self._summaries = fresh
            return

        for card_id in card_ids:
            self._summaries.pop(card_id, None)
        self._summaries.update({k: v for k, v in fresh.items() if k in card_ids})

    # --- Mutations ---

    async def add_variant(
        self,
        card_id: str,
        variant: CardVariant,
        condition: CardCondition = CardCondition.NEAR_MINT,
    ) -> CollectionCardSummary | None:
        """Add one copy of ``variant``. Returns the card's new summary."""
        async with self._lock(card_id):
            return await self._add(card_id, variant, condition)

    async def remove_variant(
        self,
        card_id: str,
        variant: CardVariant,
        condition: CardCondition | None = None,
    ) -> CollectionCardSummary | None:
        """
        Remove one copy of ``variant``.

        Returns the card's new summary, or None once nothing is left.
        """
        async with self._lock(card_id):
            mutation = self._begin("remove", [card_id])
            self._patch(card_id, variant, -1)
            await self._commit(
                mutation,
                self.store.decrement(self.user_id, card_id, variant, condition),
            )
            return self.get(card_id)

    async def toggle_card(self, card_id: str) -> CollectionCardSummary | None:
        """
        Quick collect / uncollect.

        An uncollected card gets one normal copy; a collected card loses every
        copy of every variant. The choice is made once the card's lock is
        held, so queued toggles alternate.
        """
        async with self._lock(card_id):
            current = self.get(card_id)
            if current is None or current.total_quantity == 0:
                return await self._add(card_id, CardVariant.NORMAL, CardCondition.NEAR_MINT)

            mutation = self._begin("remove", [card_id])
            self._summaries.pop(card_id, None)
            await self._commit(mutation, self.store.delete_cards(self.user_id, [card_id]))
            return None

    async def reset_cards(self, card_ids: Iterable[str]) -> int:
        """
        Remove every copy of the given cards (a set reset).

        Returns the number of rows deleted from the store.
        """
        ids = sorted(set(card_ids))
        async with AsyncExitStack() as stack:
            for card_id in ids:
                await stack.enter_async_context(self._lock(card_id))

            mutation = self._begin("reset", ids)
            for card_id in ids:
                self._summaries.pop(card_id, None)
            deleted = await self._commit(mutation, self.store.delete_cards(self.user_id, ids))

        logger.info(
            "collection_cards_reset",
            extra={"user_id": self.user_id, "card_count": len(ids), "rows_deleted": deleted},
        )
        return int(deleted)

    # --- Internals ---

    def _lock(self, card_id: str) -> asyncio.Lock:
        key = (self.user_id, card_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _add(
        self, card_id: str, variant: CardVariant, condition: CardCondition
    ) -> CollectionCardSummary | None:
        # Caller holds the card's lock.
        mutation = self._begin("add", [card_id])
        self._patch(card_id, variant, +1)
        await self._commit(
            mutation,
            self.store.increment(self.user_id, card_id, variant, condition),
        )
        return self.get(card_id)

    def _begin(self, action: str, card_ids: list[str]) -> Mutation:
        snapshot = {}
        for card_id in card_ids:
            current = self._summaries.get(card_id)
            snapshot[card_id] = current.copy() if current else None
        mutation = Mutation(action=action, card_ids=tuple(card_ids), snapshot=snapshot)
        for card_id in card_ids:
            self._last_mutation[card_id] = mutation
        return mutation

    def _patch(self, card_id: str, variant: CardVariant, delta: int) -> None:
        apply_variant_delta(
            self._summaries,
            user_id=self.user_id,
            card_id=card_id,
            variant=variant,
            delta=delta,
            now=self._clock(),
        )

    def _revert(self, mutation: Mutation) -> None:
        for card_id, previous in mutation.snapshot.items():
            if previous is None:
                self._summaries.pop(card_id, None)
            else:
                self._summaries[card_id] = previous
        mutation.state = MutationState.REVERTED

    async def _commit(self, mutation: Mutation, call: Awaitable[T]) -> T:
        try:
            result = await call
        except KnownError:
            self._revert(mutation)
            raise
        except Exception as e:
            self._revert(mutation)
            logger.warning(
                "collection_mutation_reverted",
                extra={
                    "user_id": self.user_id,
                    "action": mutation.action,
                    "card_ids": list(mutation.card_ids)[:10],
                    "error": type(e).__name__,
                },
            )
            card_id = mutation.card_ids[0] if len(mutation.card_ids) == 1 else None
            raise MutationFailedError(card_id, mutation.action, detail=type(e).__name__) from e

        mutation.state = MutationState.COMMITTED
        return result
