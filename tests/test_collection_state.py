"""Tests for optimistic collection mutations."""

import asyncio
from collections.abc import Collection
from datetime import UTC, datetime

import pytest

from pokevault.models.collection import CollectionRow
from pokevault.models.failure import (
    CollectionFetchError,
    ConcurrentChangeError,
    MutationFailedError,
    VariantNotOwnedError,
)
from pokevault.models.variant import CardCondition, CardVariant
from pokevault.services.collection_state import CollectionSession, MutationState

NOW = datetime(2025, 3, 1, tzinfo=UTC)


class FakeStore:
    """In-memory store keyed by (user, card, variant, condition)."""

    def __init__(self) -> None:
        self.quantities: dict[tuple[str, str, str, str], int] = {}
        self.fail_next: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[str] = []

    def seed(self, user_id, card_id, variant="normal", quantity=1, condition="near_mint"):
        self.quantities[(user_id, card_id, variant, condition)] = quantity

    async def _enter(self, name: str) -> None:
        self.calls.append(name)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    def _row(self, key: tuple[str, str, str, str]) -> CollectionRow:
        user_id, card_id, variant, condition = key
        return CollectionRow(
            user_id=user_id,
            card_id=card_id,
            variant=variant,
            quantity=self.quantities[key],
            condition=condition,
            created_at=NOW,
            updated_at=NOW,
        )

    async def fetch_rows(
        self, user_id: str, card_ids: Collection[str] | None = None
    ) -> list[CollectionRow]:
        await self._enter("fetch")
        return [
            self._row(key)
            for key in self.quantities
            if key[0] == user_id and (card_ids is None or key[1] in card_ids)
        ]

    async def increment(self, user_id, card_id, variant, condition) -> CollectionRow:
        await self._enter("increment")
        key = (user_id, card_id, variant.value, condition.value)
        self.quantities[key] = self.quantities.get(key, 0) + 1
        return self._row(key)

    async def decrement(self, user_id, card_id, variant, condition=None):
        await self._enter("decrement")
        keys = [
            key
            for key in self.quantities
            if key[:3] == (user_id, card_id, variant.value)
            and (condition is None or key[3] == condition.value)
        ]
        if not keys:
            raise VariantNotOwnedError(card_id, variant.value)
        key = keys[-1]
        if self.quantities[key] > 1:
            self.quantities[key] -= 1
            return self._row(key)
        del self.quantities[key]
        return None

    async def delete_cards(self, user_id, card_ids) -> int:
        await self._enter("delete")
        keys = [key for key in self.quantities if key[0] == user_id and key[1] in card_ids]
        for key in keys:
            del self.quantities[key]
        return len(keys)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def collection(store: FakeStore) -> CollectionSession:
    return CollectionSession(store, "user-1", clock=lambda: NOW)


class TestRefresh:
    async def test_loads_summaries(self, store, collection) -> None:
        store.seed("user-1", "sv1-1", "normal", 2)
        store.seed("user-1", "sv1-1", "holo", 1)
        store.seed("user-2", "sv1-1", "normal", 5)

        await collection.refresh()

        summary = collection.get("sv1-1")
        assert summary is not None
        assert summary.total_quantity == 3

    async def test_fetch_failure_keeps_previous_state(self, store, collection) -> None:
        """A failed load leaves already-loaded summaries untouched."""
        store.seed("user-1", "sv1-1", "normal", 2)
        await collection.refresh()
        before = collection.get("sv1-1")

        store.fail_next = ConnectionError("database unreachable")
        with pytest.raises(CollectionFetchError):
            await collection.refresh()

        assert collection.get("sv1-1") is before
        assert before.total_quantity == 2

    async def test_partial_refresh_keeps_other_cards(self, store, collection) -> None:
        store.seed("user-1", "sv1-1")
        store.seed("user-1", "sv1-2")
        await collection.refresh()

        store.quantities.clear()
        await collection.refresh(["sv1-1"])

        assert collection.get("sv1-1") is None
        assert collection.get("sv1-2") is not None


class TestAddRemove:
    async def test_add_variant(self, store, collection) -> None:
        summary = await collection.add_variant("sv1-1", CardVariant.HOLO)

        assert summary is not None
        assert summary.count(CardVariant.HOLO) == 1
        assert store.quantities == {("user-1", "sv1-1", "holo", "near_mint"): 1}
        assert collection.last_mutation("sv1-1").state == MutationState.COMMITTED

    async def test_add_with_condition(self, store, collection) -> None:
        await collection.add_variant("sv1-1", CardVariant.NORMAL, CardCondition.DAMAGED)

        assert ("user-1", "sv1-1", "normal", "damaged") in store.quantities

    async def test_adds_and_removes_netting_zero_drop_card(self, collection) -> None:
        """A card whose copies net to zero leaves the summary map."""
        await collection.add_variant("sv1-1", CardVariant.NORMAL)
        await collection.add_variant("sv1-1", CardVariant.NORMAL)
        await collection.remove_variant("sv1-1", CardVariant.NORMAL)
        result = await collection.remove_variant("sv1-1", CardVariant.NORMAL)

        assert result is None
        assert "sv1-1" not in collection.summaries

    async def test_failed_add_reverts(self, store, collection) -> None:
        """The optimistic patch is undone when the store call fails."""
        store.seed("user-1", "sv1-1", "normal", 1)
        await collection.refresh()

        store.fail_next = TimeoutError("slow network")
        with pytest.raises(MutationFailedError) as exc_info:
            await collection.add_variant("sv1-1", CardVariant.NORMAL)

        assert exc_info.value.card_id == "sv1-1"
        assert collection.get("sv1-1").count(CardVariant.NORMAL) == 1
        assert collection.last_mutation("sv1-1").state == MutationState.REVERTED

    async def test_failed_first_add_leaves_card_unowned(self, store, collection) -> None:
        store.fail_next = TimeoutError("slow network")

        with pytest.raises(MutationFailedError):
            await collection.add_variant("sv1-1", CardVariant.HOLO)

        assert collection.get("sv1-1") is None

    async def test_remove_unowned_variant_reverts_and_propagates(self, store, collection) -> None:
        """Known failures from the store are re-raised unchanged."""
        store.seed("user-1", "sv1-1", "normal", 1)
        await collection.refresh()

        with pytest.raises(VariantNotOwnedError):
            await collection.remove_variant("sv1-1", CardVariant.HOLO)

        assert collection.get("sv1-1").total_quantity == 1

    async def test_conflict_reverts_and_propagates(self, store, collection) -> None:
        store.fail_next = ConcurrentChangeError("sv1-1", "normal")

        with pytest.raises(ConcurrentChangeError):
            await collection.add_variant("sv1-1", CardVariant.NORMAL)

        assert collection.get("sv1-1") is None
        assert collection.last_mutation("sv1-1").state == MutationState.REVERTED


class TestToggle:
    async def test_toggle_uncollected_adds_normal(self, store, collection) -> None:
        summary = await collection.toggle_card("sv1-1")

        assert summary.count(CardVariant.NORMAL) == 1
        assert store.calls == ["increment"]

    async def test_toggle_collected_removes_every_copy(self, store, collection) -> None:
        store.seed("user-1", "sv1-1", "normal", 2)
        store.seed("user-1", "sv1-1", "holo", 1, condition="mint")
        await collection.refresh()

        assert await collection.toggle_card("sv1-1") is None

        assert collection.get("sv1-1") is None
        assert store.quantities == {}

    async def test_failed_uncollect_restores_summary(self, store, collection) -> None:
        store.seed("user-1", "sv1-1", "normal", 2)
        await collection.refresh()

        store.fail_next = ConnectionError("reset by peer")
        with pytest.raises(MutationFailedError):
            await collection.toggle_card("sv1-1")

        assert collection.get("sv1-1").total_quantity == 2


class TestReset:
    async def test_reset_removes_all_rows(self, store, collection) -> None:
        """Five rows across three cards are all removed."""
        store.seed("user-1", "sv1-1", "normal", 1)
        store.seed("user-1", "sv1-1", "holo", 2)
        store.seed("user-1", "sv1-2", "normal", 1)
        store.seed("user-1", "sv1-2", "reverse_holo", 1, condition="mint")
        store.seed("user-1", "sv1-3", "pokeball_pattern", 1)
        store.seed("user-1", "other-1", "normal", 1)
        await collection.refresh()

        deleted = await collection.reset_cards(["sv1-1", "sv1-2", "sv1-3"])

        assert deleted == 5
        assert set(collection.summaries) == {"other-1"}
        await collection.refresh(["sv1-1", "sv1-2", "sv1-3"])
        assert set(collection.summaries) == {"other-1"}

    async def test_failed_reset_restores_every_card(self, store, collection) -> None:
        store.seed("user-1", "sv1-1", "normal", 1)
        store.seed("user-1", "sv1-2", "normal", 3)
        await collection.refresh()

        store.fail_next = ConnectionError("database unreachable")
        with pytest.raises(MutationFailedError) as exc_info:
            await collection.reset_cards(["sv1-1", "sv1-2"])

        assert exc_info.value.card_id is None
        assert collection.get("sv1-1").total_quantity == 1
        assert collection.get("sv1-2").total_quantity == 3


class TestSerialization:
    async def test_mutations_on_one_card_do_not_interleave(self, store, collection) -> None:
        """A second click waits for the first store call to finish."""
        store.gate = asyncio.Event()

        first = asyncio.create_task(collection.add_variant("sv1-1", CardVariant.NORMAL))
        second = asyncio.create_task(collection.add_variant("sv1-1", CardVariant.NORMAL))
        await asyncio.sleep(0)

        assert collection.is_busy("sv1-1")
        assert store.calls == ["increment"]

        store.gate.set()
        await asyncio.gather(first, second)

        assert store.calls == ["increment", "increment"]
        assert collection.get("sv1-1").count(CardVariant.NORMAL) == 2
        assert not collection.is_busy("sv1-1")

    async def test_other_cards_are_not_blocked(self, store, collection) -> None:
        store.gate = asyncio.Event()

        first = asyncio.create_task(collection.add_variant("sv1-1", CardVariant.NORMAL))
        second = asyncio.create_task(collection.add_variant("sv1-2", CardVariant.NORMAL))
        await asyncio.sleep(0)

        assert store.calls == ["increment", "increment"]

        store.gate.set()
        await asyncio.gather(first, second)

    async def test_queued_toggles_alternate(self, store, collection) -> None:
        """Each waiting toggle decides add or remove after the previous one lands."""
        store.gate = asyncio.Event()

        toggles = [asyncio.create_task(collection.toggle_card("sv1-1")) for _ in range(3)]
        await asyncio.sleep(0)

        assert store.calls == ["increment"]

        store.gate.set()
        await asyncio.gather(*toggles)

        assert store.calls == ["increment", "delete", "increment"]
        assert store.quantities == {("user-1", "sv1-1", "normal", "near_mint"): 1}
        assert collection.get("sv1-1").count(CardVariant.NORMAL) == 1
