"""Tests for completion evaluation."""

from itertools import product

import pytest

from pokevault.models.variant import CardVariant
from pokevault.services.completion import (
    NOT_COLLECTED,
    CollectionMode,
    CompletionStatus,
    evaluate_completion,
)

NORMAL_HOLO = frozenset({CardVariant.NORMAL, CardVariant.HOLO})


class TestEvaluateCompletion:
    def test_collected_but_not_mastered(self, make_summary) -> None:
        """One of two variants owned: collected, not mastered."""
        status = evaluate_completion(NORMAL_HOLO, make_summary(normal=1, holo=0))

        assert status.is_collected is True
        assert status.is_mastered is False

    def test_mastered(self, make_summary) -> None:
        """Every available variant owned: mastered."""
        status = evaluate_completion(NORMAL_HOLO, make_summary(normal=1, holo=2))

        assert status == CompletionStatus(is_collected=True, is_mastered=True)

    def test_extra_variants_do_not_count(self, make_summary) -> None:
        """Owning a variant outside the available set does not master the card."""
        status = evaluate_completion(NORMAL_HOLO, make_summary(normal=1, reverse_holo=3))

        assert status.is_collected is True
        assert status.is_mastered is False

    def test_no_summary(self) -> None:
        """A card without a summary is neither collected nor mastered."""
        assert evaluate_completion(NORMAL_HOLO, None) == NOT_COLLECTED

    def test_empty_summary(self, make_summary) -> None:
        """A summary with nothing owned is not collected."""
        assert evaluate_completion(NORMAL_HOLO, make_summary()) == NOT_COLLECTED

    def test_no_available_variants(self, make_summary) -> None:
        """With nothing to master, a collected card is mastered."""
        status = evaluate_completion(frozenset(), make_summary(normal=1))

        assert status.is_mastered is True

    def test_no_available_variants_uncollected(self) -> None:
        """The vacuous case still requires the card to be collected."""
        assert evaluate_completion(frozenset(), None).is_mastered is False

    @pytest.mark.parametrize(("normal", "holo"), list(product(range(3), repeat=2)))
    def test_mastery_implies_collection(self, make_summary, normal: int, holo: int) -> None:
        """A mastered card is always collected."""
        status = evaluate_completion(NORMAL_HOLO, make_summary(normal=normal, holo=holo))

        if status.is_mastered:
            assert status.is_collected


class TestIsComplete:
    def test_regular_mode_uses_collected(self) -> None:
        status = CompletionStatus(is_collected=True, is_mastered=False)

        assert status.is_complete(CollectionMode.REGULAR) is True

    def test_master_mode_uses_mastered(self) -> None:
        status = CompletionStatus(is_collected=True, is_mastered=False)

        assert status.is_complete(CollectionMode.MASTER) is False
