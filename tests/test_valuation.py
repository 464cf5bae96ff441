"""Tests for card valuation."""

import math

import pytest

from pokevault.models.card import CardPricing
from pokevault.models.variant import VARIANTS, CardVariant
from pokevault.services.valuation import (
    calculate_card_value,
    collection_value,
    resolve_unit_price,
    set_market_value,
)


class TestResolveUnitPrice:
    def test_prefers_average_sell(self) -> None:
        pricing = CardPricing(avg_sell_price=3.0, low_price=1.0, trend_price=2.0)

        assert resolve_unit_price(pricing, CardVariant.NORMAL) == 3.0

    def test_falls_back_to_low_then_trend(self) -> None:
        """Missing average sell uses low; missing low uses trend."""
        pricing = CardPricing(low_price=5.0, trend_price=9.0)
        assert resolve_unit_price(pricing, CardVariant.HOLO) == 5.0
        assert resolve_unit_price(CardPricing(trend_price=9.0), CardVariant.HOLO) == 9.0

    def test_zero_counts_as_missing(self) -> None:
        """A zero price falls through to the next field."""
        pricing = CardPricing(avg_sell_price=0.0, low_price=0.0, trend_price=1.5)

        assert resolve_unit_price(pricing, CardVariant.NORMAL) == 1.5

    def test_reverse_holo_uses_reverse_fields(self) -> None:
        pricing = CardPricing(avg_sell_price=1.0, reverse_holo_sell=4.0, reverse_holo_low=2.0)

        assert resolve_unit_price(pricing, CardVariant.REVERSE_HOLO) == 4.0

    def test_reverse_holo_fallback_chain(self) -> None:
        """Reverse holo: sell, low, trend, then the standard price."""
        assert (
            resolve_unit_price(
                CardPricing(reverse_holo_low=2.0, reverse_holo_trend=3.0),
                CardVariant.REVERSE_HOLO,
            )
            == 2.0
        )
        assert (
            resolve_unit_price(CardPricing(reverse_holo_trend=3.0), CardVariant.REVERSE_HOLO)
            == 3.0
        )
        assert resolve_unit_price(CardPricing(low_price=0.5), CardVariant.REVERSE_HOLO) == 0.5

    @pytest.mark.parametrize(
        "variant",
        [
            CardVariant.POKEBALL_PATTERN,
            CardVariant.MASTERBALL_PATTERN,
            CardVariant.FIRST_EDITION,
        ],
    )
    def test_other_variants_use_standard_price(self, variant: CardVariant) -> None:
        pricing = CardPricing(avg_sell_price=7.0, reverse_holo_sell=20.0)

        assert resolve_unit_price(pricing, variant) == 7.0

    @pytest.mark.parametrize("variant", VARIANTS)
    def test_unpriced_card_is_zero(self, variant: CardVariant) -> None:
        assert resolve_unit_price(CardPricing(), variant) == 0.0

    def test_nan_and_negative_are_ignored(self) -> None:
        """Non-finite and negative prices never produce a negative value."""
        pricing = CardPricing(avg_sell_price=math.nan, low_price=-3.0, trend_price=math.inf)

        assert resolve_unit_price(pricing, CardVariant.NORMAL) == 0.0


class TestCalculateCardValue:
    def test_fallback_to_low_price(self, make_summary) -> None:
        """No average sell: two normal copies at low price 5 are worth 10."""
        pricing = CardPricing(avg_sell_price=None, low_price=5.0, trend_price=9.0)

        assert calculate_card_value(pricing, make_summary(normal=2)) == 10.0

    def test_sums_variants(self, make_summary) -> None:
        pricing = CardPricing(avg_sell_price=2.0, reverse_holo_sell=3.0)
        summary = make_summary(normal=1, holo=2, reverse_holo=1)

        assert calculate_card_value(pricing, summary) == pytest.approx(2.0 + 4.0 + 3.0)

    def test_all_null_pricing(self, make_summary) -> None:
        summary = make_summary(normal=3, reverse_holo=2)

        assert calculate_card_value(CardPricing(), summary) == 0.0

    def test_no_summary(self) -> None:
        assert calculate_card_value(CardPricing(avg_sell_price=10.0), None) == 0.0

    def test_never_negative(self, make_summary) -> None:
        pricing = CardPricing(avg_sell_price=-1.0, reverse_holo_sell=-2.0)
        summary = make_summary(normal=1, reverse_holo=1)

        assert calculate_card_value(pricing, summary) >= 0.0


class TestAggregateValues:
    def test_set_market_value_uses_average_sell(self, make_card) -> None:
        """One copy of each card; unpriced cards add nothing."""
        cards = [
            make_card(card_id="a", avg_sell_price=1.5),
            make_card(card_id="b", low_price=10.0),
            make_card(card_id="c", avg_sell_price=2.5),
        ]

        assert set_market_value(cards) == pytest.approx(4.0)

    def test_collection_value(self, make_card, make_summary) -> None:
        cards = [
            make_card(card_id="a", avg_sell_price=1.0),
            make_card(card_id="b", avg_sell_price=5.0),
        ]
        summaries = {"a": make_summary(card_id="a", normal=3)}

        assert collection_value(cards, summaries) == pytest.approx(3.0)
