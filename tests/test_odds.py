"""Unit tests for the odds math library.

Test Strategy:
1. American <-> decimal conversions, both signs
2. Payout on favorites and underdogs
3. Max wager under a payout cap (strictly under, cent-granular)
4. Parlay combination
5. Invalid inputs (zero odds, decimal odds <= 1)
"""
from decimal import Decimal

import pytest

from app.core.exceptions import InvalidOdds
from app.services.betting.odds import (
    american_to_decimal,
    combine_parlay_american_odds,
    combine_parlay_decimal_odds,
    decimal_to_american,
    format_american,
    max_wager_for_parlay,
    max_wager_for_payout_cap,
    parlay_payout,
    payout,
)


class TestConversions:
    """American and decimal odds conversions."""

    def test_favorite_to_decimal(self):
        assert american_to_decimal(-110) == pytest.approx(1.909091, abs=1e-6)
        assert american_to_decimal(-200) == pytest.approx(1.5)

    def test_underdog_to_decimal(self):
        assert american_to_decimal(150) == pytest.approx(2.5)
        assert american_to_decimal(100) == pytest.approx(2.0)

    def test_decimal_to_american(self):
        assert decimal_to_american(2.5) == 150
        assert decimal_to_american(2.0) == 100
        assert decimal_to_american(1.5) == -200

    def test_decimal_near_one_gives_large_favorite(self):
        assert decimal_to_american(1.01) == -10000

    def test_zero_american_odds_rejected(self):
        with pytest.raises(InvalidOdds):
            american_to_decimal(0)

    def test_decimal_at_or_below_one_rejected(self):
        with pytest.raises(InvalidOdds):
            decimal_to_american(1.0)
        with pytest.raises(InvalidOdds):
            decimal_to_american(0.5)

    def test_invalid_odds_is_a_value_error(self):
        with pytest.raises(ValueError):
            american_to_decimal(0)

    @pytest.mark.parametrize("odds", [-500, -110, -101, 100, 150, 500])
    def test_round_trip_within_one(self, odds):
        assert abs(decimal_to_american(american_to_decimal(odds)) - odds) <= 1

    def test_halves_round_up(self):
        # 2.125 profit per unit is exactly +212.5
        assert decimal_to_american(3.125) == 213
        assert decimal_to_american(1.125) == -800

    def test_format_american(self):
        assert format_american(150) == "+150"
        assert format_american(-110) == "-110"


class TestPayout:
    """Profit on a winning wager, stake excluded."""

    def test_favorite_payout(self):
        assert payout(-110, 11) == pytest.approx(10.0)
        assert payout(-110, 10) == pytest.approx(9.0909, abs=1e-4)

    def test_underdog_payout(self):
        assert payout(150, 10) == pytest.approx(15.0)

    def test_even_money(self):
        assert payout(100, 7) == pytest.approx(7.0)
        assert payout(-100, 7) == pytest.approx(7.0)

    @pytest.mark.parametrize("odds", [-500, -110, 100, 150, 500])
    @pytest.mark.parametrize("w1, w2", [(0.25, 0.26), (1, 10), (9.99, 10), (50, 500)])
    def test_payout_increases_with_wager(self, odds, w1, w2):
        assert payout(odds, w1) < payout(odds, w2)

    def test_zero_odds_payout_rejected(self):
        with pytest.raises(InvalidOdds):
            payout(0, 10)

    def test_parlay_payout(self):
        assert parlay_payout(4.0, 5) == pytest.approx(15.0)


class TestMaxWager:
    """Largest wager keeping payout strictly under the cap."""

    def test_favorite_exact_bound_steps_down_a_cent(self):
        # 20 * 110 / 100 = 22.00 would pay exactly 20
        assert max_wager_for_payout_cap(-110, 20) == Decimal("21.99")

    def test_underdog_is_floored(self):
        assert max_wager_for_payout_cap(150, 20) == Decimal("13.33")

    def test_underdog_exact_bound_steps_down_a_cent(self):
        assert max_wager_for_payout_cap(200, 20) == Decimal("9.99")

    @pytest.mark.parametrize("odds", [-10000, -500, -110, -105, 100, 105, 150, 333, 760, 5000])
    @pytest.mark.parametrize("cap", [1, 20, 37.5, 100])
    def test_payout_at_max_wager_stays_under_cap(self, odds, cap):
        wager = max_wager_for_payout_cap(odds, cap)
        assert payout(odds, wager) < cap
        # One more cent reaches the cap
        assert payout(odds, wager + Decimal("0.01")) >= cap - 1e-9

    def test_non_positive_cap_gives_zero(self):
        assert max_wager_for_payout_cap(-110, 0) == Decimal("0.00")

    def test_parlay_max_wager(self):
        # +100/+100 parlay: profit 3 per unit
        assert max_wager_for_parlay(4.0, 100) == Decimal("33.33")

    def test_parlay_max_wager_degenerate_odds(self):
        assert max_wager_for_parlay(1.0, 100) == Decimal("0.00")
        assert max_wager_for_parlay(0.9, 100) == Decimal("0.00")


class TestParlayCombination:
    """Decimal odds multiply across legs."""

    def test_two_standard_legs(self):
        combined = combine_parlay_decimal_odds([-110, -110])
        assert combined == pytest.approx(3.644628, abs=1e-6)
        assert combine_parlay_american_odds([-110, -110]) == 264

    def test_even_money_legs(self):
        assert combine_parlay_decimal_odds([100, 100]) == pytest.approx(4.0)
        assert combine_parlay_american_odds([100, 100]) == 300

    def test_half_point_combined_odds_round_up(self):
        # 1.25 * 2.5 = 3.125 -> +212.5
        assert combine_parlay_american_odds([-400, 150]) == 213

    def test_mixed_legs(self):
        assert combine_parlay_decimal_odds([150, -200, 100]) == pytest.approx(2.5 * 1.5 * 2.0)

    def test_empty_legs_rejected(self):
        with pytest.raises(InvalidOdds):
            combine_parlay_decimal_odds([])

    def test_zero_odds_leg_rejected(self):
        with pytest.raises(InvalidOdds):
            combine_parlay_decimal_odds([-110, 0])
