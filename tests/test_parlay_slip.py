"""Unit tests for parlay leg toggling and conflict resolution.

Game lines conflict per market; player props conflict per market, player
and line. Toggling a leg already on the slip removes it.
"""
from decimal import Decimal

import pytest

from app.core.exceptions import InsufficientLegs
from app.services.betting.parlay_slip import (
    LegCandidate,
    ParlaySlip,
    conflict_group,
    leg_identity,
    toggle_leg,
)


def moneyline(team, odds=-110):
    return LegCandidate(kind="moneyline", market="h2h", outcome=team, odds=odds)


def spread(team, point, odds=-110):
    return LegCandidate(kind="spread", market="spreads", outcome=team, odds=odds, point=point)


def prop(player, side, point, market="player_pass_yds", odds=-115):
    return LegCandidate(kind="prop", market=market, outcome=side, odds=odds, point=point, player=player)


class TestKeys:

    def test_game_line_identity_and_group(self):
        leg = moneyline("Chiefs")
        assert leg_identity(leg) == "moneyline|h2h|Chiefs"
        assert conflict_group(leg) == "moneyline|h2h"

    def test_prop_identity_and_group(self):
        leg = prop("Patrick Mahomes", "Over", 275.5)
        assert leg_identity(leg) == "prop|player_pass_yds|Patrick Mahomes|Over|275.5"
        assert conflict_group(leg) == "prop|player_pass_yds|Patrick Mahomes|275.5"


class TestToggleLeg:

    def test_adds_new_leg(self):
        assert toggle_leg([], moneyline("Chiefs")) == [moneyline("Chiefs")]

    def test_same_leg_deselects(self):
        legs = [moneyline("Chiefs"), spread("Eagles", 1.5)]
        assert toggle_leg(legs, moneyline("Chiefs")) == [spread("Eagles", 1.5)]

    def test_other_side_of_market_replaces(self):
        legs = [moneyline("Chiefs"), spread("Eagles", 1.5)]
        result = toggle_leg(legs, moneyline("Eagles"))
        assert result == [spread("Eagles", 1.5), moneyline("Eagles")]

    def test_different_markets_coexist(self):
        result = toggle_leg([moneyline("Chiefs")], spread("Chiefs", -1.5))
        assert len(result) == 2

    def test_prop_over_under_same_line_conflict(self):
        result = toggle_leg([prop("Travis Kelce", "Over", 64.5)], prop("Travis Kelce", "Under", 64.5))
        assert result == [prop("Travis Kelce", "Under", 64.5)]

    def test_prop_different_line_does_not_conflict(self):
        result = toggle_leg([prop("Travis Kelce", "Over", 64.5)], prop("Travis Kelce", "Over", 74.5))
        assert len(result) == 2

    def test_prop_different_player_does_not_conflict(self):
        result = toggle_leg([prop("Travis Kelce", "Over", 64.5)], prop("A.J. Brown", "Over", 64.5))
        assert len(result) == 2

    def test_input_not_mutated(self):
        legs = [moneyline("Chiefs")]
        toggle_leg(legs, moneyline("Eagles"))
        assert legs == [moneyline("Chiefs")]

    def test_never_two_legs_from_one_group(self):
        legs = []
        for candidate in [moneyline("Chiefs"), moneyline("Eagles"), moneyline("Chiefs"), spread("Eagles", 1.5)]:
            legs = toggle_leg(legs, candidate)
        groups = [conflict_group(leg) for leg in legs]
        assert len(groups) == len(set(groups))


class TestParlaySlip:

    def test_empty_slip_has_no_price(self):
        slip = ParlaySlip()
        assert not slip.is_ready
        assert slip.combined_decimal() == 1.0
        assert slip.combined_odds() is None
        assert slip.max_wager(100) == Decimal("0.00")

    def test_two_legs_priced(self):
        slip = ParlaySlip([moneyline("Chiefs", 100), spread("Eagles", 1.5, 100)])
        assert slip.is_ready
        assert slip.combined_decimal() == pytest.approx(4.0)
        assert slip.combined_odds() == 300
        assert slip.max_wager(100) == Decimal("33.33")

    def test_toggle_and_remove(self):
        slip = ParlaySlip()
        slip.toggle(moneyline("Chiefs"))
        slip.toggle(spread("Chiefs", -1.5))
        assert len(slip) == 2
        slip.remove("moneyline|h2h|Chiefs")
        assert slip.legs == [spread("Chiefs", -1.5)]

    def test_clear(self):
        slip = ParlaySlip([moneyline("Chiefs"), spread("Chiefs", -1.5)])
        slip.clear()
        assert len(slip) == 0

    def test_quote_requires_two_legs(self):
        slip = ParlaySlip([moneyline("Chiefs")])
        with pytest.raises(InsufficientLegs):
            slip.quote(5, 100, 0.25)

    def test_quote(self):
        slip = ParlaySlip([moneyline("Chiefs"), prop("Travis Kelce", "Over", 64.5, odds=-110)])
        quote = slip.quote(5, 100, 0.25)
        assert quote.leg_count == 2
        assert quote.potential_payout == Decimal("13.22")

    def test_prop_leg_spec_carries_player_in_outcome(self):
        spec = prop("Travis Kelce", "Over", 64.5).to_leg_spec()
        assert spec.outcome == "Travis Kelce Over"
        assert spec.description == "Travis Kelce player_pass_yds Over 64.5"

    def test_constructor_resolves_conflicts(self):
        slip = ParlaySlip([moneyline("Chiefs"), moneyline("Eagles")])
        assert slip.legs == [moneyline("Eagles")]

    def test_constructor_keeps_repeated_leg(self):
        slip = ParlaySlip([moneyline("Chiefs"), spread("Eagles", 1.5), moneyline("Chiefs")])
        assert slip.legs == [spread("Eagles", 1.5), moneyline("Chiefs")]
        assert slip.is_ready
