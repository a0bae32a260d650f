"""Unit tests for the per-game bet ledger."""
from decimal import Decimal
from types import SimpleNamespace

from app.services.betting.ledger import build_game_ledger


def bet(player_id, initials, status, wager, potential_payout):
    return SimpleNamespace(
        player_id=player_id,
        player_initials=initials,
        status=status,
        wager=Decimal(str(wager)),
        potential_payout=Decimal(str(potential_payout)),
    )


SAMPLE_BETS = [
    bet("p1", "AB", "won", "10.00", "9.09"),
    bet("p1", "AB", "lost", "5.00", "4.55"),
    bet("p2", "CD", "pending", "4.00", "8.00"),
    bet("p2", "CD", "push", "3.00", "2.73"),
    bet("p2", "CD", "cancelled", "2.00", "1.82"),
    bet("p3", "EF", "void", "1.00", "1.00"),
]


class TestLedgerTotals:

    def test_house_totals(self):
        totals = build_game_ledger(SAMPLE_BETS).totals
        assert totals.total_bets == 6
        assert totals.pending_bets == 1
        assert totals.settled_bets == 5
        # push, void and cancelled stakes are not at risk
        assert totals.total_wagered == Decimal("19.00")
        assert totals.total_pending_liability == Decimal("8.00")
        assert totals.house_profit == Decimal("-4.09")

    def test_empty_game(self):
        ledger = build_game_ledger([])
        assert ledger.totals.total_bets == 0
        assert ledger.totals.house_profit == Decimal("0.00")
        assert ledger.players == []


class TestPlayerStats:

    def test_players_in_first_bet_order(self):
        ledger = build_game_ledger(SAMPLE_BETS)
        assert [p.initials for p in ledger.players] == ["AB", "CD", "EF"]

    def test_winner_and_loser(self):
        ab = build_game_ledger(SAMPLE_BETS).players[0]
        assert ab.total_bets == 2
        assert ab.bets_won == 1
        assert ab.bets_lost == 1
        assert ab.total_wagered == Decimal("15.00")
        assert ab.total_won == Decimal("9.09")
        assert ab.total_lost == Decimal("5.00")
        assert ab.net == Decimal("4.09")

    def test_pending_and_returned_stakes(self):
        cd = build_game_ledger(SAMPLE_BETS).players[1]
        assert cd.total_bets == 3
        assert cd.bets_pending == 1
        assert cd.total_wagered == Decimal("4.00")
        assert cd.pending_wagers == Decimal("4.00")
        assert cd.pending_potential_payout == Decimal("8.00")
        assert cd.net == Decimal("0.00")

    def test_void_only_player_contributes_nothing(self):
        ef = build_game_ledger(SAMPLE_BETS).players[2]
        assert ef.total_wagered == Decimal("0.00")
        assert ef.net == Decimal("0.00")

    def test_display_names(self):
        ledger = build_game_ledger(SAMPLE_BETS, {"p1": "Alice Brown"})
        assert ledger.players[0].name == "Alice Brown"
        assert ledger.players[1].name == "CD"
