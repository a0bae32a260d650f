"""Unit tests for the cross-game settlement aggregator.

Games are fed in as snapshots; bets are plain objects shaped like the ORM
rows. Amounts are checked in Decimal so a cent of drift fails the test.
"""
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from app.services.betting.settlement import (
    GameSnapshot,
    InitialsIdentity,
    QuarterSnapshot,
    SettlementAggregator,
    SettlementIdentity,
    SettlementMark,
)


def quarters(**winners):
    """q1..q4 with $15/$30/$15/$40 prizes; winners given as q1="AB"."""
    prizes = {"q1": "15", "q2": "30", "q3": "15", "q4": "40"}
    return [
        QuarterSnapshot(quarter=q, completed=q in winners, winner=winners.get(q), prize=Decimal(prizes[q]))
        for q in ("q1", "q2", "q3", "q4")
    ]


def squares(**counts):
    """A 100-square grid with `counts` squares per initials, rest empty."""
    grid = []
    for initials, n in counts.items():
        grid.extend([initials] * n)
    return grid + [None] * (100 - len(grid))


def bet(initials, status, wager, potential_payout):
    return SimpleNamespace(
        player_initials=initials,
        status=status,
        wager=Decimal(str(wager)),
        potential_payout=Decimal(str(potential_payout)),
    )


def two_game_scenario():
    game1 = GameSnapshot(
        game_id="g1",
        name="Game 1",
        bet_amount=Decimal("1"),
        squares=squares(AB=3),
        quarters=quarters(q1="AB"),
        bets=[bet("AB", "won", 5, 9)],
    )
    game2 = GameSnapshot(
        game_id="g2",
        name="Game 2",
        bet_amount=Decimal("2"),
        squares=squares(AB=2),
        quarters=quarters(),
    )
    return [game1, game2]


class TestAggregation:

    def test_player_across_two_games(self):
        report = SettlementAggregator().aggregate(two_game_scenario())
        assert len(report.rows) == 1
        row = report.rows[0]
        assert row.initials == "AB"
        assert row.squares_cost == Decimal("7")
        assert row.squares_won == Decimal("15")
        assert row.squares_net == Decimal("8")
        assert row.bets_wagered == Decimal("5")
        assert row.bets_won == Decimal("9")
        assert row.bets_lost == Decimal("0")
        assert row.bets_net == Decimal("9")
        assert row.total_net == Decimal("17")
        assert row.standing == "owed"
        assert [r.initials for r in report.pay_out_to] == ["AB"]
        assert report.summary.to_pay_out == Decimal("17")
        assert report.summary.house_balance == Decimal("-17")

    def test_per_game_breakdown(self):
        row = SettlementAggregator().aggregate(two_game_scenario()).rows[0]
        g1, g2 = row.games
        assert (g1.game_id, g1.squares_count, g1.total_net) == ("g1", 3, Decimal("21"))
        assert g1.quarters_won == ["q1"]
        assert (g2.game_id, g2.squares_count, g2.total_net) == ("g2", 2, Decimal("-4"))

    def test_squares_only_player(self):
        game = GameSnapshot("g1", "Game 1", Decimal("1"), squares(CD=10), quarters(q4="CD"))
        row = SettlementAggregator().aggregate([game]).rows[0]
        assert row.bets_wagered == Decimal("0")
        assert row.total_net == Decimal("30")

    def test_lost_bet_counts_wager(self):
        game = GameSnapshot("g1", "Game 1", Decimal("1"), squares(), quarters(), bets=[bet("EF", "lost", 4, 3.64)])
        row = SettlementAggregator().aggregate([game]).rows[0]
        assert row.bets_lost == Decimal("4")
        assert row.total_net == Decimal("-4")
        assert row.standing == "owes"

    def test_push_void_cancelled_only_count_as_wagered(self):
        game = GameSnapshot(
            "g1", "Game 1", Decimal("1"), squares(), quarters(),
            bets=[bet("GH", "push", 2, 1.8), bet("GH", "void", 3, 2.7), bet("GH", "cancelled", 1, 0.9)],
        )
        row = SettlementAggregator().aggregate([game]).rows[0]
        assert row.bets_wagered == Decimal("6")
        assert row.bets_net == Decimal("0")

    def test_incomplete_quarter_winner_ignored(self):
        game = GameSnapshot(
            "g1", "Game 1", Decimal("1"), squares(AB=1),
            [QuarterSnapshot("q1", completed=False, winner="AB", prize=Decimal("15"))],
        )
        row = SettlementAggregator().aggregate([game]).rows[0]
        assert row.squares_won == Decimal("0")

    def test_rows_sorted_by_net_then_initials(self):
        game = GameSnapshot(
            "g1", "Game 1", Decimal("1"), squares(ZZ=1, AA=1, MM=5), quarters(q2="MM"),
        )
        report = SettlementAggregator().aggregate([game])
        assert [r.initials for r in report.rows] == ["AA", "ZZ", "MM"]


class TestEvenAndPending:

    def test_net_zero_across_many_games_is_even(self):
        # +$14, -$1 x 4, then -$10 in the last game: mixed signs, net zero
        games = [GameSnapshot("g0", "Game 0", Decimal("1"), squares(JK=1), quarters(q1="JK"))]
        games += [
            GameSnapshot(f"g{i}", f"Game {i}", Decimal("1"), squares(JK=1), quarters())
            for i in range(1, 5)
        ]
        games.append(
            GameSnapshot("g5", "Game 5", Decimal("1"), squares(), quarters(), bets=[bet("JK", "lost", 10, 9.09)])
        )
        report = SettlementAggregator().aggregate(games)
        row = report.rows[0]
        assert len(row.games) == 6
        assert row.total_net == Decimal("0")
        assert row.standing == "even"
        assert report.even == [row]
        assert report.collect_from == []
        assert report.pay_out_to == []

    def test_pending_bets_excluded_but_flagged(self):
        game = GameSnapshot(
            "g1", "Game 1", Decimal("1"), squares(AB=1), quarters(), bets=[bet("AB", "pending", 5, 4.55)],
        )
        report = SettlementAggregator().aggregate([game])
        row = report.rows[0]
        assert row.bets_wagered == Decimal("5")
        assert row.bets_won == Decimal("0")
        assert row.bets_lost == Decimal("0")
        assert row.pending_bets == 1
        assert row.pending_wagered == Decimal("5")
        assert row.total_net == Decimal("-1")
        assert report.has_pending_caveat

    def test_pending_caveat_cleared_by_settled_mark(self):
        game = GameSnapshot(
            "g1", "Game 1", Decimal("1"), squares(AB=1), quarters(), bets=[bet("AB", "pending", 5, 4.55)],
        )
        marks = {"AB": SettlementMark("AB", Decimal("-1"))}
        assert not SettlementAggregator().aggregate([game], marks).has_pending_caveat


class TestSettlementMarks:

    def game(self):
        return GameSnapshot("g1", "Game 1", Decimal("1"), squares(AB=2, CD=3), quarters(q1="AB"))

    def test_marked_row_leaves_action_lists_but_keeps_amounts(self):
        settled_at = datetime(2026, 2, 9, 3, 0, 0)
        marks = {"AB": SettlementMark("AB", Decimal("13"), settled_at)}
        report = SettlementAggregator().aggregate([self.game()], marks)
        ab = next(r for r in report.rows if r.initials == "AB")
        assert ab.settled
        assert ab.settled_at == settled_at
        assert ab.total_net == Decimal("13")
        assert not ab.changed_since_settled
        assert report.pay_out_to == []
        assert [r.initials for r in report.collect_from] == ["CD"]

    def test_summary_totals_vs_outstanding(self):
        marks = {"AB": SettlementMark("AB", Decimal("13"))}
        summary = SettlementAggregator().aggregate([self.game()], marks).summary
        assert summary.to_pay_out == Decimal("13")
        assert summary.to_collect == Decimal("3")
        assert summary.outstanding_to_pay_out == Decimal("0")
        assert summary.outstanding_to_collect == Decimal("3")
        assert summary.players == 2
        assert summary.settled_players == 1

    def test_changed_since_settled(self):
        marks = {"AB": SettlementMark("AB", Decimal("10"))}
        report = SettlementAggregator().aggregate([self.game()], marks)
        ab = next(r for r in report.rows if r.initials == "AB")
        assert ab.changed_since_settled

    def test_mark_for_unknown_initials_is_ignored(self):
        marks = {"ZZ": SettlementMark("ZZ", Decimal("5"))}
        report = SettlementAggregator().aggregate([self.game()], marks)
        assert {r.initials for r in report.rows} == {"AB", "CD"}


class TestIdentity:

    def test_initials_join_is_exact(self):
        game = GameSnapshot("g1", "Game 1", Decimal("1"), squares(AB=1, ab=1), quarters())
        report = SettlementAggregator(InitialsIdentity()).aggregate([game])
        assert {r.initials for r in report.rows} == {"AB", "ab"}

    def test_custom_identity(self):
        class CaseInsensitive(SettlementIdentity):
            def for_square(self, initials):
                return initials.upper() if initials else None

            def for_quarter_winner(self, winner):
                return winner.upper() if winner else None

            def for_bet(self, bet):
                return bet.player_initials.upper()

        game = GameSnapshot("g1", "Game 1", Decimal("1"), squares(AB=1, ab=1), quarters())
        report = SettlementAggregator(CaseInsensitive()).aggregate([game])
        assert len(report.rows) == 1
        assert report.rows[0].squares_cost == Decimal("2")
