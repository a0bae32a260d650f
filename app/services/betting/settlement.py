"""
Cross-game account settlement.

Every game is an independent pool with its own squares, quarter prizes and
bets. Settlement folds all of them into one settle-up ledger per person:

    squares_net = squares_won - squares_cost
    bets_net    = bets_won - bets_lost
    total_net   = squares_net + bets_net     (> 0: house owes the player)

There is no global player identity. Rows are joined on a settlement
identity, which by default is the initials string exactly as it appears on
squares, quarter winners and bets. Two different people who share initials
in different games therefore land on the same row; that is the documented
behaviour of InitialsIdentity, and a stronger identity can be plugged in
without touching the aggregation.

Pending bets count toward bets_wagered but neither bets_won nor bets_lost:
their outcome is not known yet. Reports flag this with has_pending_caveat.

Settled marks are a side ledger. They flag a row and drop it from the
collect/pay-out action lists, but never change the recomputed amounts.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from app.services.betting.lifecycle import BetStatus
from app.utils.money import ZERO, as_decimal, money_sum

STANDING_OWES = "owes"
STANDING_OWED = "owed"
STANDING_EVEN = "even"


@dataclass(frozen=True)
class QuarterSnapshot:
    quarter: str
    completed: bool
    winner: Optional[str]
    prize: Decimal


@dataclass
class GameSnapshot:
    """Everything settlement needs to know about one game."""
    game_id: str
    name: str
    bet_amount: Decimal
    squares: Sequence[Optional[str]]
    quarters: Sequence[QuarterSnapshot]
    bets: Sequence = ()


@dataclass(frozen=True)
class SettlementMark:
    """Operator acknowledgment that a player's balance was paid or collected."""
    initials: str
    amount: Decimal
    settled_at: Optional[datetime] = None


class SettlementIdentity(ABC):
    """Decides which row a square, quarter win or bet belongs to."""

    @abstractmethod
    def for_square(self, initials: Optional[str]) -> Optional[str]:
        ...

    @abstractmethod
    def for_quarter_winner(self, winner: Optional[str]) -> Optional[str]:
        ...

    @abstractmethod
    def for_bet(self, bet) -> Optional[str]:
        ...


class InitialsIdentity(SettlementIdentity):
    """Join on the raw initials string; empty values belong to nobody."""

    def for_square(self, initials):
        return initials or None

    def for_quarter_winner(self, winner):
        return winner or None

    def for_bet(self, bet):
        return bet.player_initials or None


@dataclass
class GameBreakdown:
    game_id: str
    name: str
    squares_count: int = 0
    squares_cost: Decimal = ZERO
    squares_won: Decimal = ZERO
    quarters_won: List[str] = field(default_factory=list)
    bets_wagered: Decimal = ZERO
    bets_won: Decimal = ZERO
    bets_lost: Decimal = ZERO
    pending_bets: int = 0
    pending_wagered: Decimal = ZERO

    @property
    def squares_net(self) -> Decimal:
        return self.squares_won - self.squares_cost

    @property
    def bets_net(self) -> Decimal:
        return self.bets_won - self.bets_lost

    @property
    def total_net(self) -> Decimal:
        return self.squares_net + self.bets_net


@dataclass
class SettlementRow:
    initials: str
    games: List[GameBreakdown] = field(default_factory=list)
    settled: bool = False
    settled_amount: Optional[Decimal] = None
    settled_at: Optional[datetime] = None

    @property
    def squares_cost(self) -> Decimal:
        return money_sum(g.squares_cost for g in self.games)

    @property
    def squares_won(self) -> Decimal:
        return money_sum(g.squares_won for g in self.games)

    @property
    def bets_wagered(self) -> Decimal:
        return money_sum(g.bets_wagered for g in self.games)

    @property
    def bets_won(self) -> Decimal:
        return money_sum(g.bets_won for g in self.games)

    @property
    def bets_lost(self) -> Decimal:
        return money_sum(g.bets_lost for g in self.games)

    @property
    def pending_bets(self) -> int:
        return sum(g.pending_bets for g in self.games)

    @property
    def pending_wagered(self) -> Decimal:
        return money_sum(g.pending_wagered for g in self.games)

    @property
    def squares_net(self) -> Decimal:
        return self.squares_won - self.squares_cost

    @property
    def bets_net(self) -> Decimal:
        return self.bets_won - self.bets_lost

    @property
    def total_net(self) -> Decimal:
        return self.squares_net + self.bets_net

    @property
    def standing(self) -> str:
        net = self.total_net
        if net < 0:
            return STANDING_OWES
        if net > 0:
            return STANDING_OWED
        return STANDING_EVEN

    @property
    def changed_since_settled(self) -> bool:
        """Underlying games moved after the row was marked settled."""
        return self.settled and self.settled_amount is not None and self.settled_amount != self.total_net


@dataclass
class SettlementSummary:
    to_collect: Decimal = ZERO
    to_pay_out: Decimal = ZERO
    outstanding_to_collect: Decimal = ZERO
    outstanding_to_pay_out: Decimal = ZERO
    players: int = 0
    settled_players: int = 0

    @property
    def house_balance(self) -> Decimal:
        return self.to_collect - self.to_pay_out


@dataclass
class SettlementReport:
    rows: List[SettlementRow]
    summary: SettlementSummary

    @property
    def collect_from(self) -> List[SettlementRow]:
        return [r for r in self.rows if r.standing == STANDING_OWES and not r.settled]

    @property
    def pay_out_to(self) -> List[SettlementRow]:
        return [r for r in self.rows if r.standing == STANDING_OWED and not r.settled]

    @property
    def even(self) -> List[SettlementRow]:
        return [r for r in self.rows if r.standing == STANDING_EVEN]

    @property
    def has_pending_caveat(self) -> bool:
        return any(r.pending_bets > 0 and not r.settled for r in self.rows)


class SettlementAggregator:
    """Builds the cross-game settle-up report."""

    def __init__(self, identity: Optional[SettlementIdentity] = None):
        self.identity = identity or InitialsIdentity()

    def aggregate(
        self,
        games: Iterable[GameSnapshot],
        marks: Optional[Mapping[str, SettlementMark]] = None,
    ) -> SettlementReport:
        marks = marks or {}
        rows: Dict[str, SettlementRow] = {}

        for game in games:
            for key, breakdown in self._game_breakdowns(game).items():
                row = rows.get(key)
                if row is None:
                    row = SettlementRow(initials=key)
                    rows[key] = row
                row.games.append(breakdown)

        for key, row in rows.items():
            mark = marks.get(key)
            if mark is not None:
                row.settled = True
                row.settled_amount = as_decimal(mark.amount)
                row.settled_at = mark.settled_at

        ordered = sorted(rows.values(), key=lambda r: (r.total_net, r.initials))
        return SettlementReport(rows=ordered, summary=self._summarize(ordered))

    def _game_breakdowns(self, game: GameSnapshot) -> Dict[str, GameBreakdown]:
        breakdowns: Dict[str, GameBreakdown] = {}
        bet_amount = as_decimal(game.bet_amount)

        def breakdown_for(key: str) -> GameBreakdown:
            if key not in breakdowns:
                breakdowns[key] = GameBreakdown(game_id=game.game_id, name=game.name)
            return breakdowns[key]

        for initials in game.squares:
            key = self.identity.for_square(initials)
            if key is None:
                continue
            b = breakdown_for(key)
            b.squares_count += 1
            b.squares_cost += bet_amount

        for quarter in game.quarters:
            if not quarter.completed:
                continue
            key = self.identity.for_quarter_winner(quarter.winner)
            if key is None:
                continue
            b = breakdown_for(key)
            b.squares_won += as_decimal(quarter.prize)
            b.quarters_won.append(quarter.quarter)

        for bet in game.bets:
            key = self.identity.for_bet(bet)
            if key is None:
                continue
            b = breakdown_for(key)
            status = BetStatus(bet.status)
            wager = as_decimal(bet.wager)
            # Gross exposure: every bet counts here, whatever its status
            b.bets_wagered += wager
            if status is BetStatus.WON:
                b.bets_won += as_decimal(bet.potential_payout)
            elif status is BetStatus.LOST:
                b.bets_lost += wager
            elif status is BetStatus.PENDING:
                b.pending_bets += 1
                b.pending_wagered += wager

        return breakdowns

    @staticmethod
    def _summarize(rows: Sequence[SettlementRow]) -> SettlementSummary:
        summary = SettlementSummary(players=len(rows))
        for row in rows:
            net = row.total_net
            if row.settled:
                summary.settled_players += 1
            if net < 0:
                summary.to_collect += -net
                if not row.settled:
                    summary.outstanding_to_collect += -net
            elif net > 0:
                summary.to_pay_out += net
                if not row.settled:
                    summary.outstanding_to_pay_out += net
        return summary
