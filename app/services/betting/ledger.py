"""
Per-game bet ledger.

Recomputed from the game's bets on every request; nothing here is cached
or maintained incrementally.

House view:
- total_wagered counts the stake of pending, won and lost bets only
  (push, void and cancelled stakes go back to the bettor untouched)
- total_pending_liability is the payout owed if every pending bet wins
- house_profit = stakes of lost bets - payouts of won bets
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from app.services.betting.lifecycle import STAKE_AT_RISK, BetStatus
from app.utils.money import ZERO, as_decimal


@dataclass
class PlayerBetStats:
    player_id: str
    initials: str
    name: str
    total_bets: int = 0
    bets_won: int = 0
    bets_lost: int = 0
    bets_pending: int = 0
    total_wagered: Decimal = ZERO
    total_won: Decimal = ZERO
    total_lost: Decimal = ZERO
    pending_wagers: Decimal = ZERO
    pending_potential_payout: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.total_won - self.total_lost


@dataclass
class LedgerTotals:
    total_bets: int = 0
    pending_bets: int = 0
    settled_bets: int = 0
    total_wagered: Decimal = ZERO
    total_pending_liability: Decimal = ZERO
    house_profit: Decimal = ZERO


@dataclass
class GameLedger:
    totals: LedgerTotals = field(default_factory=LedgerTotals)
    players: List[PlayerBetStats] = field(default_factory=list)


def build_game_ledger(bets: Iterable, player_names: Optional[Mapping[str, str]] = None) -> GameLedger:
    """
    Roll a game's bets up into house totals and per-player stats.

    Args:
        bets: objects exposing player_id, player_initials, status, wager and
            potential_payout (ORM bets or anything shaped like them)
        player_names: optional player_id -> display name; initials are used
            for players missing from it

    Returns:
        GameLedger with players in first-bet order
    """
    player_names = player_names or {}
    totals = LedgerTotals()
    by_player: Dict[str, PlayerBetStats] = {}

    for bet in bets:
        status = BetStatus(bet.status)
        wager = as_decimal(bet.wager)
        potential = as_decimal(bet.potential_payout)

        stats = by_player.get(bet.player_id)
        if stats is None:
            stats = PlayerBetStats(
                player_id=bet.player_id,
                initials=bet.player_initials,
                name=player_names.get(bet.player_id, bet.player_initials),
            )
            by_player[bet.player_id] = stats

        stats.total_bets += 1
        totals.total_bets += 1

        if status in STAKE_AT_RISK:
            stats.total_wagered += wager
            totals.total_wagered += wager

        if status is BetStatus.PENDING:
            stats.bets_pending += 1
            stats.pending_wagers += wager
            stats.pending_potential_payout += potential
            totals.pending_bets += 1
            totals.total_pending_liability += potential
            continue

        totals.settled_bets += 1
        if status is BetStatus.WON:
            stats.bets_won += 1
            stats.total_won += potential
            totals.house_profit -= potential
        elif status is BetStatus.LOST:
            stats.bets_lost += 1
            stats.total_lost += wager
            totals.house_profit += wager

    return GameLedger(totals=totals, players=list(by_player.values()))
