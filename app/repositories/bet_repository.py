"""
Bet Repository.

Status changes never go through attribute assignment on a loaded bet. They
are conditional UPDATEs that only match rows still in the expected status,
so two concurrent settle/cancel requests cannot both succeed: the loser's
UPDATE matches zero rows.

Usage:
    repo = BetRepository(db)
    if not repo.transition_status(bet_id, BetStatus.WON, utc_now()):
        ...  # someone else got there first, or the bet does not exist
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import selectinload, with_polymorphic

from app.models import Bet, ParlayBet, StraightBet
from app.repositories.base import BaseRepository
from app.services.betting.lifecycle import BetStatus

AnyBet = with_polymorphic(Bet, [StraightBet, ParlayBet])


class BetRepository(BaseRepository[Bet]):
    """Repository for straight and parlay bets."""

    def __init__(self, db):
        super().__init__(Bet, db)

    # ========================================================================
    # Lookups
    # ========================================================================

    def find_by_id(self, id: str) -> Optional[Bet]:
        """Find a bet of either type, legs included."""
        return self.db.query(AnyBet).options(
            selectinload(AnyBet.ParlayBet.legs)
        ).filter(AnyBet.id == id).first()

    def find_by_game(self, game_id: str, player_id: Optional[str] = None) -> List[Bet]:
        """
        Bets for a game in placement order, optionally for a single player.
        """
        query = self.db.query(AnyBet).options(
            selectinload(AnyBet.ParlayBet.legs)
        ).filter(AnyBet.game_id == game_id)
        if player_id:
            query = query.filter(AnyBet.player_id == player_id)
        return query.order_by(AnyBet.placed_at, AnyBet.id).all()

    def pending_ids(self, game_id: str) -> List[str]:
        rows = self.db.query(Bet.id).filter(
            Bet.game_id == game_id,
            Bet.status == BetStatus.PENDING.value
        ).all()
        return [row[0] for row in rows]

    # ========================================================================
    # Compare-and-set status transitions
    # ========================================================================

    def transition_status(
        self,
        bet_id: str,
        target: BetStatus,
        settled_at: datetime,
        expected: BetStatus = BetStatus.PENDING,
    ) -> bool:
        """
        Move one bet from expected to target.

        Returns:
            True if this call made the transition, False if no row matched
            (missing bet, or status no longer equal to expected)
        """
        result = self.db.execute(
            update(Bet)
            .where(Bet.id == bet_id, Bet.status == expected.value)
            .values(status=target.value, settled_at=settled_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def bulk_transition(self, game_id: str, target: BetStatus, settled_at: datetime) -> List[str]:
        """
        Move every pending bet of a game to target in one statement.

        Returns:
            Ids of the bets this call settled. Bets settled concurrently by
            someone else between the read and the UPDATE are left out.
        """
        candidate_ids = self.pending_ids(game_id)
        if not candidate_ids:
            return []

        result = self.db.execute(
            update(Bet)
            .where(
                Bet.id.in_(candidate_ids),
                Bet.status == BetStatus.PENDING.value
            )
            .values(status=target.value, settled_at=settled_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == len(candidate_ids):
            return candidate_ids

        # Lost a race on some rows: report only the ones stamped by this call
        rows = self.db.query(Bet.id).filter(
            Bet.id.in_(candidate_ids),
            Bet.status == target.value,
            Bet.settled_at == settled_at
        ).all()
        return [row[0] for row in rows]
