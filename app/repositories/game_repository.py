"""
Game Repository for squares pools.

Usage:
    repo = GameRepository(db)
    game = repo.find_by_id(game_id)
    games = repo.find_all(order_by="-created_at")
"""
from typing import List, Optional

from sqlalchemy.orm import selectinload

from app.models import Game, GameQuarter
from app.repositories.base import BaseRepository


class GameRepository(BaseRepository[Game]):
    """Repository for games and their quarter results."""

    def __init__(self, db):
        """Initialize the game repository."""
        super().__init__(Game, db)

    def find_with_details(self, game_id: str) -> Optional[Game]:
        """Find a game with quarters and players eagerly loaded."""
        return self.db.query(Game).options(
            selectinload(Game.quarters),
            selectinload(Game.players),
        ).filter(Game.id == game_id).first()

    def find_all_for_settlement(self) -> List[Game]:
        """
        Load every game with everything the settlement report reads.

        Parlay legs are not needed for settlement and are left lazy.
        """
        return self.db.query(Game).options(
            selectinload(Game.quarters),
            selectinload(Game.bets),
        ).order_by(Game.created_at).all()

    # ========================================================================
    # Quarters
    # ========================================================================

    def find_quarter(self, game_id: str, quarter: str) -> Optional[GameQuarter]:
        return self.db.query(GameQuarter).filter(
            GameQuarter.game_id == game_id,
            GameQuarter.quarter == quarter
        ).first()
