"""
Player Repository for participants within a game.

Players are scoped to one game; the same person in two games is two rows.
"""
from typing import List, Optional

from app.models import Player
from app.repositories.base import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    """Repository for players within a game."""

    def __init__(self, db):
        super().__init__(Player, db)

    def find_in_game(self, game_id: str, player_id: str) -> Optional[Player]:
        """Find a player, but only if they belong to the given game."""
        return self.where_first(Player.id == player_id, Player.game_id == game_id)

    def find_by_game(self, game_id: str) -> List[Player]:
        return self.db.query(Player).filter(
            Player.game_id == game_id
        ).order_by(Player.created_at).all()

    def initials_in_game(self, game_id: str) -> List[str]:
        rows = self.db.query(Player.initials).filter(Player.game_id == game_id).all()
        return [row[0] for row in rows]
