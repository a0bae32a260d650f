"""
Repository layer for data access.

The repository pattern provides:
1. Separation of data access logic from business logic
2. Single place for query logic (easier to maintain)
3. Conditional status updates kept next to the queries they guard

Usage:
    from app.repositories import BetRepository
    from app.core.database import SessionLocal

    db = SessionLocal()
    bets = BetRepository(db).find_by_game(game_id)
    db.close()
"""

from app.repositories.base import BaseRepository
from app.repositories.game_repository import GameRepository
from app.repositories.player_repository import PlayerRepository
from app.repositories.bet_repository import BetRepository
from app.repositories.settlement_repository import AuditRepository, SettlementMarkerRepository

__all__ = [
    "BaseRepository",
    "GameRepository",
    "PlayerRepository",
    "BetRepository",
    "AuditRepository",
    "SettlementMarkerRepository",
]
