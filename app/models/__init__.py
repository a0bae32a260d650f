"""
Database models.

Usage:
    from app.models import Game, Player, StraightBet, ParlayBet
"""

from app.models.models import (
    Base,
    Game,
    GameQuarter,
    Player,
    Bet,
    StraightBet,
    ParlayBet,
    BetLeg,
    SettlementMarker,
    AuditLogEntry,
    QUARTERS,
    GRID_SIZE,
)

__all__ = [
    "Base",
    "Game",
    "GameQuarter",
    "Player",
    "Bet",
    "StraightBet",
    "ParlayBet",
    "BetLeg",
    "SettlementMarker",
    "AuditLogEntry",
    "QUARTERS",
    "GRID_SIZE",
]
