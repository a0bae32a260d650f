"""
Wagering engine.

Pure computation over already-loaded data: odds math, the bet state
machine, placement pricing, the parlay slip, the per-game ledger and the
cross-game settlement aggregator. Persistence lives in the services that
call into this package.
"""

from app.services.betting.lifecycle import BetStatus, SETTLEMENT_OUTCOMES
from app.services.betting.ledger import GameLedger, build_game_ledger
from app.services.betting.parlay_slip import LegCandidate, ParlaySlip, toggle_leg
from app.services.betting.pricing import LegSpec, Selection, quote_parlay, quote_straight
from app.services.betting.settlement import (
    GameSnapshot,
    InitialsIdentity,
    QuarterSnapshot,
    SettlementAggregator,
    SettlementIdentity,
    SettlementMark,
    SettlementReport,
)

__all__ = [
    "BetStatus",
    "SETTLEMENT_OUTCOMES",
    "GameLedger",
    "build_game_ledger",
    "LegCandidate",
    "ParlaySlip",
    "toggle_leg",
    "LegSpec",
    "Selection",
    "quote_parlay",
    "quote_straight",
    "GameSnapshot",
    "InitialsIdentity",
    "QuarterSnapshot",
    "SettlementAggregator",
    "SettlementIdentity",
    "SettlementMark",
    "SettlementReport",
]
