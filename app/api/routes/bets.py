"""
Bet API routes: placement, settlement, cancellation and per-game stats.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.rate_limit import WRITE_LIMIT, limiter
from app.services.bet_service import BetRequest, BetService, bet_to_dict, ledger_to_dict
from app.services.betting.pricing import LegSpec, Selection

router = APIRouter(tags=["bets"])


# Request models
class SelectionModel(BaseModel):
    """The priced outcome of a straight bet."""
    market: str = Field(..., description="Market key (h2h, spreads, totals, player prop market)")
    outcome: str = Field(..., description="Team, Over/Under, or player side")
    odds: int = Field(..., description="American odds at placement (-110, +150, ...)")
    point: Optional[float] = Field(None, description="Spread or total line")


class LegModel(SelectionModel):
    description: Optional[str] = None


class PlaceBetRequest(BaseModel):
    """Request to place a straight bet or a parlay."""
    player_id: str
    type: str = Field(..., description="straight or parlay")
    wager: float = Field(..., description="Stake in dollars (minimum MIN_WAGER)")
    description: Optional[str] = Field(None, description="Straight bets only; derived when omitted")
    selection: Optional[SelectionModel] = None
    legs: Optional[List[LegModel]] = None

    def to_bet_request(self) -> BetRequest:
        selection = None
        if self.selection is not None:
            selection = Selection(
                market=self.selection.market,
                outcome=self.selection.outcome,
                odds=self.selection.odds,
                point=self.selection.point,
            )
        legs = [
            LegSpec(
                market=leg.market,
                outcome=leg.outcome,
                odds=leg.odds,
                point=leg.point,
                description=leg.description or "",
            )
            for leg in self.legs or []
        ]
        return BetRequest(
            bet_type=self.type,
            wager=self.wager,
            selection=selection,
            legs=legs,
            description=self.description,
        )


class SettleRequest(BaseModel):
    outcome: str = Field(..., description="won, lost, push or void")


class CancelRequest(BaseModel):
    player_id: Optional[str] = Field(None, description="Must match the bet's owner when given")


# Game-scoped endpoints

@router.post("/games/{game_id}/bets", status_code=201)
@limiter.limit(WRITE_LIMIT)
async def place_bet(
    request: Request,
    game_id: str,
    body: PlaceBetRequest,
    db: Session = Depends(get_db)
):
    """
    Place a bet on a game.

    The payout is computed once from the submitted odds and frozen on the
    bet. Rejected with 422 when it would exceed the game's payout cap.
    """
    bet = BetService(db).place_bet(game_id, body.player_id, body.to_bet_request())
    return bet_to_dict(bet)


@router.get("/games/{game_id}/bets")
async def list_bets(
    game_id: str,
    player_id: Optional[str] = Query(None, description="Only this player's bets"),
    db: Session = Depends(get_db)
):
    bets = BetService(db).get_bets(game_id, player_id)
    return {"bets": [bet_to_dict(b) for b in bets], "count": len(bets)}


@router.get("/games/{game_id}/bets/stats")
async def get_bet_stats(game_id: str, db: Session = Depends(get_db)):
    """House totals and per-player rollups, recomputed from the game's bets."""
    return ledger_to_dict(BetService(db).get_stats(game_id))


@router.post("/games/{game_id}/bets/bulk-settle")
@limiter.limit(WRITE_LIMIT)
async def bulk_settle(
    request: Request,
    game_id: str,
    body: SettleRequest,
    db: Session = Depends(get_db)
):
    """Settle every pending bet of the game with one outcome."""
    result = BetService(db).bulk_settle(game_id, body.outcome)
    return {
        "outcome": result.outcome.value,
        "settled": result.count,
        "settled_bet_ids": result.settled_bet_ids,
        "total_payout": float(result.total_payout),
    }


# Bet-scoped endpoints

@router.get("/bets/{bet_id}")
async def get_bet(bet_id: str, db: Session = Depends(get_db)):
    return bet_to_dict(BetService(db).get_bet(bet_id))


@router.post("/bets/{bet_id}/settle")
@limiter.limit(WRITE_LIMIT)
async def settle_bet(
    request: Request,
    bet_id: str,
    body: SettleRequest,
    db: Session = Depends(get_db)
):
    """Settle a pending bet. 409 if it already left pending."""
    return bet_to_dict(BetService(db).settle_bet(bet_id, body.outcome))


@router.post("/bets/{bet_id}/cancel")
@limiter.limit(WRITE_LIMIT)
async def cancel_bet(
    request: Request,
    bet_id: str,
    body: CancelRequest,
    db: Session = Depends(get_db)
):
    """Cancel a pending bet on behalf of its owner."""
    return bet_to_dict(BetService(db).cancel_bet(bet_id, body.player_id))
