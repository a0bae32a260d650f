"""
Parlay slip API routes.

The slip is held by the client: each call sends the current legs and gets
back the resulting legs plus pricing. Nothing is stored until the parlay is
placed through the bets endpoint.
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import NotFound, WageringError
from app.models import Game
from app.services.betting.odds import format_american
from app.services.betting.parlay_slip import (
    GAME_LINE_KINDS,
    PROP_KIND,
    LegCandidate,
    ParlaySlip,
    conflict_group,
    leg_identity,
)
from app.services.betting.pricing import ParlayQuote

router = APIRouter(prefix="/parlays", tags=["parlays"])


class CandidateModel(BaseModel):
    """A game line or player prop leg."""
    kind: str = Field(..., description="moneyline, spread, total or prop")
    market: str
    outcome: str = Field(..., description="Team or Over/Under; for props the side (Over, Under, Yes)")
    odds: int
    point: Optional[float] = None
    player: Optional[str] = Field(None, description="Player name, props only")
    description: str = ""

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        if v not in GAME_LINE_KINDS and v != PROP_KIND:
            raise ValueError(f"kind must be one of {', '.join(GAME_LINE_KINDS + (PROP_KIND,))}")
        return v

    def to_candidate(self) -> LegCandidate:
        return LegCandidate(
            kind=self.kind,
            market=self.market,
            outcome=self.outcome,
            odds=self.odds,
            point=self.point,
            player=self.player,
            description=self.description,
        )


class SlipRequest(BaseModel):
    legs: List[CandidateModel] = Field(default_factory=list)
    wager: Optional[float] = Field(None, description="Price the slip at this stake when given")
    game_id: Optional[str] = Field(None, description="Use this game's parlay payout cap")
    max_payout: Optional[float] = Field(None, description="Explicit cap; ignored when game_id is given")


class ToggleRequest(SlipRequest):
    candidate: CandidateModel


def _max_payout(request: SlipRequest, db: Session) -> Decimal:
    if request.game_id:
        game = db.get(Game, request.game_id)
        if game is None:
            raise NotFound(f"Game {request.game_id} not found", game_id=request.game_id)
        return Decimal(game.max_payout_parlay)
    if request.max_payout is not None:
        return Decimal(str(request.max_payout))
    return Decimal(str(settings.DEFAULT_MAX_PAYOUT_PARLAY))


def _quote_to_dict(quote: ParlayQuote) -> dict:
    return {
        "leg_count": quote.leg_count,
        "combined_decimal": quote.combined_decimal,
        "combined_odds": quote.combined_odds,
        "wager": float(quote.wager),
        "potential_payout": float(quote.potential_payout),
        "max_wager": float(quote.max_wager),
        "max_payout": float(quote.max_payout),
    }


def _slip_to_dict(slip: ParlaySlip, max_payout: Decimal) -> dict:
    combined_odds = slip.combined_odds()
    return {
        "legs": [
            {
                "kind": leg.kind,
                "market": leg.market,
                "outcome": leg.outcome,
                "odds": leg.odds,
                "point": leg.point,
                "player": leg.player,
                "description": spec.description,
                "identity": leg_identity(leg),
                "conflict_group": conflict_group(leg),
            }
            for leg, spec in zip(slip.legs, slip.leg_specs())
        ],
        "leg_count": len(slip),
        "ready": slip.is_ready,
        "combined_decimal": slip.combined_decimal() if slip.is_ready else None,
        "combined_odds": combined_odds,
        "combined_odds_display": format_american(combined_odds) if combined_odds is not None else None,
        "max_wager": float(slip.max_wager(max_payout)),
        "max_payout": float(max_payout),
        # Placement payload for POST /games/{game_id}/bets
        "place_legs": [
            {
                "market": spec.market,
                "outcome": spec.outcome,
                "odds": spec.odds,
                "point": spec.point,
                "description": spec.description,
            }
            for spec in slip.leg_specs()
        ],
    }


@router.post("/toggle")
async def toggle_leg(request: ToggleRequest, db: Session = Depends(get_db)):
    """
    Toggle a candidate on the slip.

    Selecting a leg already on the slip removes it; selecting a leg that
    conflicts with one on the slip (the other side of the same market, or
    the other side of the same prop line) replaces it.
    """
    max_payout = _max_payout(request, db)
    slip = ParlaySlip(leg.to_candidate() for leg in request.legs)
    slip.toggle(request.candidate.to_candidate())

    data = _slip_to_dict(slip, max_payout)
    data["quote"] = None
    data["quote_error"] = None
    if request.wager is not None and slip.is_ready:
        try:
            data["quote"] = _quote_to_dict(slip.quote(request.wager, max_payout, settings.MIN_WAGER))
        except WageringError as e:
            data["quote_error"] = e.to_dict()
    return data


@router.post("/quote")
async def quote_slip(request: SlipRequest, db: Session = Depends(get_db)):
    """
    Price a slip at a wager.

    400 with insufficient_legs below two legs, 422 above the payout cap.
    """
    max_payout = _max_payout(request, db)
    slip = ParlaySlip(leg.to_candidate() for leg in request.legs)
    data = _slip_to_dict(slip, max_payout)
    data["quote"] = _quote_to_dict(slip.quote(request.wager, max_payout, settings.MIN_WAGER))
    return data
