"""
Game API routes: games, players, squares, quarter results and the audit log.
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.game_service import GameService, game_to_dict, player_to_dict

router = APIRouter(prefix="/games", tags=["games"])


# Request models
class CreateGameRequest(BaseModel):
    """Request to create a new squares game."""
    name: str = Field(..., min_length=1, description="Display name of the game")
    bet_amount: Optional[float] = Field(None, description="Cost per square (defaults to DEFAULT_SQUARE_PRICE)")
    prize_distribution: Optional[Dict[str, float]] = Field(
        None, description="Fraction of the pool per quarter, q1..q4, summing to 1.0"
    )
    max_payout_straight: Optional[float] = Field(None, description="Payout cap for straight bets")
    max_payout_parlay: Optional[float] = Field(None, description="Payout cap for parlays")


class AddPlayerRequest(BaseModel):
    first_name: str
    last_name: str


class AssignSquareRequest(BaseModel):
    """Owner initials for a square; null or empty clears it."""
    initials: Optional[str] = None


class QuarterWinnerRequest(BaseModel):
    initials: str = Field(..., description="Winner initials as they appear on the grid")
    square_index: Optional[int] = Field(None, ge=0, le=99)


@router.post("", status_code=201)
async def create_game(request: CreateGameRequest, db: Session = Depends(get_db)):
    """Create a game with an empty grid and computed quarter prizes."""
    service = GameService(db)
    game = service.create_game(
        name=request.name,
        bet_amount=request.bet_amount,
        prize_distribution=request.prize_distribution,
        max_payout_straight=request.max_payout_straight,
        max_payout_parlay=request.max_payout_parlay,
    )
    return game_to_dict(service.get_game(game.id))


@router.get("")
async def list_games(db: Session = Depends(get_db)):
    games = GameService(db).list_games()
    return {
        "games": [game_to_dict(g, include_squares=False) for g in games],
        "count": len(games),
    }


@router.get("/{game_id}")
async def get_game(game_id: str, db: Session = Depends(get_db)):
    return game_to_dict(GameService(db).get_game(game_id))


# Players

@router.post("/{game_id}/players", status_code=201)
async def add_player(game_id: str, request: AddPlayerRequest, db: Session = Depends(get_db)):
    """Add a player; initials are derived from the name and unique in the game."""
    player = GameService(db).add_player(game_id, request.first_name, request.last_name)
    return player_to_dict(player)


@router.get("/{game_id}/players")
async def list_players(game_id: str, db: Session = Depends(get_db)):
    players = GameService(db).list_players(game_id)
    return {"players": [player_to_dict(p) for p in players], "count": len(players)}


# Squares

@router.put("/{game_id}/squares/{index}")
async def assign_square(
    game_id: str,
    request: AssignSquareRequest,
    index: int = Path(..., ge=0, le=99),
    db: Session = Depends(get_db)
):
    game = GameService(db).assign_square(game_id, index, request.initials)
    return game_to_dict(game)


# Quarters

@router.post("/{game_id}/quarters/{quarter}/winner")
async def record_quarter_winner(
    game_id: str,
    quarter: str,
    request: QuarterWinnerRequest,
    db: Session = Depends(get_db)
):
    game = GameService(db).record_quarter_winner(game_id, quarter, request.initials, request.square_index)
    return game_to_dict(game)


@router.delete("/{game_id}/quarters/{quarter}/winner")
async def clear_quarter_winner(game_id: str, quarter: str, db: Session = Depends(get_db)):
    game = GameService(db).clear_quarter_winner(game_id, quarter)
    return game_to_dict(game)


# Audit log

@router.get("/{game_id}/audit")
async def get_audit_log(game_id: str, db: Session = Depends(get_db)):
    """Most recent bet and quarter actions, newest first."""
    entries = GameService(db).get_audit_log(game_id)
    return {"entries": entries, "count": len(entries)}
