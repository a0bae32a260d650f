"""
Bet placement and settlement for a game's sportsbook.

Placement prices the bet once from the odds submitted with it, freezes the
payout on the row and inserts it. Settlement and cancellation never write a
loaded bet back: they go through BetRepository's conditional UPDATEs so a
bet leaves pending exactly once, even when two requests race.
"""
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.core import metrics
from app.core.config import settings
from app.core.exceptions import AlreadySettled, Forbidden, InvalidBet, NotFound, WageringError
from app.core.logging import get_logger
from app.models import Bet, BetLeg, Game, ParlayBet, Player, StraightBet
from app.repositories import AuditRepository, BetRepository, GameRepository, PlayerRepository
from app.services.betting.ledger import GameLedger, build_game_ledger
from app.services.betting.lifecycle import BetStatus, ensure_transition, parse_outcome
from app.services.betting.pricing import (
    LegSpec,
    Selection,
    describe_selection,
    parlay_description,
    quote_parlay,
    quote_straight,
)
from app.utils.money import Number, ZERO, money_sum
from app.utils.timezone import format_utc, utc_now

logger = get_logger(__name__)

BET_TYPE_STRAIGHT = "straight"
BET_TYPE_PARLAY = "parlay"


@dataclass
class BetRequest:
    """A placement request, already parsed out of the HTTP payload."""
    bet_type: str
    wager: Number
    selection: Optional[Selection] = None
    legs: Sequence[LegSpec] = field(default_factory=list)
    description: Optional[str] = None


@dataclass
class BulkSettleResult:
    outcome: BetStatus
    settled_bet_ids: List[str]
    total_payout: Decimal = ZERO

    @property
    def count(self) -> int:
        return len(self.settled_bet_ids)


def bet_to_dict(bet: Bet) -> Dict:
    """Serialize a bet of either type."""
    data = {
        "id": bet.id,
        "game_id": bet.game_id,
        "player_id": bet.player_id,
        "player_initials": bet.player_initials,
        "type": bet.bet_type,
        "description": bet.description,
        "wager": float(bet.wager),
        "potential_payout": float(bet.potential_payout),
        "status": bet.status,
        "payout": float(bet.payout) if bet.state.is_terminal else None,
        "placed_at": format_utc(bet.placed_at),
        "settled_at": format_utc(bet.settled_at),
    }
    if isinstance(bet, ParlayBet):
        data["combined_odds"] = bet.combined_odds
        data["combined_decimal"] = bet.combined_decimal
        data["selection"] = None
        data["legs"] = [
            {
                "market": leg.market,
                "outcome": leg.outcome,
                "odds": leg.odds,
                "point": leg.point,
                "description": leg.description,
            }
            for leg in bet.legs
        ]
    else:
        data["selection"] = {
            "market": bet.market,
            "outcome": bet.outcome,
            "odds": bet.odds,
            "point": bet.point,
        }
        data["legs"] = None
    return data


class BetService:
    """Service for placing, settling and cancelling bets on a game."""

    def __init__(self, db: Session):
        self.db = db
        self.games = GameRepository(db)
        self.players = PlayerRepository(db)
        self.bets = BetRepository(db)
        self.audit = AuditRepository(db)

    # ========================================================================
    # Placement
    # ========================================================================

    def place_bet(self, game_id: str, player_id: str, request: BetRequest) -> Bet:
        """
        Validate, price and insert a bet.

        Args:
            game_id: Game the bet is placed on
            player_id: Bettor; must be a player of that game
            request: Straight (selection) or parlay (legs) request

        Returns:
            The persisted StraightBet or ParlayBet

        Raises:
            NotFound: unknown game, or player not in the game
            InvalidBet / InsufficientLegs: malformed request
            PayoutCapExceeded: payout above the game's cap for the bet type
        """
        game = self._get_game(game_id)
        player = self.players.find_in_game(game.id, player_id)
        if player is None:
            raise NotFound(f"Player {player_id} not found in game {game.id}", player_id=player_id)

        try:
            if request.bet_type == BET_TYPE_STRAIGHT:
                bet = self._build_straight(game, player, request)
            elif request.bet_type == BET_TYPE_PARLAY:
                bet = self._build_parlay(game, player, request)
            else:
                raise InvalidBet(f"Unknown bet type '{request.bet_type}'")
        except WageringError as e:
            metrics.record_bet_rejected(e.code)
            logger.warning(
                f"Rejected {request.bet_type} bet from {player.initials} on game {game.id}: {e.message}"
            )
            raise

        self.bets.add(bet)
        self._audit(game.id, "bet_placed", {
            "bet_id": bet.id,
            "player": bet.player_initials,
            "description": bet.description,
            "wager": str(bet.wager),
            "potential_payout": str(bet.potential_payout),
        })
        self._commit()

        metrics.record_bet_placed(bet.bet_type)
        logger.info(
            f"Placed {bet.bet_type} bet {bet.id} for {bet.player_initials}: "
            f"${bet.wager} to win ${bet.potential_payout} ({bet.description})"
        )
        return self.get_bet(bet.id)

    def _build_straight(self, game: Game, player: Player, request: BetRequest) -> StraightBet:
        quote = quote_straight(request.selection, request.wager, game.max_payout_straight, settings.MIN_WAGER)
        selection = request.selection
        return StraightBet(
            id=str(uuid.uuid4()),
            game_id=game.id,
            player_id=player.id,
            player_initials=player.initials,
            description=request.description or describe_selection(selection),
            wager=quote.wager,
            potential_payout=quote.potential_payout,
            status=BetStatus.PENDING.value,
            placed_at=utc_now(),
            market=selection.market,
            outcome=selection.outcome,
            odds=quote.odds,
            point=selection.point,
        )

    def _build_parlay(self, game: Game, player: Player, request: BetRequest) -> ParlayBet:
        quote = quote_parlay(request.legs, request.wager, game.max_payout_parlay, settings.MIN_WAGER)
        bet = ParlayBet(
            id=str(uuid.uuid4()),
            game_id=game.id,
            player_id=player.id,
            player_initials=player.initials,
            description=parlay_description(quote.leg_count),
            wager=quote.wager,
            potential_payout=quote.potential_payout,
            status=BetStatus.PENDING.value,
            placed_at=utc_now(),
            combined_odds=quote.combined_odds,
            combined_decimal=quote.combined_decimal,
        )
        bet.legs = [
            BetLeg(
                id=str(uuid.uuid4()),
                position=position,
                market=leg.market,
                outcome=leg.outcome,
                odds=int(leg.odds),
                point=leg.point,
                description=leg.description,
            )
            for position, leg in enumerate(request.legs)
        ]
        return bet

    # ========================================================================
    # Settlement
    # ========================================================================

    def settle_bet(self, bet_id: str, outcome: str) -> Bet:
        """
        Settle one pending bet as won, lost, push or void.

        Raises:
            InvalidOutcome: outcome is not a settlement outcome
            NotFound: no such bet
            AlreadySettled: the bet already left pending
        """
        status = parse_outcome(outcome)
        bet = self.get_bet(bet_id)
        ensure_transition(bet.id, bet.status, status)

        self._transition(bet, status)
        payout = bet.potential_payout if status is BetStatus.WON else ZERO
        self._audit(bet.game_id, "bet_settled", {
            "bet_id": bet.id,
            "player": bet.player_initials,
            "description": bet.description,
            "outcome": status.value,
            "payout": str(payout),
        })
        self._commit()

        metrics.record_bets_settled(status.value)
        logger.info(f"Settled bet {bet.id} ({bet.player_initials}) as {status.value}")
        return self.get_bet(bet.id)

    def cancel_bet(self, bet_id: str, player_id: Optional[str]) -> Bet:
        """
        Cancel a pending bet on behalf of its owner.

        Raises:
            NotFound: no such bet
            AlreadySettled: the bet already left pending
            Forbidden: player_id does not own the pending bet
        """
        bet = self.get_bet(bet_id)
        ensure_transition(bet.id, bet.status, BetStatus.CANCELLED)
        if player_id and bet.player_id != player_id:
            raise Forbidden("You can only cancel your own bets", bet_id=bet.id)

        self._transition(bet, BetStatus.CANCELLED)
        self._audit(bet.game_id, "bet_cancelled", {
            "bet_id": bet.id,
            "player": bet.player_initials,
            "description": bet.description,
            "wager": str(bet.wager),
        })
        self._commit()

        metrics.record_bets_settled(BetStatus.CANCELLED.value)
        logger.info(f"Cancelled bet {bet.id} ({bet.player_initials})")
        return self.get_bet(bet.id)

    def bulk_settle(self, game_id: str, outcome: str) -> BulkSettleResult:
        """
        Settle every pending bet of a game with the same outcome.

        A game with nothing pending yields a result with count 0.
        """
        status = parse_outcome(outcome)
        game = self._get_game(game_id)

        settled_ids = self.bets.bulk_transition(game.id, status, utc_now())
        total_payout = ZERO
        if status is BetStatus.WON and settled_ids:
            total_payout = money_sum(
                payout for (payout,) in self.db.query(Bet.potential_payout).filter(Bet.id.in_(settled_ids))
            )

        result = BulkSettleResult(outcome=status, settled_bet_ids=settled_ids, total_payout=total_payout)
        if result.count:
            self._audit(game.id, "bulk_settle", {
                "outcome": status.value,
                "count": result.count,
                "total_payout": str(total_payout),
            })
        self._commit()

        metrics.record_bets_settled(status.value, result.count)
        logger.info(f"Bulk settled {result.count} pending bets on game {game.id} as {status.value}")
        return result

    def _transition(self, bet: Bet, target: BetStatus) -> None:
        """Compare-and-set out of pending; losing the race is AlreadySettled."""
        if self.bets.transition_status(bet.id, target, utc_now()):
            return
        self.db.rollback()
        current = self.bets.find_by_id(bet.id)
        if current is None:
            raise NotFound(f"Bet {bet.id} not found", bet_id=bet.id)
        raise AlreadySettled(bet.id, current.status)

    # ========================================================================
    # Reads
    # ========================================================================

    def get_bet(self, bet_id: str) -> Bet:
        bet = self.bets.find_by_id(bet_id)
        if bet is None:
            raise NotFound(f"Bet {bet_id} not found", bet_id=bet_id)
        return bet

    def get_bets(self, game_id: str, player_id: Optional[str] = None) -> List[Bet]:
        game = self._get_game(game_id)
        return self.bets.find_by_game(game.id, player_id)

    def get_stats(self, game_id: str) -> GameLedger:
        """Per-game ledger: house totals plus per-player rollups."""
        game = self._get_game(game_id)
        names = {p.id: p.name for p in self.players.find_by_game(game.id)}
        return build_game_ledger(self.bets.find_by_game(game.id), names)

    # ========================================================================
    # Helpers
    # ========================================================================

    def _get_game(self, game_id: str) -> Game:
        game = self.games.find_by_id(game_id)
        if game is None:
            raise NotFound(f"Game {game_id} not found", game_id=game_id)
        return game

    def _audit(self, game_id: str, action: str, details: Dict) -> None:
        self.audit.append(game_id, action, details, utc_now(), settings.AUDIT_LOG_LIMIT)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to commit bet changes: {e}")
            raise


def ledger_to_dict(ledger: GameLedger) -> Dict:
    totals = ledger.totals
    return {
        "total_bets": totals.total_bets,
        "pending_bets": totals.pending_bets,
        "settled_bets": totals.settled_bets,
        "total_wagered": float(totals.total_wagered),
        "total_pending_liability": float(totals.total_pending_liability),
        "house_profit": float(totals.house_profit),
        "players": [
            {
                "player_id": p.player_id,
                "initials": p.initials,
                "name": p.name,
                "total_bets": p.total_bets,
                "bets_won": p.bets_won,
                "bets_lost": p.bets_lost,
                "bets_pending": p.bets_pending,
                "total_wagered": float(p.total_wagered),
                "total_won": float(p.total_won),
                "total_lost": float(p.total_lost),
                "net": float(p.net),
                "pending_wagers": float(p.pending_wagers),
                "pending_potential_payout": float(p.pending_potential_payout),
            }
            for p in ledger.players
        ],
    }
