"""
Game and player store.

Owns the squares pool side of a game: the 100-square grid, quarter prizes
and results, and the players who can bet. Score syncing and grid claiming
rules live elsewhere; quarter winners and square owners are recorded as
given.
"""
import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidRequest, NotFound
from app.models import Game, GameQuarter, Player, QUARTERS, GRID_SIZE
from app.repositories import AuditRepository, GameRepository, PlayerRepository
from app.services.betting.settlement import GameSnapshot, QuarterSnapshot
from app.utils.money import as_decimal, to_money
from app.utils.timezone import format_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_PRIZE_DISTRIBUTION = {
    "q1": 0.15,
    "q2": 0.30,
    "q3": 0.15,
    "q4": 0.40,
}

GAME_SETUP = "setup"
GAME_ACTIVE = "active"
GAME_COMPLETED = "completed"


def validate_prize_distribution(distribution: Mapping[str, float]) -> Dict[str, float]:
    """Require exactly q1..q4, non-negative, summing to 1.0."""
    if set(distribution) != set(QUARTERS):
        raise InvalidRequest(f"Prize distribution must define exactly {', '.join(QUARTERS)}")
    if any(float(v) < 0 for v in distribution.values()):
        raise InvalidRequest("Prize distribution fractions cannot be negative")
    total = sum(as_decimal(float(v)) for v in distribution.values())
    if abs(total - 1) > Decimal("0.000001"):
        raise InvalidRequest(f"Prize distribution must sum to 1.0 (got {total})")
    return {q: float(distribution[q]) for q in QUARTERS}


def calculate_prizes(bet_amount, distribution: Mapping[str, float] = DEFAULT_PRIZE_DISTRIBUTION) -> Dict[str, Decimal]:
    """
    Whole-dollar quarter prizes from a full 100-square pool.

    Example:
        >>> calculate_prizes(1)["q4"]
        Decimal('40')
    """
    pool = as_decimal(bet_amount) * GRID_SIZE
    return {
        q: (pool * as_decimal(float(distribution[q]))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        for q in QUARTERS
    }


def derive_initials(first_name: str, last_name: str, existing: Iterable[str]) -> str:
    """
    Pick unused initials for a new player.

    Tried in order: first+last letter ("JS"), first letter + two of the last
    name ("JSM"), two of the first name + last letter ("JOS"), then "JS2"
    through "JS9", then higher numbers.
    """
    taken = set(existing)
    base = (first_name[0] + last_name[0]).upper()
    candidates = [
        base,
        (first_name[0] + last_name[:2]).upper(),
        (first_name[:2] + last_name[0]).upper(),
    ]
    candidates.extend(f"{base}{i}" for i in range(2, 10))
    for candidate in candidates:
        if candidate not in taken:
            return candidate

    i = 10
    while f"{base}{i}" in taken:
        i += 1
    return f"{base}{i}"


def _quarter_key(quarter: str) -> str:
    quarter = (quarter or "").lower()
    if quarter not in QUARTERS:
        raise InvalidRequest(f"Invalid quarter '{quarter}'; expected one of {', '.join(QUARTERS)}")
    return quarter


def game_snapshot(game: Game, bets=None) -> GameSnapshot:
    """Freeze a loaded game into the shape the settlement aggregator reads."""
    return GameSnapshot(
        game_id=game.id,
        name=game.name,
        bet_amount=as_decimal(game.bet_amount),
        squares=list(game.squares or []),
        quarters=[
            QuarterSnapshot(
                quarter=q.quarter,
                completed=bool(q.completed),
                winner=q.winner_initials,
                prize=as_decimal(q.prize),
            )
            for q in game.quarters
        ],
        bets=list(game.bets if bets is None else bets),
    )


def game_to_dict(game: Game, include_squares: bool = True) -> Dict:
    data = {
        "id": game.id,
        "name": game.name,
        "bet_amount": float(game.bet_amount),
        "total_pool": float(game.total_pool),
        "status": game.status,
        "prize_distribution": game.prize_distribution,
        "max_payout_straight": float(game.max_payout_straight),
        "max_payout_parlay": float(game.max_payout_parlay),
        "squares_claimed": sum(1 for s in (game.squares or []) if s),
        "quarters": {
            q.quarter: {
                "prize": float(q.prize),
                "completed": bool(q.completed),
                "winner": q.winner_initials,
                "winner_square": q.winner_square,
                "completed_at": format_utc(q.completed_at),
            }
            for q in game.quarters
        },
        "created_at": format_utc(game.created_at),
        "updated_at": format_utc(game.updated_at),
    }
    if include_squares:
        data["squares"] = list(game.squares or [])
    return data


def player_to_dict(player: Player) -> Dict:
    return {
        "id": player.id,
        "game_id": player.game_id,
        "first_name": player.first_name,
        "last_name": player.last_name,
        "name": player.name,
        "initials": player.initials,
        "created_at": format_utc(player.created_at),
    }


class GameService:
    """Service for games, players, squares and quarter results."""

    def __init__(self, db: Session):
        self.db = db
        self.games = GameRepository(db)
        self.players = PlayerRepository(db)
        self.audit = AuditRepository(db)

    # ========================================================================
    # Games
    # ========================================================================

    def create_game(
        self,
        name: str,
        bet_amount=None,
        prize_distribution: Optional[Mapping[str, float]] = None,
        max_payout_straight=None,
        max_payout_parlay=None,
    ) -> Game:
        """
        Create a game with an empty grid and quarter prizes computed up front.

        Raises:
            InvalidRequest: blank name, non-positive amounts, bad distribution
        """
        if not name or not name.strip():
            raise InvalidRequest("Game name is required")

        amount = to_money(bet_amount if bet_amount is not None else settings.DEFAULT_SQUARE_PRICE)
        if amount <= 0:
            raise InvalidRequest("Bet amount must be greater than 0")

        straight_cap = to_money(
            max_payout_straight if max_payout_straight is not None else settings.DEFAULT_MAX_PAYOUT_STRAIGHT
        )
        parlay_cap = to_money(
            max_payout_parlay if max_payout_parlay is not None else settings.DEFAULT_MAX_PAYOUT_PARLAY
        )
        if straight_cap <= 0 or parlay_cap <= 0:
            raise InvalidRequest("Maximum payouts must be greater than 0")

        distribution = validate_prize_distribution(prize_distribution or DEFAULT_PRIZE_DISTRIBUTION)
        prizes = calculate_prizes(amount, distribution)

        now = utc_now()
        game = Game(
            id=str(uuid.uuid4()),
            name=name.strip(),
            bet_amount=amount,
            prize_distribution=distribution,
            max_payout_straight=straight_cap,
            max_payout_parlay=parlay_cap,
            squares=[None] * GRID_SIZE,
            status=GAME_SETUP,
            created_at=now,
            updated_at=now,
        )
        game.quarters = [
            GameQuarter(id=str(uuid.uuid4()), quarter=q, prize=prizes[q], completed=False)
            for q in QUARTERS
        ]
        self.games.add(game)
        self.games.save()
        logger.info(f"Created game {game.id} '{game.name}' at ${amount}/square")
        return game

    def list_games(self) -> List[Game]:
        return self.games.find_all(order_by="created_at")

    def get_game(self, game_id: str) -> Game:
        game = self.games.find_with_details(game_id)
        if game is None:
            raise NotFound(f"Game {game_id} not found", game_id=game_id)
        return game

    # ========================================================================
    # Players
    # ========================================================================

    def add_player(self, game_id: str, first_name: str, last_name: str) -> Player:
        game = self.get_game(game_id)

        first = (first_name or "").strip()
        last = (last_name or "").strip()
        if not first or not last:
            raise InvalidRequest("First name and last name are required")

        initials = derive_initials(first, last, self.players.initials_in_game(game.id))
        player = self.players.add(Player(
            id=str(uuid.uuid4()),
            game_id=game.id,
            first_name=first,
            last_name=last,
            initials=initials,
            created_at=utc_now(),
        ))
        self.players.save()
        logger.info(f"Added player {initials} ({first} {last}) to game {game.id}")
        return player

    def list_players(self, game_id: str) -> List[Player]:
        self.get_game(game_id)
        return self.players.find_by_game(game_id)

    # ========================================================================
    # Squares
    # ========================================================================

    def assign_square(self, game_id: str, index: int, initials: Optional[str]) -> Game:
        """Set (or clear, with empty initials) the owner of one square."""
        game = self.get_game(game_id)
        if index < 0 or index >= GRID_SIZE:
            raise InvalidRequest(f"Invalid square index {index}; expected 0-{GRID_SIZE - 1}")

        squares = list(game.squares or [None] * GRID_SIZE)
        squares[index] = initials.strip() if initials and initials.strip() else None
        # JSON columns only notice reassignment, not in-place edits
        game.squares = squares
        game.updated_at = utc_now()
        self.games.save()
        return game

    # ========================================================================
    # Quarters
    # ========================================================================

    def record_quarter_winner(
        self,
        game_id: str,
        quarter: str,
        initials: str,
        square_index: Optional[int] = None,
    ) -> Game:
        """
        Mark a quarter completed with the given winner.

        Recording q4 completes the game; recording any other quarter on a game
        still in setup makes it active.
        """
        game = self.get_game(game_id)
        key = _quarter_key(quarter)
        winner = (initials or "").strip()
        if not winner:
            raise InvalidRequest("Winner initials are required")
        if square_index is not None and not 0 <= square_index < GRID_SIZE:
            raise InvalidRequest(f"Invalid square index {square_index}; expected 0-{GRID_SIZE - 1}")

        row = self.games.find_quarter(game.id, key)
        now = utc_now()
        row.completed = True
        row.winner_initials = winner
        row.winner_square = square_index
        row.completed_at = now

        if key == QUARTERS[-1]:
            game.status = GAME_COMPLETED
        elif game.status == GAME_SETUP:
            game.status = GAME_ACTIVE
        game.updated_at = now

        self._audit(game.id, "quarter_marked", {"quarter": key, "winner": winner})
        self.games.save()
        logger.info(f"Game {game.id}: {key} won by {winner}")
        return self.get_game(game.id)

    def clear_quarter_winner(self, game_id: str, quarter: str) -> Game:
        game = self.get_game(game_id)
        key = _quarter_key(quarter)
        row = self.games.find_quarter(game.id, key)
        if not row.completed:
            raise InvalidRequest(f"{key} is not completed")

        previous = row.winner_initials
        row.completed = False
        row.winner_initials = None
        row.winner_square = None
        row.completed_at = None

        if key == QUARTERS[-1] and game.status == GAME_COMPLETED:
            game.status = GAME_ACTIVE
        game.updated_at = utc_now()

        self._audit(game.id, "quarter_unmarked", {"quarter": key, "previous_winner": previous})
        self.games.save()
        logger.info(f"Game {game.id}: cleared {key} winner {previous}")
        return self.get_game(game.id)

    # ========================================================================
    # Audit log & snapshots
    # ========================================================================

    def get_audit_log(self, game_id: str) -> List[Dict]:
        self.get_game(game_id)
        return [
            {
                "id": entry.id,
                "action": entry.action,
                "details": entry.details,
                "timestamp": format_utc(entry.created_at),
            }
            for entry in self.audit.recent(game_id)
        ]

    def snapshots(self) -> List[GameSnapshot]:
        """Every game, frozen for settlement."""
        return [game_snapshot(game) for game in self.games.find_all_for_settlement()]

    def _audit(self, game_id: str, action: str, details: Dict) -> None:
        self.audit.append(game_id, action, details, utc_now(), settings.AUDIT_LOG_LIMIT)
