"""
Database models for the squares pool and its sportsbook.

Bets use single-table inheritance: bet_type is the discriminator and every
row loads as either a StraightBet (one selection stored inline) or a
ParlayBet (ordered BetLeg rows plus a snapshot of the combined price).
"""
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from app.services.betting.lifecycle import BetStatus
from app.services.betting.pricing import Selection

Base = declarative_base()

Money = Numeric(10, 2)

QUARTERS = ("q1", "q2", "q3", "q4")
GRID_SIZE = 100


class Game(Base):
    """One squares pool, with its own grid, quarter prizes and bets."""
    __tablename__ = "games"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    bet_amount = Column(Money, nullable=False)  # Cost per square
    prize_distribution = Column(JSON, nullable=False)  # {"q1": 0.15, ...}, sums to 1.0
    max_payout_straight = Column(Money, nullable=False)
    max_payout_parlay = Column(Money, nullable=False)
    squares = Column(JSON, nullable=False)  # 100 entries of initials or null
    status = Column(String(20), nullable=False, default="setup", index=True)  # setup, active, completed
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    quarters = relationship(
        "GameQuarter", back_populates="game", cascade="all, delete-orphan", order_by="GameQuarter.quarter"
    )
    players = relationship(
        "Player", back_populates="game", cascade="all, delete-orphan", order_by="Player.created_at"
    )
    bets = relationship("Bet", back_populates="game", cascade="all, delete-orphan", order_by="Bet.placed_at")

    @property
    def total_pool(self) -> Decimal:
        return Decimal(self.bet_amount) * GRID_SIZE


class GameQuarter(Base):
    """Quarter result: prize amount and, once completed, the winning initials."""
    __tablename__ = "game_quarters"

    id = Column(String(36), primary_key=True)
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    quarter = Column(String(2), nullable=False)  # q1..q4
    prize = Column(Money, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    winner_initials = Column(String(8), nullable=True)
    winner_square = Column(Integer, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    game = relationship("Game", back_populates="quarters")

    __table_args__ = (
        UniqueConstraint("game_id", "quarter", name="uq_game_quarters_game_quarter"),
    )


class Player(Base):
    """A participant in one game; initials are unique within the game."""
    __tablename__ = "players"

    id = Column(String(36), primary_key=True)
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    initials = Column(String(8), nullable=False)
    created_at = Column(DateTime, nullable=False)

    game = relationship("Game", back_populates="players")

    __table_args__ = (
        UniqueConstraint("game_id", "initials", name="uq_players_game_initials"),
    )

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Bet(Base):
    """Common columns of every wager; load through StraightBet / ParlayBet."""
    __tablename__ = "bets"

    id = Column(String(36), primary_key=True)
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    player_initials = Column(String(8), nullable=False, index=True)  # Denormalized for display and settlement
    bet_type = Column(String(10), nullable=False)  # straight, parlay
    description = Column(String(255), nullable=False)
    wager = Column(Money, nullable=False)
    potential_payout = Column(Money, nullable=False)  # Profit only, frozen at placement
    status = Column(String(10), nullable=False, default=BetStatus.PENDING.value)
    placed_at = Column(DateTime, nullable=False)
    settled_at = Column(DateTime, nullable=True)

    game = relationship("Game", back_populates="bets")
    player = relationship("Player")

    __mapper_args__ = {"polymorphic_on": bet_type}

    __table_args__ = (
        Index("ix_bets_game_status", "game_id", "status"),
    )

    @property
    def state(self) -> BetStatus:
        return BetStatus(self.status)

    @property
    def payout(self) -> Decimal:
        """Amount actually paid out: the frozen payout if won, else nothing."""
        if self.state is BetStatus.WON:
            return Decimal(self.potential_payout)
        return Decimal("0.00")


class StraightBet(Bet):
    """Single-selection wager."""

    market = Column(String(50), nullable=True)
    outcome = Column(String(255), nullable=True)
    odds = Column(Integer, nullable=True)
    point = Column(Float, nullable=True)

    __mapper_args__ = {"polymorphic_identity": "straight"}

    @property
    def selection(self) -> Selection:
        return Selection(market=self.market, outcome=self.outcome, odds=self.odds, point=self.point)


class ParlayBet(Bet):
    """Multi-leg wager; combined odds are a placement-time snapshot."""

    combined_odds = Column(Integer, nullable=True)
    combined_decimal = Column(Float, nullable=True)

    legs = relationship(
        "BetLeg", back_populates="bet", cascade="all, delete-orphan", order_by="BetLeg.position"
    )

    __mapper_args__ = {"polymorphic_identity": "parlay"}


class BetLeg(Base):
    """One leg of a parlay, in placement order."""
    __tablename__ = "bet_legs"

    id = Column(String(36), primary_key=True)
    bet_id = Column(String(36), ForeignKey("bets.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    market = Column(String(50), nullable=False)
    outcome = Column(String(255), nullable=False)
    odds = Column(Integer, nullable=False)
    point = Column(Float, nullable=True)
    description = Column(String(255), nullable=False)

    bet = relationship("ParlayBet", back_populates="legs")


class SettlementMarker(Base):
    """Manual paid/collected acknowledgment, keyed by settlement identity."""
    __tablename__ = "settlement_markers"

    initials = Column(String(8), primary_key=True)
    amount = Column(Money, nullable=False)  # Net balance acknowledged at marking time
    note = Column(Text, nullable=True)
    settled_at = Column(DateTime, nullable=False)


class AuditLogEntry(Base):
    """Per-game record of bet and quarter actions."""
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)  # Insertion order
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, index=True)
