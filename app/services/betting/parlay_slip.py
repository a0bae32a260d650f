"""
Parlay slip: building a parlay one leg at a time.

Bettors toggle candidate legs on and off. Two keys drive the behaviour:

- leg identity: what makes two candidates "the same leg". Toggling a leg
  that is already on the slip removes it.
- conflict group: legs that cannot both be held. Game lines conflict per
  market (both sides of a moneyline, spread or total are exclusive). Player
  props conflict per market, player and line, so Over and Under on the same
  line are exclusive while a different line or a different stat for the same
  player is not.

Adding a leg silently replaces whatever it conflicts with; a slip therefore
never holds two legs from one conflict group.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from app.core.exceptions import InsufficientLegs
from app.services.betting.odds import (
    combine_parlay_decimal_odds,
    decimal_to_american,
    max_wager_for_parlay,
)
from app.services.betting.pricing import MIN_PARLAY_LEGS, LegSpec, ParlayQuote, quote_parlay
from app.utils.money import ZERO, Number

GAME_LINE_KINDS = ("moneyline", "spread", "total")
PROP_KIND = "prop"


@dataclass(frozen=True)
class LegCandidate:
    """
    A selectable leg.

    For game lines, outcome is the team (or Over/Under for totals). For props,
    player names the player and outcome the side (Over/Under, Yes).
    """
    kind: str
    market: str
    outcome: str
    odds: int
    point: Optional[float] = None
    player: Optional[str] = None
    description: str = ""

    @property
    def is_prop(self) -> bool:
        return self.kind == PROP_KIND

    def to_leg_spec(self) -> LegSpec:
        return LegSpec(
            market=self.market,
            outcome=self.outcome if not self.is_prop else f"{self.player} {self.outcome}",
            odds=self.odds,
            point=self.point,
            description=self.description or self._default_description(),
        )

    def _default_description(self) -> str:
        if self.is_prop:
            line = f" {self.point:g}" if self.point is not None else ""
            return f"{self.player} {self.market} {self.outcome}{line}"
        if self.point is not None:
            return f"{self.outcome} {self.point:g}"
        return f"{self.outcome} Moneyline" if self.kind == "moneyline" else self.outcome


def _line(point: Optional[float]) -> str:
    return "null" if point is None else f"{point:g}"


def leg_identity(leg: LegCandidate) -> str:
    if leg.is_prop:
        return f"prop|{leg.market}|{leg.player}|{leg.outcome}|{_line(leg.point)}"
    return f"{leg.kind}|{leg.market}|{leg.outcome}"


def conflict_group(leg: LegCandidate) -> str:
    if leg.is_prop:
        return f"prop|{leg.market}|{leg.player}|{_line(leg.point)}"
    return f"{leg.kind}|{leg.market}"


def toggle_leg(current: Iterable[LegCandidate], candidate: LegCandidate) -> List[LegCandidate]:
    """
    Return the slip after toggling candidate.

    Deselects when the same leg is already present; otherwise removes any
    leg sharing the candidate's conflict group and appends the candidate.
    The input is never mutated.
    """
    legs = list(current)
    identity = leg_identity(candidate)
    if any(leg_identity(leg) == identity for leg in legs):
        return [leg for leg in legs if leg_identity(leg) != identity]
    return select_leg(legs, candidate)


def select_leg(current: Iterable[LegCandidate], candidate: LegCandidate) -> List[LegCandidate]:
    """
    Put candidate on the slip without ever deselecting.

    Used to load a submitted slip: a repeated leg stays selected and the
    last leg of each conflict group wins.
    """
    group = conflict_group(candidate)
    kept = [leg for leg in current if conflict_group(leg) != group]
    kept.append(candidate)
    return kept


class ParlaySlip:
    """
    Mutable slip held by a caller for the length of one parlay build.

    Construct one per bettor session and pass it around by reference; there
    is no module-level slip state.
    """

    def __init__(self, legs: Optional[Iterable[LegCandidate]] = None):
        self._legs: List[LegCandidate] = []
        for leg in legs or []:
            self._legs = select_leg(self._legs, leg)

    @property
    def legs(self) -> List[LegCandidate]:
        return list(self._legs)

    def __len__(self) -> int:
        return len(self._legs)

    def toggle(self, candidate: LegCandidate) -> List[LegCandidate]:
        self._legs = toggle_leg(self._legs, candidate)
        return self.legs

    def remove(self, identity: str) -> List[LegCandidate]:
        self._legs = [leg for leg in self._legs if leg_identity(leg) != identity]
        return self.legs

    def clear(self) -> None:
        self._legs = []

    @property
    def is_ready(self) -> bool:
        return len(self._legs) >= MIN_PARLAY_LEGS

    def combined_decimal(self) -> float:
        """Combined decimal odds; 1.0 (no price) until the slip has two legs."""
        if not self.is_ready:
            return 1.0
        return combine_parlay_decimal_odds(leg.odds for leg in self._legs)

    def combined_odds(self) -> Optional[int]:
        if not self.is_ready:
            return None
        return decimal_to_american(self.combined_decimal())

    def max_wager(self, max_payout: Number) -> Decimal:
        if not self.is_ready:
            return ZERO
        return max_wager_for_parlay(self.combined_decimal(), max_payout)

    def leg_specs(self) -> List[LegSpec]:
        return [leg.to_leg_spec() for leg in self._legs]

    def quote(self, wager: Number, max_payout: Number, min_wager: Number) -> ParlayQuote:
        """Price the slip; raises InsufficientLegs below two legs."""
        if not self.is_ready:
            raise InsufficientLegs(len(self._legs), MIN_PARLAY_LEGS)
        return quote_parlay(self.leg_specs(), wager, max_payout, min_wager)
