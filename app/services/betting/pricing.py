"""
Pricing and validation of bets at placement time.

A quote is computed once, from the odds handed in with the request, and the
resulting potential payout is frozen on the bet: later line movement never
changes what a placed bet pays.

Rounding happens exactly twice per quote: the wager is rounded to cents on
the way in, and the potential payout is rounded to cents on the way out.
Parlay odds are multiplied at full precision in between.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from app.core.exceptions import InsufficientLegs, InvalidBet, PayoutCapExceeded
from app.services.betting.odds import (
    combine_parlay_decimal_odds,
    decimal_to_american,
    format_american,
    max_wager_for_parlay,
    max_wager_for_payout_cap,
    parlay_payout,
    payout,
)
from app.utils.money import Number, as_decimal, to_money

MIN_PARLAY_LEGS = 2


@dataclass(frozen=True)
class Selection:
    """A single priced outcome: the one leg of a straight bet."""
    market: str
    outcome: str
    odds: int
    point: Optional[float] = None


@dataclass(frozen=True)
class LegSpec:
    """One leg of a parlay as submitted for placement."""
    market: str
    outcome: str
    odds: int
    description: str
    point: Optional[float] = None


@dataclass(frozen=True)
class StraightQuote:
    odds: int
    wager: Decimal
    potential_payout: Decimal
    max_wager: Decimal
    max_payout: Decimal


@dataclass(frozen=True)
class ParlayQuote:
    leg_count: int
    combined_decimal: float
    combined_odds: int
    wager: Decimal
    potential_payout: Decimal
    max_wager: Decimal
    max_payout: Decimal


def validate_wager(wager: Number, min_wager: Number) -> Decimal:
    """Enforce the minimum on the submitted amount, then round it to cents."""
    if wager is None:
        raise InvalidBet("Wager is required")
    raw = as_decimal(wager)
    if raw <= 0:
        raise InvalidBet("Wager must be positive")
    minimum = as_decimal(min_wager)
    if raw < minimum:
        raise InvalidBet(f"Minimum wager is ${to_money(minimum)}")
    amount = to_money(raw)
    if amount <= 0:
        raise InvalidBet("Wager must be positive")
    return amount


def _check_priced(market: str, outcome: str, odds, what: str) -> None:
    if not market or not outcome:
        raise InvalidBet(f"{what} must have a market and an outcome")
    if odds is None or odds == 0:
        raise InvalidBet(f"{what} must have non-zero American odds")


def describe_selection(selection: Selection) -> str:
    """Fallback description for a straight bet submitted without one."""
    parts = [selection.outcome]
    if selection.point is not None:
        parts.append(f"{selection.point:+g}" if selection.market == "spreads" else f"{selection.point:g}")
    parts.append(f"({format_american(selection.odds)})")
    return " ".join(parts)


def quote_straight(
    selection: Optional[Selection],
    wager: Number,
    max_payout: Number,
    min_wager: Number,
) -> StraightQuote:
    """
    Price a straight bet.

    Raises:
        InvalidBet: missing selection, bad odds, wager below the minimum
        PayoutCapExceeded: rounded payout above max_payout
    """
    if selection is None:
        raise InvalidBet("Straight bet requires a selection")
    _check_priced(selection.market, selection.outcome, selection.odds, "Selection")
    amount = validate_wager(wager, min_wager)

    cap = to_money(max_payout)
    potential = to_money(payout(selection.odds, amount))
    max_wager = max_wager_for_payout_cap(selection.odds, cap)
    if potential > cap:
        raise PayoutCapExceeded(potential, cap, max_wager)

    return StraightQuote(
        odds=int(selection.odds),
        wager=amount,
        potential_payout=potential,
        max_wager=max_wager,
        max_payout=cap,
    )


def quote_parlay(
    legs: Sequence[LegSpec],
    wager: Number,
    max_payout: Number,
    min_wager: Number,
) -> ParlayQuote:
    """
    Price a parlay.

    Raises:
        InsufficientLegs: fewer than two legs
        InvalidBet: a leg without market/outcome/odds/description, bad wager
        PayoutCapExceeded: rounded payout above max_payout
    """
    legs = list(legs or [])
    if len(legs) < MIN_PARLAY_LEGS:
        raise InsufficientLegs(len(legs), MIN_PARLAY_LEGS)
    for leg in legs:
        _check_priced(leg.market, leg.outcome, leg.odds, "Each parlay leg")
        if not leg.description:
            raise InvalidBet("Each parlay leg must have a description")
    amount = validate_wager(wager, min_wager)

    combined_decimal = combine_parlay_decimal_odds(leg.odds for leg in legs)
    cap = to_money(max_payout)
    potential = to_money(parlay_payout(combined_decimal, amount))
    max_wager = max_wager_for_parlay(combined_decimal, cap)
    if potential > cap:
        raise PayoutCapExceeded(potential, cap, max_wager)

    return ParlayQuote(
        leg_count=len(legs),
        combined_decimal=combined_decimal,
        combined_odds=decimal_to_american(combined_decimal),
        wager=amount,
        potential_payout=potential,
        max_wager=max_wager,
        max_payout=cap,
    )


def parlay_description(leg_count: int) -> str:
    return f"{leg_count}-Leg Parlay"
