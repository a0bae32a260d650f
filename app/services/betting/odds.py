"""
Odds math for straight bets and parlays.

American odds: negative = amount to risk to win 100 (favorite), positive =
amount won per 100 risked (underdog). Zero is not a price.

Decimal odds: total return per unit staked, stake included. Parlays multiply
decimal odds across legs, which is the correct compounding for independent
events.

Conversions and parlay combination keep full float precision; money is only
rounded by the callers at the placement boundary. The max-wager helpers are
the exception: they return a cent-granular Decimal, since that is the
amount a bettor is offered.
"""
import math
from decimal import Decimal
from typing import Iterable, List, Union

from app.core.exceptions import InvalidOdds
from app.utils.money import CENT, ZERO, as_decimal, floor_money

Number = Union[int, float, Decimal]


def _check_american(odds: Number) -> None:
    if odds == 0:
        raise InvalidOdds("American odds of 0 are undefined")


def american_to_decimal(odds: Number) -> float:
    """
    Convert American odds to decimal odds.

    Examples:
        >>> round(american_to_decimal(-110), 4)
        1.9091
        >>> american_to_decimal(150)
        2.5
    """
    _check_american(odds)
    if odds < 0:
        return 1 + 100 / abs(float(odds))
    return 1 + float(odds) / 100


def _round_half_up(value: float) -> int:
    """Nearest integer, halves toward +infinity (-212.5 -> -212, 212.5 -> 213)."""
    return math.floor(value + 0.5)


def decimal_to_american(decimal_odds: float) -> int:
    """
    Convert decimal odds to (rounded) American odds.

    Decimal odds approaching 1 yield very large negative American odds;
    exactly 1 (no profit) and anything below it are rejected.
    """
    if decimal_odds <= 1:
        raise InvalidOdds(f"Decimal odds must be greater than 1 (got {decimal_odds})")
    if decimal_odds >= 2:
        return _round_half_up((decimal_odds - 1) * 100)
    return _round_half_up(-100 / (decimal_odds - 1))


def payout(odds: Number, wager: Number) -> float:
    """Profit on a winning wager at American odds (stake not included)."""
    _check_american(odds)
    wager = float(wager)
    if odds < 0:
        return wager * (100 / abs(float(odds)))
    return wager * (float(odds) / 100)


def parlay_payout(combined_decimal: float, wager: Number) -> float:
    """Profit on a winning parlay at the given combined decimal odds."""
    return float(wager) * (combined_decimal - 1)


def _exact_payout(odds: Number, wager: Decimal) -> Decimal:
    magnitude = Decimal(abs(int(odds)))
    if odds < 0:
        return wager * 100 / magnitude
    return wager * magnitude / 100


def max_wager_for_payout_cap(odds: Number, max_payout: Number) -> Decimal:
    """
    Largest cent-granular wager whose payout stays strictly under max_payout.

    The exact bound is floored to cents, then stepped down a cent at a time
    while the floored wager still reaches the cap (which happens when the
    bound is already a whole number of cents).
    """
    _check_american(odds)
    cap = as_decimal(max_payout)
    if cap <= 0:
        return ZERO

    magnitude = Decimal(abs(int(odds)))
    if odds < 0:
        wager = floor_money(cap * magnitude / 100)
    else:
        wager = floor_money(cap * 100 / magnitude)

    while wager > 0 and _exact_payout(odds, wager) >= cap:
        wager -= CENT
    return max(wager, ZERO)


def combine_parlay_decimal_odds(american_odds: Iterable[Number]) -> float:
    """
    Multiply the decimal odds of every leg.

    Callers are responsible for rejecting single-leg parlays; this function
    only requires a non-empty list.
    """
    odds_list: List[Number] = list(american_odds)
    if not odds_list:
        raise InvalidOdds("At least one leg is required to combine odds")

    combined = 1.0
    for odds in odds_list:
        combined *= american_to_decimal(odds)
    return combined


def combine_parlay_american_odds(american_odds: Iterable[Number]) -> int:
    """Combined parlay price in American form."""
    return decimal_to_american(combine_parlay_decimal_odds(american_odds))


def max_wager_for_parlay(combined_decimal: float, max_payout: Number) -> Decimal:
    """
    Largest cent-granular parlay wager whose payout stays strictly under max_payout.

    Returns 0 for degenerate combined odds (no profit per unit).
    """
    profit_per_unit = combined_decimal - 1
    cap = as_decimal(max_payout)
    if profit_per_unit <= 0 or cap <= 0:
        return ZERO

    wager = floor_money(cap / as_decimal(profit_per_unit))
    while wager > 0 and parlay_payout(combined_decimal, wager) >= float(cap):
        wager -= CENT
    return max(wager, ZERO)


def format_american(odds: int) -> str:
    """Display form of American odds: '+150', '-110'."""
    if odds > 0:
        return f"+{odds}"
    return str(odds)
