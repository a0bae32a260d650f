"""
Wagering error taxonomy.

Every failure in the wagering engine is a business-rule violation scoped to
a single operation: none of these are retried, and the HTTP layer renders
them as {"error": code, "detail": message} with the status code carried on
the class.
"""


class WageringError(Exception):
    """Base class for all wagering engine errors."""

    code = "wagering_error"
    status_code = 400

    def __init__(self, message: str = "Wagering request failed", **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        payload = {"error": self.code, "detail": self.message}
        if self.context:
            payload["context"] = self.context
        return payload


class InvalidRequest(WageringError):
    """Malformed input outside bet placement (game setup, squares, quarters)."""

    code = "invalid_request"


class InvalidBet(InvalidRequest):
    """Malformed placement request."""

    code = "invalid_bet"


class InsufficientLegs(InvalidBet):
    """Parlay has fewer than two legs; the bettor needs to add more."""

    code = "insufficient_legs"

    def __init__(self, leg_count: int, required: int = 2):
        super().__init__(
            f"Parlay requires at least {required} legs (has {leg_count})",
            leg_count=leg_count,
            required=required,
        )


class PayoutCapExceeded(WageringError):
    """Payout at the requested wager exceeds the game's cap."""

    code = "payout_cap_exceeded"
    status_code = 422

    def __init__(self, payout, max_payout, max_wager=None):
        super().__init__(
            f"Bet exceeds maximum ${max_payout} payout (would pay ${payout})",
            payout=str(payout),
            max_payout=str(max_payout),
            max_wager=str(max_wager) if max_wager is not None else None,
        )


class NotFound(WageringError):
    code = "not_found"
    status_code = 404


class AlreadySettled(WageringError):
    """Settle or cancel attempted on a bet that is no longer pending."""

    code = "already_settled"
    status_code = 409

    def __init__(self, bet_id: str, status: str):
        super().__init__(f"Bet {bet_id} is already {status}", bet_id=bet_id, status=status)


class Forbidden(WageringError):
    code = "forbidden"
    status_code = 403


class InvalidOutcome(WageringError):
    code = "invalid_outcome"

    def __init__(self, outcome, allowed):
        super().__init__(
            f"Invalid outcome '{outcome}'; expected one of {', '.join(allowed)}",
            outcome=str(outcome),
        )


class InvalidOdds(WageringError, ValueError):
    """Odds value outside its domain (zero American odds, decimal odds <= 1)."""

    code = "invalid_odds"
