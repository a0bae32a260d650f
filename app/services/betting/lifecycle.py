"""
Bet status state machine.

    pending ──► won | lost | push | void     (settle)
    pending ──► cancelled                     (owner cancel)

pending is the only initial and the only non-terminal state. A bet leaves
pending at most once; every transition out of a terminal state is rejected
rather than treated as a no-op, so a bet can never be counted twice by the
ledgers.
"""
from enum import Enum
from typing import Dict, FrozenSet, Union

from app.core.exceptions import AlreadySettled, InvalidOutcome


class BetStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    PUSH = "push"
    VOID = "void"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not BetStatus.PENDING


TRANSITIONS: Dict[BetStatus, FrozenSet[BetStatus]] = {
    BetStatus.PENDING: frozenset({
        BetStatus.WON,
        BetStatus.LOST,
        BetStatus.PUSH,
        BetStatus.VOID,
        BetStatus.CANCELLED,
    }),
    BetStatus.WON: frozenset(),
    BetStatus.LOST: frozenset(),
    BetStatus.PUSH: frozenset(),
    BetStatus.VOID: frozenset(),
    BetStatus.CANCELLED: frozenset(),
}

# Outcomes an operator may settle a bet with; cancelled is owner-only
SETTLEMENT_OUTCOMES = (BetStatus.WON, BetStatus.LOST, BetStatus.PUSH, BetStatus.VOID)

# Statuses that put the stake at risk in the house ledger
STAKE_AT_RISK = frozenset({BetStatus.PENDING, BetStatus.WON, BetStatus.LOST})


def can_transition(current: BetStatus, target: BetStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(bet_id: str, current: Union[BetStatus, str], target: BetStatus) -> None:
    """Raise AlreadySettled unless current -> target is a legal move."""
    current = BetStatus(current)
    if not can_transition(current, target):
        raise AlreadySettled(bet_id, current.value)


def parse_outcome(outcome: Union[BetStatus, str]) -> BetStatus:
    """Validate an operator-supplied settlement outcome."""
    allowed = [s.value for s in SETTLEMENT_OUTCOMES]
    try:
        status = BetStatus(outcome)
    except ValueError:
        raise InvalidOutcome(outcome, allowed) from None
    if status not in SETTLEMENT_OUTCOMES:
        raise InvalidOutcome(status.value, allowed)
    return status
